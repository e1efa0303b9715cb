"""
Listing lifecycle: available -> requested -> sold.

Transitions are applied with a conditional UPDATE (compare-and-set on the
current status), so two buyers racing to request the same book cannot both
win; the loser sees zero affected rows and gets InvalidStateError.

There is no way back: a requested listing cannot be released to available,
and requested_by / requested_by_name survive the sale as a record of the buyer.
"""
import logging
from datetime import datetime
from typing import Dict, FrozenSet, List

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.auth import CallerIdentity
from app.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError
from app.models import Listing, ListingStatus
from app.services import listing_store

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[ListingStatus, FrozenSet[ListingStatus]] = {
    ListingStatus.AVAILABLE: frozenset({ListingStatus.REQUESTED, ListingStatus.SOLD}),
    ListingStatus.REQUESTED: frozenset({ListingStatus.SOLD}),
    ListingStatus.SOLD: frozenset(),
}


def can_transition(current: ListingStatus, target: ListingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(ListingStatus(current), frozenset())


def sources_for(target: ListingStatus) -> List[ListingStatus]:
    """Statuses a listing may be in for a move to target to be legal."""
    return [status for status in ListingStatus if can_transition(status, target)]


def _reload(db: Session, listing_id: str) -> Listing:
    listing = db.get(Listing, listing_id)
    if listing is None:
        raise NotFoundError("Book", listing_id)
    db.refresh(listing)
    return listing


def request(db: Session, listing_id: str, requester_id: str, requester_name: str) -> Listing:
    """
    Move an available listing to requested and record who asked for it.

    Does not check who the requester is; callers go through request_listing().
    """
    result = db.execute(
        update(Listing)
        .where(Listing.id == listing_id, Listing.status.in_(sources_for(ListingStatus.REQUESTED)))
        .values(
            status=ListingStatus.REQUESTED,
            requested_by=requester_id,
            requested_by_name=requester_name,
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        listing_store.get_or_404(db, listing_id)
        logger.warning("Request for listing %s by user %s rejected: not available", listing_id, requester_id)
        raise InvalidStateError("Book is not available")

    db.commit()
    logger.info("Listing %s requested by user %s", listing_id, requester_id)
    return _reload(db, listing_id)


def request_listing(db: Session, listing_id: str, caller: CallerIdentity) -> Listing:
    """Request-to-buy on behalf of the caller. Sellers cannot request their own books."""
    listing = listing_store.get_or_404(db, listing_id)
    if listing.seller_id == caller.id:
        raise AuthorizationError("You cannot request your own book")
    return request(db, listing_id, caller.id, caller.name)


def mark_sold(db: Session, listing_id: str, caller_id: str, caller_is_admin: bool) -> Listing:
    """
    Mark a listing sold. Legal from available or requested; only the seller or an admin.
    """
    listing = listing_store.get_or_404(db, listing_id)
    if not listing_store.can_manage(listing, caller_id, caller_is_admin):
        logger.warning("Mark-sold on listing %s by user %s rejected: not owner", listing_id, caller_id)
        raise AuthorizationError("Not authorized")

    result = db.execute(
        update(Listing)
        .where(Listing.id == listing_id, Listing.status.in_(sources_for(ListingStatus.SOLD)))
        .values(status=ListingStatus.SOLD, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        listing_store.get_or_404(db, listing_id)
        raise InvalidStateError("Book is already sold")

    db.commit()
    logger.info("Listing %s marked sold by user %s", listing_id, caller_id)
    return _reload(db, listing_id)


def mark_listing_sold(db: Session, listing_id: str, caller: CallerIdentity) -> Listing:
    return mark_sold(db, listing_id, caller.id, caller.is_admin)
