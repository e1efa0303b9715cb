"""
Persistence and validation for textbook listings.

Every mutating call takes the caller identity explicitly; ownership is
checked here, against the stored seller_id, before anything is written.
"""
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.auth import CallerIdentity
from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models import BookCondition, Listing, ListingStatus
from app.services.search import SearchFilters, search

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description provided."

REQUIRED_TEXT_FIELDS = ("title", "subject", "semester")

# Fields an owner/admin may change through update(). Status and the
# requested_by pair only move through listing_status.
EDITABLE_FIELDS = frozenset(
    {"title", "subject", "semester", "condition", "description", "price", "image"}
)


def _require_text(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def _coerce_price(value: Any) -> float:
    if value is None or value == "":
        raise ValidationError("price is required")
    if isinstance(value, bool):
        raise ValidationError("price must be a number")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError("price must be a number")
    if math.isnan(price) or math.isinf(price):
        raise ValidationError("price must be a number")
    if price < 0:
        raise ValidationError("price must not be negative")
    return price


def _coerce_condition(value: Any) -> BookCondition:
    if isinstance(value, BookCondition):
        return value
    if isinstance(value, str):
        raw = value.strip()
        for condition in BookCondition:
            # Accept "Like New", "like new", "LIKE_NEW", "LikeNew"
            if raw.lower() in (
                condition.value.lower(),
                condition.name.lower(),
                condition.value.replace(" ", "").lower(),
            ):
                return condition
    allowed = ", ".join(c.value for c in BookCondition)
    raise ValidationError(f"Invalid condition. Must be one of: {allowed}")


def _clean_description(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return DEFAULT_DESCRIPTION
    if not isinstance(value, str):
        raise ValidationError("description must be a string")
    return value.strip()


def _clean_image(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("image must be a string")
    return value.strip()


def _validate_field(field: str, data: Mapping[str, Any]) -> Any:
    if field in REQUIRED_TEXT_FIELDS:
        return _require_text(data, field)
    if field == "price":
        return _coerce_price(data.get("price"))
    if field == "condition":
        return _coerce_condition(data.get("condition"))
    if field == "description":
        return _clean_description(data.get("description"))
    if field == "image":
        return _clean_image(data.get("image"))
    raise ValidationError(f"{field} cannot be updated")


def can_manage(listing: Listing, caller_id: str, caller_is_admin: bool) -> bool:
    """Owners and admins may edit, sell and delete a listing."""
    return caller_is_admin or listing.seller_id == caller_id


def _authorize(listing: Listing, caller: CallerIdentity, action: str) -> None:
    if not can_manage(listing, caller.id, caller.is_admin):
        logger.warning(
            "Rejected %s on listing %s by user %s (seller=%s)",
            action, listing.id, caller.id, listing.seller_id,
        )
        raise AuthorizationError("Not authorized")


def create(db: Session, draft: Mapping[str, Any], caller: CallerIdentity) -> Listing:
    """Validate a draft and store it as a new Available listing owned by the caller."""
    listing = Listing(
        title=_require_text(draft, "title"),
        subject=_require_text(draft, "subject"),
        semester=_require_text(draft, "semester"),
        price=_coerce_price(draft.get("price")),
        condition=_coerce_condition(draft.get("condition")),
        description=_clean_description(draft.get("description")),
        image=_clean_image(draft.get("image")),
        seller_id=caller.id,
        seller_name=caller.name,
        status=ListingStatus.AVAILABLE,
        posted_at=datetime.utcnow(),
    )
    db.add(listing)
    db.commit()
    db.refresh(listing)
    logger.info("Created listing %s (%s) for seller %s", listing.id, listing.title, caller.id)
    return listing


def get(db: Session, listing_id: str) -> Optional[Listing]:
    return db.get(Listing, listing_id)


def get_or_404(db: Session, listing_id: str) -> Listing:
    listing = get(db, listing_id)
    if listing is None:
        raise NotFoundError("Book", listing_id)
    return listing


def update(db: Session, listing_id: str, patch: Mapping[str, Any], caller: CallerIdentity) -> Listing:
    """
    Apply a partial update to a listing's descriptive fields.

    Raises:
        NotFoundError: no such listing
        AuthorizationError: caller is neither the seller nor an admin
        ValidationError: patch touches a non-editable field or has bad values
    """
    listing = get_or_404(db, listing_id)
    _authorize(listing, caller, "update")

    locked = sorted(set(patch) - EDITABLE_FIELDS)
    if locked:
        raise ValidationError(f"Field(s) cannot be updated: {', '.join(locked)}")

    # Validate everything before touching the row so a bad patch changes nothing
    changes: Dict[str, Any] = {field: _validate_field(field, patch) for field in patch}
    for field, value in changes.items():
        setattr(listing, field, value)

    db.commit()
    db.refresh(listing)
    logger.info("Updated listing %s fields=%s by user %s", listing.id, sorted(changes), caller.id)
    return listing


def delete(db: Session, listing_id: str, caller: CallerIdentity) -> None:
    listing = get_or_404(db, listing_id)
    _authorize(listing, caller, "delete")
    db.delete(listing)
    db.commit()
    logger.info("Deleted listing %s by user %s", listing_id, caller.id)


def list_listings(db: Session, filters: Optional[SearchFilters] = None) -> List[Listing]:
    """All listings matching `filters`, newest first."""
    query = db.query(Listing)
    if filters is not None and filters.status is not None:
        query = query.filter(Listing.status == filters.status)
    snapshot = query.order_by(Listing.posted_at.desc()).all()
    return search(snapshot, filters)


def list_available(db: Session) -> List[Listing]:
    return list_listings(db, SearchFilters(status=ListingStatus.AVAILABLE))


def list_by_seller(db: Session, seller_id: str) -> List[Listing]:
    return (
        db.query(Listing)
        .filter(Listing.seller_id == seller_id)
        .order_by(Listing.posted_at.desc())
        .all()
    )
