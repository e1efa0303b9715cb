"""
"Recommended for you" picks for the marketplace home and listing pages.

Bucket-fill policy, in order, until `limit` slots are taken:
  1. available listings in the preferred subject
  2. available listings in the preferred semester not already picked
  3. the most recent remaining available listings

Subject matches therefore always rank ahead of semester-only matches, and
semester matches ahead of plain recency. There is no numeric scoring.
"""
import logging
from typing import Iterable, List, Optional

from app.core.config import settings
from app.models import Listing, ListingStatus
from app.services.search import is_unfiltered, newest_first

logger = logging.getLogger(__name__)


def _candidates(listings: Iterable[Listing], exclude_id: Optional[str]) -> List[Listing]:
    pool = [
        l for l in listings
        if l.status == ListingStatus.AVAILABLE and (exclude_id is None or l.id != exclude_id)
    ]
    return newest_first(pool)


def recommend(
    listings: Iterable[Listing],
    subject: Optional[str] = None,
    semester: Optional[str] = None,
    exclude_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Listing]:
    """
    Return up to `limit` available listings, excluding `exclude_id`.

    `subject` / `semester` of None, "" or "All" mean no preference.
    """
    if limit is None:
        limit = settings.RECOMMENDATION_LIMIT
    if limit <= 0:
        return []

    pool = _candidates(listings, exclude_id)
    subject = None if is_unfiltered(subject) else subject
    semester = None if is_unfiltered(semester) else semester

    picked: List[Listing] = []
    picked_ids = set()

    def take(predicate) -> None:
        for listing in pool:
            if len(picked) >= limit:
                return
            if listing.id not in picked_ids and predicate(listing):
                picked.append(listing)
                picked_ids.add(listing.id)

    if subject is not None:
        take(lambda l: l.subject == subject)
    if semester is not None:
        take(lambda l: l.semester == semester)
    take(lambda l: True)

    logger.debug(
        "recommend subject=%s semester=%s exclude=%s -> %d of %d candidates",
        subject, semester, exclude_id, len(picked), len(pool),
    )
    return picked
