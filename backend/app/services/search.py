"""
Text and categorical filtering over a snapshot of listings.

Everything here is pure: no session, no I/O. Given the same listings and
filters, search() returns the same ordered output.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from app.core.exceptions import ValidationError
from app.models import Listing, ListingStatus

# Sentinel the client sends for "no filter on this dimension"
ALL = "All"


def is_unfiltered(value: Optional[str]) -> bool:
    """True when a subject/semester value means 'match everything'."""
    return value is None or value.strip() == "" or value == ALL


def coerce_status(value: Union[ListingStatus, str, None]) -> Optional[ListingStatus]:
    if value is None or value == "":
        return None
    if isinstance(value, ListingStatus):
        return value
    try:
        return ListingStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in ListingStatus)
        raise ValidationError(f"Invalid status. Must be one of: {allowed}")


@dataclass
class SearchFilters:
    query: Optional[str] = None
    subject: Optional[str] = None
    semester: Optional[str] = None
    status: Optional[ListingStatus] = None

    def __post_init__(self):
        self.status = coerce_status(self.status)


def newest_first(listings: Iterable[Listing]) -> List[Listing]:
    # sorted() is stable, so equal timestamps keep their incoming order
    return sorted(listings, key=lambda l: l.posted_at or datetime.min, reverse=True)


def _matches_query(listing: Listing, needle: str) -> bool:
    return any(
        needle in (value or "").lower()
        for value in (listing.title, listing.subject, listing.description)
    )


def matches(listing: Listing, filters: SearchFilters) -> bool:
    if filters.status is not None and listing.status != filters.status:
        return False
    if not is_unfiltered(filters.subject) and listing.subject != filters.subject:
        return False
    if not is_unfiltered(filters.semester) and listing.semester != filters.semester:
        return False

    query = (filters.query or "").strip().lower()
    if query and not _matches_query(listing, query):
        return False
    return True


def search(listings: Iterable[Listing], filters: Optional[SearchFilters] = None) -> List[Listing]:
    """
    Filter listings and return them newest-first.

    Dimensions combine with AND. Within the free-text query, title, subject
    and description are OR'ed, case-insensitively, by substring.
    """
    filters = filters or SearchFilters()
    return newest_first(l for l in listings if matches(l, filters))
