from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional, List
import logging
from app.database import get_db
from app.schemas.listing import ListingResponse, ListingCreate, ListingUpdate, MessageResponse
from app.core.auth import CallerIdentity, get_current_caller
from app.services import listing_status, listing_store, recommendations
from app.services.search import SearchFilters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])


def _serialize(listings) -> List[ListingResponse]:
    return [ListingResponse.model_validate(listing) for listing in listings]


@router.get("", response_model=List[ListingResponse])
def get_books(
    query: Optional[str] = Query(None, description="Search in title, subject or description"),
    subject: Optional[str] = Query(None, description="Exact subject, or 'All'"),
    semester: Optional[str] = Query(None, description="Exact semester, or 'All'"),
    status_filter: Optional[str] = Query(None, alias="status", description="available, requested or sold"),
    db: Session = Depends(get_db),
):
    """List books, newest first, with optional filters. Public."""
    filters = SearchFilters(query=query, subject=subject, semester=semester, status=status_filter)
    books = listing_store.list_listings(db, filters)
    logger.info(
        "Fetched %d books (query=%r subject=%r semester=%r status=%r)",
        len(books), query, subject, semester, status_filter,
    )
    return _serialize(books)


@router.get(
    "/user/{user_id}",
    response_model=List[ListingResponse],
    dependencies=[Depends(get_current_caller)],
)
def get_user_books(
    user_id: str,
    db: Session = Depends(get_db),
):
    """Books posted by a specific seller."""
    return _serialize(listing_store.list_by_seller(db, user_id))


@router.get("/recommendations", response_model=List[ListingResponse])
def get_recommendations(
    subject: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    exclude_id: Optional[str] = Query(None, alias="excludeId"),
    db: Session = Depends(get_db),
):
    """Up to four available books: same subject first, then same semester, then newest."""
    picks = recommendations.recommend(
        listing_store.list_available(db),
        subject=subject,
        semester=semester,
        exclude_id=exclude_id,
    )
    return _serialize(picks)


@router.get("/{book_id}", response_model=ListingResponse)
def get_book(book_id: str, db: Session = Depends(get_db)):
    return ListingResponse.model_validate(listing_store.get_or_404(db, book_id))


@router.post("", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
def create_book(
    payload: ListingCreate,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    listing = listing_store.create(db, payload.model_dump(), caller)
    return ListingResponse.model_validate(listing)


@router.put("/{book_id}", response_model=ListingResponse)
def update_book(
    book_id: str,
    payload: ListingUpdate,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Edit descriptive fields. Owner or admin."""
    listing = listing_store.update(db, book_id, payload.model_dump(exclude_unset=True), caller)
    return ListingResponse.model_validate(listing)


@router.put("/{book_id}/request", response_model=ListingResponse)
def request_book(
    book_id: str,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Request to buy. Fails with 409 unless the book is available."""
    listing = listing_status.request_listing(db, book_id, caller)
    return ListingResponse.model_validate(listing)


@router.put("/{book_id}/sold", response_model=ListingResponse)
def mark_book_sold(
    book_id: str,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """Mark sold. Owner or admin."""
    listing = listing_status.mark_listing_sold(db, book_id, caller)
    return ListingResponse.model_validate(listing)


@router.delete("/{book_id}", response_model=MessageResponse)
def delete_book(
    book_id: str,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    listing_store.delete(db, book_id, caller)
    return MessageResponse(message="Book deleted")
