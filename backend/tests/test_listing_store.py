"""Tests for listing persistence, validation and ownership rules."""
import pytest
from datetime import datetime, timedelta
from sqlalchemy.orm import Session

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models import BookCondition, Listing, ListingStatus
from app.services import listing_store
from app.services.listing_store import DEFAULT_DESCRIPTION
from app.services.search import SearchFilters
from conftest import caller_for


def draft(**overrides):
    data = {
        "title": "Applied Physics for Engineers",
        "subject": "Physics",
        "semester": "Semester 1",
        "price": 180,
        "condition": "Fair",
        "description": "Minor highlights in first 2 chapters.",
    }
    data.update(overrides)
    return data


def test_create_assigns_id_owner_and_initial_status(db: Session, seller):
    listing = listing_store.create(db, draft(title="  Applied Physics  "), caller_for(seller))

    assert listing.id
    assert listing.title == "Applied Physics"
    assert listing.status == ListingStatus.AVAILABLE
    assert listing.seller_id == seller.id
    assert listing.seller_name == "Riya Sharma"
    assert listing.condition == BookCondition.FAIR
    assert listing.price == 180.0
    assert listing.posted_at is not None
    assert listing.requested_by is None
    assert listing.requested_by_name is None


def test_create_defaults_description_and_image(db: Session, seller):
    listing = listing_store.create(db, draft(description="   ", image=None), caller_for(seller))
    assert listing.description == DEFAULT_DESCRIPTION
    assert listing.image == ""


def test_create_rejects_negative_price(db: Session, seller):
    with pytest.raises(ValidationError):
        listing_store.create(db, draft(price=-5), caller_for(seller))
    assert db.query(Listing).count() == 0


def test_create_accepts_free_books(db: Session, seller):
    listing = listing_store.create(db, draft(price=0), caller_for(seller))
    assert listing.price == 0.0


@pytest.mark.parametrize("field", ["title", "subject", "semester"])
def test_create_rejects_blank_required_text(db: Session, seller, field):
    with pytest.raises(ValidationError, match=field):
        listing_store.create(db, draft(**{field: "   "}), caller_for(seller))


@pytest.mark.parametrize("price", [None, "", "abc", True, float("nan")])
def test_create_rejects_bad_price(db: Session, seller, price):
    with pytest.raises(ValidationError):
        listing_store.create(db, draft(price=price), caller_for(seller))


def test_create_rejects_unknown_condition(db: Session, seller):
    with pytest.raises(ValidationError, match="condition"):
        listing_store.create(db, draft(condition="Mint"), caller_for(seller))


@pytest.mark.parametrize("raw", ["Like New", "like new", "LIKE_NEW", "LikeNew"])
def test_create_normalizes_condition_spellings(db: Session, seller, raw):
    listing = listing_store.create(db, draft(condition=raw), caller_for(seller))
    assert listing.condition == BookCondition.LIKE_NEW


def test_get_or_404(db: Session, seller):
    listing = listing_store.create(db, draft(), caller_for(seller))
    assert listing_store.get_or_404(db, listing.id).id == listing.id
    with pytest.raises(NotFoundError):
        listing_store.get_or_404(db, "missing")


def test_owner_can_update_descriptive_fields(db: Session, seller):
    listing = listing_store.create(db, draft(), caller_for(seller))
    updated = listing_store.update(db, listing.id, {"price": 150, "title": "Physics 101"}, caller_for(seller))
    assert updated.price == 150.0
    assert updated.title == "Physics 101"
    assert updated.seller_id == seller.id


def test_admin_can_update_any_listing(db: Session, seller, admin):
    listing = listing_store.create(db, draft(), caller_for(seller))
    updated = listing_store.update(db, listing.id, {"condition": "Good"}, caller_for(admin))
    assert updated.condition == BookCondition.GOOD


def test_stranger_cannot_update(db: Session, seller, buyer):
    listing = listing_store.create(db, draft(), caller_for(seller))
    with pytest.raises(AuthorizationError):
        listing_store.update(db, listing.id, {"price": 1}, caller_for(buyer))
    db.expire_all()
    assert listing_store.get(db, listing.id).price == 180.0


@pytest.mark.parametrize("field", ["status", "seller_id", "sellerId", "requested_by", "posted_at", "id"])
def test_update_rejects_lifecycle_and_identity_fields(db: Session, seller, field):
    listing = listing_store.create(db, draft(), caller_for(seller))
    with pytest.raises(ValidationError, match="cannot be updated"):
        listing_store.update(db, listing.id, {field: "x"}, caller_for(seller))


def test_bad_patch_leaves_listing_unchanged(db: Session, seller):
    listing = listing_store.create(db, draft(), caller_for(seller))
    with pytest.raises(ValidationError):
        listing_store.update(db, listing.id, {"title": "New", "price": -1}, caller_for(seller))
    db.expire_all()
    assert listing_store.get(db, listing.id).title == "Applied Physics for Engineers"


def test_update_missing_listing(db: Session, seller):
    with pytest.raises(NotFoundError):
        listing_store.update(db, "missing", {"price": 1}, caller_for(seller))


def test_delete_by_owner_and_admin(db: Session, seller, admin):
    first = listing_store.create(db, draft(), caller_for(seller))
    second = listing_store.create(db, draft(), caller_for(seller))

    listing_store.delete(db, first.id, caller_for(seller))
    listing_store.delete(db, second.id, caller_for(admin))
    assert db.query(Listing).count() == 0


def test_delete_by_stranger_is_rejected(db: Session, seller, buyer):
    listing = listing_store.create(db, draft(), caller_for(seller))
    with pytest.raises(AuthorizationError):
        listing_store.delete(db, listing.id, caller_for(buyer))
    assert listing_store.get(db, listing.id) is not None


def test_delete_missing_listing(db: Session, admin):
    with pytest.raises(NotFoundError):
        listing_store.delete(db, "missing", caller_for(admin))


def test_list_is_newest_first_and_filterable(db: Session, seller, buyer):
    base = datetime(2026, 1, 1)
    for i, subject in enumerate(["Physics", "Biology", "Physics"]):
        listing = listing_store.create(db, draft(subject=subject, title=f"Book {i}"), caller_for(seller))
        listing.posted_at = base + timedelta(days=i)
    db.commit()

    assert [l.title for l in listing_store.list_listings(db)] == ["Book 2", "Book 1", "Book 0"]
    physics = listing_store.list_listings(db, SearchFilters(subject="Physics"))
    assert [l.title for l in physics] == ["Book 2", "Book 0"]


def test_list_by_seller(db: Session, seller, buyer):
    listing_store.create(db, draft(title="Mine"), caller_for(seller))
    listing_store.create(db, draft(title="Theirs"), caller_for(buyer))
    assert [l.title for l in listing_store.list_by_seller(db, seller.id)] == ["Mine"]
    assert listing_store.list_by_seller(db, "nobody") == []
