# backend/app/scripts/seed_books.py

"""
Seed the marketplace with demo accounts and textbook listings.

Usage examples:

  # Wipe users + listings, then load the demo data
  cd backend
  python -m app.scripts.seed_books

  # Only add what's missing (matches users by email, listings by seller + title)
  python -m app.scripts.seed_books --keep-existing
"""

import argparse
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.database import SessionLocal, init_db
from app import models
from app.core.security import get_password_hash
from app.services.user_service import normalize_email

DEMO_USERS = [
    {"key": "admin", "name": "Admin User", "email": "admin@campus.edu", "password": "admin123", "role": "admin"},
    {"key": "riya", "name": "Riya Sharma", "email": "riya@campus.edu", "password": "password123", "role": "user"},
    {"key": "arjun", "name": "Arjun Mehta", "email": "arjun@campus.edu", "password": "password123", "role": "user"},
    {"key": "priya", "name": "Priya Nair", "email": "priya@campus.edu", "password": "password123", "role": "user"},
]

# age_hours staggers posted_at so "newest first" has a stable demo order
DEMO_LISTINGS = [
    {
        "title": "Engineering Mathematics Vol. 1",
        "subject": "Mathematics",
        "semester": "Semester 1",
        "price": 320,
        "seller": "riya",
        "description": "Good condition, no highlights. Perfect for first-year students.",
        "condition": "Good",
        "age_hours": 48,
    },
    {
        "title": "Principles of Biology",
        "subject": "Biology",
        "semester": "Semester 2",
        "price": 250,
        "seller": "arjun",
        "description": "Slightly used, all pages intact. Key concepts are color-coded.",
        "condition": "Like New",
        "age_hours": 24,
    },
    {
        "title": "Applied Physics for Engineers",
        "subject": "Physics",
        "semester": "Semester 1",
        "price": 180,
        "seller": "priya",
        "description": "Minor highlights in first 2 chapters. Very helpful for exams.",
        "condition": "Fair",
        "age_hours": 72,
    },
    {
        "title": "Data Structures & Algorithms",
        "subject": "Computer Science",
        "semester": "Semester 3",
        "price": 450,
        "seller": "riya",
        "description": "Brand new condition, barely used. Contains handwritten notes.",
        "condition": "Like New",
        "age_hours": 5,
    },
    {
        "title": "Microeconomics: Theory & Practice",
        "subject": "Economics",
        "semester": "Semester 4",
        "price": 290,
        "seller": "arjun",
        "description": "Well maintained, extra practice problems included inside.",
        "condition": "Good",
        "age_hours": 96,
    },
    {
        "title": "Literary Theory & Criticism",
        "subject": "English Literature",
        "semester": "Semester 5",
        "price": 150,
        "seller": "priya",
        "description": "Clean copy, no markings. Purchased last semester, no longer needed.",
        "condition": "Like New",
        "age_hours": 168,
    },
]


def _upsert_users(db: Session) -> dict:
    """Create demo users that don't exist yet; return them keyed by DEMO_USERS key."""
    users = {}
    for row in DEMO_USERS:
        email = normalize_email(row["email"])
        user = db.query(models.User).filter(models.User.email == email).first()
        if user is None:
            user = models.User(
                name=row["name"],
                email=email,
                password_hash=get_password_hash(row["password"]),
                role=models.UserRole(row["role"]),
            )
            db.add(user)
            db.flush()
            print(f"[seed_books] Created user: {user.name} <{user.email}> ({row['role']})")
        users[row["key"]] = user
    return users


def seed(db: Session, keep_existing: bool = False) -> dict:
    if not keep_existing:
        deleted_listings = db.query(models.Listing).delete()
        deleted_users = db.query(models.User).delete()
        print(f"[seed_books] Cleared {deleted_users} users and {deleted_listings} listings")

    users = _upsert_users(db)
    now = datetime.utcnow()

    created = 0
    skipped = 0
    for row in DEMO_LISTINGS:
        seller = users[row["seller"]]
        existing = db.query(models.Listing).filter(
            models.Listing.seller_id == seller.id,
            models.Listing.title == row["title"],
        ).first()
        if existing:
            skipped += 1
            continue

        db.add(models.Listing(
            title=row["title"],
            subject=row["subject"],
            semester=row["semester"],
            price=float(row["price"]),
            condition=models.BookCondition(row["condition"]),
            description=row["description"],
            image="",
            seller_id=seller.id,
            seller_name=seller.name,
            status=models.ListingStatus.AVAILABLE,
            posted_at=now - timedelta(hours=row["age_hours"]),
        ))
        created += 1

    db.commit()
    return {"users": len(users), "created": created, "skipped": skipped}


def main():
    parser = argparse.ArgumentParser(
        description="Seed the marketplace with demo users and textbook listings."
    )
    parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="Do not wipe users and listings first; only add missing demo rows.",
    )
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        result = seed(db, keep_existing=args.keep_existing)
    finally:
        db.close()

    print(
        f"[seed_books] Seed complete. Users={result['users']}, "
        f"Created={result['created']}, Skipped={result['skipped']}"
    )
    print("[seed_books] Admin login: admin@campus.edu / admin123")
    print("[seed_books] User login:  riya@campus.edu / password123")


if __name__ == "__main__":
    main()
