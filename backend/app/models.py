from sqlalchemy import Column, String, Text, DateTime, Float, Enum as SQLEnum
import uuid
from datetime import datetime
import enum
import sqlalchemy as sa
from app.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class ListingStatus(str, enum.Enum):
    AVAILABLE = "available"
    REQUESTED = "requested"
    SOLD = "sold"


class BookCondition(str, enum.Enum):
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    ACCEPTABLE = "Acceptable"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)  # Always stored lower-cased
    password_hash = Column(String, nullable=False)
    role = Column(
        SQLEnum(
            UserRole,
            name="userrole",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=UserRole.USER,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Listing(Base):
    """
    A textbook offered for sale.

    seller_name and requested_by_name are snapshots taken when the listing was
    created / requested. They are not kept in sync with the users table.
    """
    __tablename__ = "listings"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    subject = Column(String, nullable=False, index=True)
    semester = Column(String, nullable=False, index=True)
    condition = Column(
        SQLEnum(
            BookCondition,
            name="bookcondition",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
    )
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    image = Column(String, nullable=False, default="")

    # Deliberately no FK: deleting a user leaves their listings in place
    seller_id = Column(String(36), nullable=False, index=True)
    seller_name = Column(String, nullable=False)

    status = Column(
        SQLEnum(
            ListingStatus,
            name="listingstatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=ListingStatus.AVAILABLE,
        index=True,
    )
    requested_by = Column(String(36), nullable=True)
    requested_by_name = Column(String, nullable=True)

    posted_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        sa.CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
    )
