from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Optional
from datetime import datetime
from app.models import BookCondition, ListingStatus


def camel(name: str, alias: str, default: Any = ...) -> Any:
    """Field read from either spelling, written in the client's camelCase."""
    return Field(
        default,
        validation_alias=AliasChoices(name, alias),
        serialization_alias=alias,
    )


class ListingResponse(BaseModel):
    id: str
    title: str
    subject: str
    semester: str
    price: float
    condition: BookCondition
    description: str
    image: str
    seller_id: str = camel("seller_id", "sellerId")
    seller_name: str = camel("seller_name", "seller")
    status: ListingStatus
    requested_by: Optional[str] = camel("requested_by", "requestedBy", None)
    requested_by_name: Optional[str] = camel("requested_by_name", "requestedByName", None)
    posted_at: datetime = camel("posted_at", "postedAt")
    updated_at: datetime = camel("updated_at", "updatedAt")

    class Config:
        from_attributes = True


class ListingCreate(BaseModel):
    # Optional, with price untyped, so bad input surfaces as the store's 400s, not 422s
    # Left optional and untyped price so bad input surfaces as the store's 400s, not 422s
    title: Optional[str] = None
    subject: Optional[str] = None
    semester: Optional[str] = None
    price: Any = None
    condition: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None


class ListingUpdate(BaseModel):
    """
    Partial update. Unknown keys are kept so the store can reject attempts
    to change status, sellerId and friends with a clear message.
    """
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    subject: Optional[str] = None
    semester: Optional[str] = None
    price: Any = None
    condition: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
