# src/mk_listing/application/schemas.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.mk_common.money import MAX_AMOUNT, pounds_to_display
from src.mk_listing.domain.models import Listing
from src.mk_listing.domain.status import StatusBadge


class CreateListingRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    listing_type: Literal["auction", "classified"]
    price: int = Field(
        ...,
        le=MAX_AMOUNT,
        description="Starting (auction) or asking (classified) price, whole pounds",
    )
    allow_best_offer: bool = False
    expires_at: datetime

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped


class StatusBadgeOut(BaseModel):
    label: str
    pulse: bool

    @classmethod
    def from_domain(cls, badge: StatusBadge) -> "StatusBadgeOut":
        return cls(label=badge.label, pulse=badge.pulse)


class ListingDetail(BaseModel):
    id: str
    seller_id: str
    title: str
    listing_type: str
    price: int
    price_display: str
    allow_best_offer: bool
    status: str  # effective, re-resolved on every read
    badge: StatusBadgeOut
    expires_at: datetime
    created_at: datetime
    sale_buyer_id: str | None = None
    sale_amount: int | None = None

    @classmethod
    def from_domain(
        cls, listing: Listing, status: str, badge: StatusBadge
    ) -> "ListingDetail":
        return cls(
            id=listing.id,
            seller_id=listing.seller_id,
            title=listing.title,
            listing_type=listing.listing_type,
            price=listing.price,
            price_display=pounds_to_display(listing.price),
            allow_best_offer=listing.allow_best_offer,
            status=status,
            badge=StatusBadgeOut.from_domain(badge),
            expires_at=listing.expires_at,
            created_at=listing.created_at,
            sale_buyer_id=listing.sale_buyer_id,
            sale_amount=listing.sale_amount,
        )
