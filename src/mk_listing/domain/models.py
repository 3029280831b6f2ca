"""Listing domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Listing:
    id: str
    seller_id: str
    title: str
    listing_type: str  # auction / classified
    price: int  # starting / asking price, whole pounds
    allow_best_offer: bool
    created_at: datetime
    expires_at: datetime
    status: str = "active"  # stored status: active / sold / expired / completed
    sale_buyer_id: str | None = None
    sale_amount: int | None = None
    updated_at: datetime | None = None

    @property
    def is_auction(self) -> bool:
        return self.listing_type == "auction"
