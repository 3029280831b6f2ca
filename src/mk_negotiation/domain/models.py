"""Read models assembled by the coordinator."""
from dataclasses import dataclass

from src.mk_bidding.domain.models import AuctionSnapshot, BidHistoryEntry
from src.mk_common.enums import EffectiveListingStatus


@dataclass(frozen=True)
class AuctionState:
    snapshot: AuctionSnapshot
    effective_status: EffectiveListingStatus
    history: list[BidHistoryEntry]
