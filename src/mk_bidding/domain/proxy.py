"""Proxy (English auction) resolution over an append-only bid history.

Rules:
  - each bidder is represented by the largest maximum they have submitted
  - the leader is the bidder with the largest maximum; equal maxima go to
    whoever was admitted first
  - visible price = min(leader max, runner-up max + increment); with no
    runner-up the listing's starting price stands in for the runner-up
  - the next acceptable bid is visible price + increment, or the starting
    price when nobody has bid yet
"""

from dataclasses import dataclass

from src.mk_bidding.domain.models import AuctionSnapshot, Bid, BidHistoryEntry, UserBidStatus

DEFAULT_BID_INCREMENT = 5


@dataclass(frozen=True)
class _Standing:
    user_id: str
    maximum: int
    seq: int


def _standings(bids: list[Bid]) -> list[_Standing]:
    best: dict[str, _Standing] = {}
    for bid in bids:
        current = best.get(bid.user_id)
        if (
            current is None
            or bid.amount > current.maximum
            or (bid.amount == current.maximum and bid.seq < current.seq)
        ):
            best[bid.user_id] = _Standing(bid.user_id, bid.amount, bid.seq)
    return sorted(best.values(), key=lambda s: (-s.maximum, s.seq))


def fold(
    listing_id: str,
    bids: list[Bid],
    starting_price: int,
    increment: int = DEFAULT_BID_INCREMENT,
) -> AuctionSnapshot:
    if not bids:
        return AuctionSnapshot(
            listing_id=listing_id,
            current_price=starting_price,
            highest_bid=None,
            highest_bidder_id=None,
            bid_count=0,
            minimum_next_bid=starting_price,
        )

    ranked = _standings(bids)
    leader = ranked[0]
    runner_up = ranked[1].maximum if len(ranked) > 1 else starting_price
    current_price = min(leader.maximum, runner_up + increment)
    return AuctionSnapshot(
        listing_id=listing_id,
        current_price=current_price,
        highest_bid=leader.maximum,
        highest_bidder_id=leader.user_id,
        bid_count=len(bids),
        minimum_next_bid=current_price + increment,
    )


def user_bid_status(bids: list[Bid], user_id: str, snapshot: AuctionSnapshot) -> UserBidStatus:
    own = [b.amount for b in bids if b.user_id == user_id]
    if not own:
        return UserBidStatus(
            has_bid=False, is_highest_bidder=False, user_highest_bid=0, user_maximum_bid=0
        )
    maximum = max(own)
    leading = snapshot.highest_bidder_id == user_id
    return UserBidStatus(
        has_bid=True,
        is_highest_bidder=leading,
        # An outbid user was pushed all the way to their ceiling.
        user_highest_bid=snapshot.current_price if leading else maximum,
        user_maximum_bid=maximum,
    )


def bid_history(
    listing_id: str,
    bids: list[Bid],
    starting_price: int,
    increment: int = DEFAULT_BID_INCREMENT,
) -> list[BidHistoryEntry]:
    """Newest first. Each entry shows the visible price after that bid landed."""
    ordered = sorted(bids, key=lambda b: b.seq)
    entries = []
    for i, bid in enumerate(ordered):
        snapshot = fold(listing_id, ordered[: i + 1], starting_price, increment)
        entries.append(
            BidHistoryEntry(
                bid_id=bid.id,
                user_id=bid.user_id,
                amount=snapshot.current_price,
                created_at=bid.created_at,
            )
        )
    entries.reverse()
    return entries
