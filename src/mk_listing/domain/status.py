"""ListingStatusResolver: the one place a listing's effective status is computed.

Stored status is authoritative once it leaves ACTIVE. While ACTIVE, the
answer depends on `now`, so callers re-resolve on every read and never cache
the result across requests.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.mk_common.datetime_utils import as_utc
from src.mk_common.enums import EffectiveListingStatus, StoredListingStatus
from src.mk_listing.domain.models import Listing

ENDING_SOON_WINDOW = timedelta(hours=24)

_TERMINAL: dict[str, EffectiveListingStatus] = {
    StoredListingStatus.SOLD.value: EffectiveListingStatus.SOLD,
    StoredListingStatus.EXPIRED.value: EffectiveListingStatus.EXPIRED,
    StoredListingStatus.COMPLETED.value: EffectiveListingStatus.COMPLETED,
}

# Statuses under which the listing still takes bids and offers.
OPEN_STATUSES = frozenset({EffectiveListingStatus.ACTIVE, EffectiveListingStatus.ENDING_SOON})


def resolve_status(
    stored_status: str,
    expires_at: datetime,
    now: datetime,
    ending_soon_window: timedelta = ENDING_SOON_WINDOW,
) -> EffectiveListingStatus:
    terminal = _TERMINAL.get(stored_status)
    if terminal is not None:
        return terminal
    remaining = as_utc(expires_at) - as_utc(now)
    if remaining < timedelta(0):
        return EffectiveListingStatus.ENDED
    if remaining <= ending_soon_window:
        return EffectiveListingStatus.ENDING_SOON
    return EffectiveListingStatus.ACTIVE


def effective_status(
    listing: Listing,
    now: datetime,
    ending_soon_window: timedelta = ENDING_SOON_WINDOW,
) -> EffectiveListingStatus:
    return resolve_status(listing.status, listing.expires_at, now, ending_soon_window)


def is_open(
    listing: Listing,
    now: datetime,
    ending_soon_window: timedelta = ENDING_SOON_WINDOW,
) -> bool:
    """Whether the listing still takes bids and offers."""
    return effective_status(listing, now, ending_soon_window) in OPEN_STATUSES


@dataclass(frozen=True)
class StatusBadge:
    label: str
    pulse: bool = False


_BadgeRule = Callable[[Listing, datetime, timedelta], bool]


def _stored(status: StoredListingStatus) -> _BadgeRule:
    return lambda listing, now, window: listing.status == status.value


def _past_expiry(listing: Listing, now: datetime, window: timedelta) -> bool:
    return as_utc(now) > as_utc(listing.expires_at)


def _inside_window(listing: Listing, now: datetime, window: timedelta) -> bool:
    return as_utc(listing.expires_at) - as_utc(now) <= window


# Badge priority, highest first. Predicates read stored status and the clock
# directly, so a listing can match several (stored expired and past its end
# time); the first match wins.
_BADGE_ORDER: list[tuple[_BadgeRule, StatusBadge]] = [
    (_stored(StoredListingStatus.SOLD), StatusBadge("Sold")),
    (_past_expiry, StatusBadge("Ended")),
    (_stored(StoredListingStatus.EXPIRED), StatusBadge("Expired")),
    (_stored(StoredListingStatus.COMPLETED), StatusBadge("Completed")),
    (_inside_window, StatusBadge("Ending Soon", pulse=True)),
]
_DEFAULT_BADGE = StatusBadge("Active")


def status_badge(
    listing: Listing,
    now: datetime,
    ending_soon_window: timedelta = ENDING_SOON_WINDOW,
) -> StatusBadge:
    for matches, badge in _BADGE_ORDER:
        if matches(listing, now, ending_soon_window):
            return badge
    return _DEFAULT_BADGE
