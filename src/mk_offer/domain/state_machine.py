"""Offer status transitions.

    pending ─┬─> accepted   (seller)
             ├─> declined   (seller, or cascade when another offer is accepted)
             └─> expired    (external time sweep)

Every target is terminal.
"""
from datetime import datetime

from src.mk_common.enums import OfferStatus
from src.mk_common.errors import AlreadyResolvedError
from src.mk_offer.domain.models import Offer

_TRANSITIONS: dict[OfferStatus, frozenset[OfferStatus]] = {
    OfferStatus.PENDING: frozenset(
        {OfferStatus.ACCEPTED, OfferStatus.DECLINED, OfferStatus.EXPIRED}
    ),
    OfferStatus.ACCEPTED: frozenset(),
    OfferStatus.DECLINED: frozenset(),
    OfferStatus.EXPIRED: frozenset(),
}


def can_transition(current: OfferStatus, target: OfferStatus) -> bool:
    return target in _TRANSITIONS[current]


def transition(offer: Offer, target: OfferStatus, now: datetime) -> Offer:
    """Move `offer` to `target` in place.

    Raises AlreadyResolvedError when the offer has already left PENDING.
    """
    current = OfferStatus(offer.status)
    if current != OfferStatus.PENDING:
        raise AlreadyResolvedError(offer.id, current.value)
    if not can_transition(current, target):
        raise ValueError(f"Invalid offer transition {current.value} -> {target.value}")
    offer.status = target.value
    offer.updated_at = now
    return offer
