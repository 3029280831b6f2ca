"""Outbound events of the negotiation core and the collaborator contracts that take them.

Both collaborators are fire-and-forget: implementations log their own failures
and never raise into the caller, because client state is reconciled by
polling the read endpoints, not by trusting delivery.
"""
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.mk_common.enums import NotificationType


@dataclass(frozen=True)
class NotificationEvent:
    type: NotificationType
    listing_id: str
    recipient_user_id: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ListingChanged:
    """The realtime "refresh" signal for one listing's subscribers."""

    listing_id: str
    event: str


class NotificationSinkProtocol(Protocol):
    async def emit(self, event: NotificationEvent) -> None: ...


class ListingPublisherProtocol(Protocol):
    async def publish(self, signal: ListingChanged) -> None: ...
