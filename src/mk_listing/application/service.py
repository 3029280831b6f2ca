"""ListingApplicationService — create and read listings.

Reads never trust the stored status on its own: the effective status and
badge are resolved against the clock on every call.
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.database import atomic
from src.mk_common.datetime_utils import Clock, as_utc, utc_now
from src.mk_common.errors import InvalidListingError, ListingNotFoundError
from src.mk_common.id_generator import generate_id
from src.mk_common.money import validate_amount
from src.mk_listing.application.schemas import CreateListingRequest, ListingDetail
from src.mk_listing.domain.models import Listing
from src.mk_listing.domain.repository import ListingRepositoryProtocol
from src.mk_listing.domain.status import ENDING_SOON_WINDOW, effective_status, status_badge
from src.mk_listing.infrastructure.persistence import ListingRepository
from src.mk_verification.domain.gate import require_capability
from src.mk_verification.domain.models import Caller

logger = logging.getLogger(__name__)


class ListingApplicationService:
    def __init__(
        self,
        repo: ListingRepositoryProtocol | None = None,
        clock: Clock = utc_now,
        ending_soon_window: timedelta = ENDING_SOON_WINDOW,
    ) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()
        self._clock = clock
        self._ending_soon_window = ending_soon_window

    async def create_listing(
        self, req: CreateListingRequest, caller: Caller, db: AsyncSession
    ) -> ListingDetail:
        require_capability(caller, "can_create_listings", "create listings")
        try:
            validate_amount(req.price)
        except ValueError as exc:
            raise InvalidListingError(str(exc)) from None

        now = self._clock()
        expires_at = as_utc(req.expires_at)
        if expires_at <= now:
            raise InvalidListingError("expires_at must be in the future")

        listing = Listing(
            id=generate_id(),
            seller_id=caller.account_id,
            title=req.title,
            listing_type=req.listing_type,
            price=req.price,
            allow_best_offer=req.allow_best_offer,
            created_at=now,
            expires_at=expires_at,
        )
        async with atomic(db):
            await self._repo.save(listing, db)
        logger.info(
            "Listing created id=%s seller=%s type=%s price=%s",
            listing.id, caller.account_id, listing.listing_type, listing.price,
        )
        return self._to_detail(listing)

    async def get_listing(self, listing_id: str, db: AsyncSession) -> ListingDetail:
        listing = await self._repo.get_by_id(listing_id, db)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return self._to_detail(listing)

    def _to_detail(self, listing: Listing) -> ListingDetail:
        now = self._clock()
        return ListingDetail.from_domain(
            listing,
            effective_status(listing, now, self._ending_soon_window).value,
            status_badge(listing, now, self._ending_soon_window),
        )
