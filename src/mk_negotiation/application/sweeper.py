"""Background auction settlement.

Every `interval` seconds, settles auctions whose end time has passed. Each
round uses a fresh session; a failed round is logged and the loop carries on.
"""

import asyncio
import contextlib
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.mk_common.errors import AppError
from src.mk_negotiation.application.coordinator import NegotiationCoordinator

logger = logging.getLogger(__name__)


class AuctionSweeper:
    def __init__(
        self,
        coordinator: NegotiationCoordinator,
        session_factory: async_sessionmaker[AsyncSession],
        interval: float = 30.0,
    ) -> None:
        self._coordinator = coordinator
        self._session_factory = session_factory
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        async with self._session_factory() as db:
            outcomes = await self._coordinator.close_expired_auctions(db)
        return len(outcomes)

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except (AppError, SQLAlchemyError):
                logger.exception("Auction sweep round failed")
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._loop(), name="auction-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
