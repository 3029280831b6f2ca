"""Unit tests for ListingLockRegistry."""
import asyncio

import pytest

from src.mk_common.listing_locks import ListingLockRegistry


class TestListingLockRegistry:
    async def test_entry_exists_only_while_held(self) -> None:
        locks = ListingLockRegistry()
        async with locks.for_listing("lst-1"):
            assert len(locks) == 1
        assert len(locks) == 0

    async def test_same_listing_is_serialized(self) -> None:
        locks = ListingLockRegistry()
        order: list[str] = []

        async def writer(name: str) -> None:
            async with locks.for_listing("lst-1"):
                order.append(f"{name}-in")
                await asyncio.sleep(0)
                order.append(f"{name}-out")

        await asyncio.gather(writer("a"), writer("b"))
        assert order == ["a-in", "a-out", "b-in", "b-out"]
        assert len(locks) == 0

    async def test_waiter_keeps_entry_alive_after_holder_leaves(self) -> None:
        locks = ListingLockRegistry()
        release = asyncio.Event()
        entered = asyncio.Event()

        async def holder() -> None:
            async with locks.for_listing("lst-1"):
                entered.set()
                await release.wait()

        async def waiter() -> None:
            async with locks.for_listing("lst-1"):
                assert len(locks) == 1

        first = asyncio.create_task(holder())
        await entered.wait()
        second = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        assert len(locks) == 1
        release.set()
        await asyncio.gather(first, second)
        assert len(locks) == 0

    async def test_cancelled_waiter_is_released(self) -> None:
        locks = ListingLockRegistry()
        release = asyncio.Event()
        entered = asyncio.Event()

        async def holder() -> None:
            async with locks.for_listing("lst-1"):
                entered.set()
                await release.wait()

        async def waiter() -> None:
            async with locks.for_listing("lst-1"):
                pass

        first = asyncio.create_task(holder())
        await entered.wait()
        second = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        second.cancel()
        with pytest.raises(asyncio.CancelledError):
            await second
        release.set()
        await first
        assert len(locks) == 0

    async def test_different_listings_do_not_share_an_entry(self) -> None:
        locks = ListingLockRegistry()
        async with locks.for_listing("lst-1"):
            async with locks.for_listing("lst-2"):
                assert len(locks) == 2
        assert len(locks) == 0
