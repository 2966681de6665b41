"""
Unit Tests for per-subject locking.

These tests verify:
1. Work for one subject is serialized
2. Different subjects do not wait on each other
3. A subject's lock is dropped once nobody holds or waits for it
"""

import asyncio

import pytest

from helix.application.services import SubjectLockRegistry


@pytest.fixture
def locks() -> SubjectLockRegistry:
    return SubjectLockRegistry()


# =============================================================================
# Serialization Tests
# =============================================================================

class TestSerialization:
    """Tests for mutual exclusion per subject."""

    @pytest.mark.asyncio
    async def test_same_subject_runs_one_at_a_time(self, locks: SubjectLockRegistry):
        active = 0
        peak = 0

        async def work():
            nonlocal active, peak
            async with locks.hold("subject-1"):
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0)
                active -= 1

        await asyncio.gather(*(work() for _ in range(5)))

        assert peak == 1

    @pytest.mark.asyncio
    async def test_different_subjects_do_not_block(self, locks: SubjectLockRegistry):
        first_entered = asyncio.Event()
        release_first = asyncio.Event()

        async def first():
            async with locks.hold("subject-1"):
                first_entered.set()
                await release_first.wait()

        task = asyncio.create_task(first())
        await first_entered.wait()

        # Would hang if subject-2 shared subject-1's lock
        async with locks.hold("subject-2"):
            assert len(locks) == 2

        release_first.set()
        await task


# =============================================================================
# Eviction Tests
# =============================================================================

class TestEviction:
    """Tests that the registry does not keep idle subjects."""

    @pytest.mark.asyncio
    async def test_registry_is_empty_after_use(self, locks: SubjectLockRegistry):
        async def work(subject_id: str):
            async with locks.hold(subject_id):
                await asyncio.sleep(0)

        await asyncio.gather(*(work(f"subject-{i % 3}") for i in range(9)))

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_is_kept_while_a_waiter_remains(self, locks: SubjectLockRegistry):
        holder_entered = asyncio.Event()
        release_holder = asyncio.Event()
        order = []

        async def holder():
            async with locks.hold("subject-1"):
                holder_entered.set()
                await release_holder.wait()
                order.append("holder")

        async def waiter():
            async with locks.hold("subject-1"):
                order.append("waiter")

        holder_task = asyncio.create_task(holder())
        await holder_entered.wait()
        waiter_task = asyncio.create_task(waiter())
        await asyncio.sleep(0)

        assert len(locks) == 1
        release_holder.set()
        await asyncio.gather(holder_task, waiter_task)

        assert order == ["holder", "waiter"]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_is_released(self, locks: SubjectLockRegistry):
        holder_entered = asyncio.Event()
        release_holder = asyncio.Event()

        async def holder():
            async with locks.hold("subject-1"):
                holder_entered.set()
                await release_holder.wait()

        async def waiter():
            async with locks.hold("subject-1"):
                pass

        holder_task = asyncio.create_task(holder())
        await holder_entered.wait()
        waiter_task = asyncio.create_task(waiter())
        await asyncio.sleep(0)

        waiter_task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter_task
        release_holder.set()
        await holder_task

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_error_in_body_releases_the_lock(self, locks: SubjectLockRegistry):
        with pytest.raises(RuntimeError):
            async with locks.hold("subject-1"):
                raise RuntimeError("scoring failed")

        assert len(locks) == 0
