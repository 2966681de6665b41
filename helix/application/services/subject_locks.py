"""Per-subject serialization of profile computation."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict


@dataclass
class _SubjectLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0  # tasks holding or waiting for the lock


class SubjectLockRegistry:
    """
    Hands out one asyncio.Lock per subject.

    Profile computation for a subject runs under its lock so concurrent
    triggers never append snapshots from inconsistent partial views, while
    different subjects proceed in parallel. A subject's lock is dropped once
    no task holds or waits for it.
    """

    def __init__(self):
        self._locks: Dict[str, _SubjectLock] = {}

    @asynccontextmanager
    async def hold(self, subject_id: str) -> AsyncIterator[None]:
        """Run the body under the subject's lock."""
        # No await between lookup and insert, so this is atomic on the loop
        entry = self._locks.get(subject_id)
        if entry is None:
            entry = _SubjectLock()
            self._locks[subject_id] = entry
        entry.holders += 1

        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._locks[subject_id]

    def __len__(self) -> int:
        return len(self._locks)
