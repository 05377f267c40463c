"""Write serialization for the shared queue and match set."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from smashqueue.utils.errors import storage_errors


@dataclass
class WriteLocks:
    """Single-writer critical sections.

    ``queue`` guards join/leave/call-next and queue consumption; ``match``
    guards every match write. When both are held, ``match`` is acquired
    first. Each holder commits before releasing.

    One instance per application (``app.state.write_locks``); locks must be
    created inside the running event loop that uses them.
    """

    queue: asyncio.Lock = field(default_factory=asyncio.Lock)
    match: asyncio.Lock = field(default_factory=asyncio.Lock)


@asynccontextmanager
async def critical_section(session: AsyncSession, *locks: asyncio.Lock) -> AsyncIterator[None]:
    """Hold ``locks`` (in the given order) around a unit of work.

    Any error rolls the session back before the locks are released, so no
    other writer observes a half-applied change. Storage failures surface as
    ``TransientError``.

    Usage:
        async with critical_section(self.db, self.locks.queue):
            ...
            await self.db.commit()
    """
    async with AsyncExitStack() as stack:
        for lock in locks:
            await stack.enter_async_context(lock)
        try:
            async with storage_errors():
                yield
        except Exception:
            await session.rollback()
            raise
