"""Background task supervision for blocking filesystem routines."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

T = TypeVar("T")


class TaskSupervisor:
    """Structured-concurrency boundary for fire-and-forget background routines.

    Spawned callables run in worker threads via ``asyncio.to_thread`` inside an
    ``asyncio.TaskGroup``; leaving the ``async with`` block waits for every
    spawned routine. The supervisor is owned by the application lifecycle, not
    by the routines it runs.
    """

    def __init__(self) -> None:
        self._group: asyncio.TaskGroup | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    async def __aenter__(self) -> TaskSupervisor:
        if self._group is not None:
            raise RuntimeError("task supervisor is already active")
        group = asyncio.TaskGroup()
        await group.__aenter__()
        self._group = group
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        group = self._require_group()
        try:
            return await group.__aexit__(exc_type, exc, tb)
        finally:
            self._group = None

    @property
    def active(self) -> bool:
        return self._group is not None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, name: str, func: Callable[..., T], /, *args: object) -> asyncio.Task[T]:
        """Run ``func(*args)`` on a worker thread and return its task immediately.

        Must be called from the event loop that entered the supervisor.
        """

        group = self._require_group()
        task: asyncio.Task[T] = group.create_task(asyncio.to_thread(func, *args), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def join(self) -> None:
        """Wait until every routine spawned so far has finished."""

        while self._tasks:
            await asyncio.wait(tuple(self._tasks))

    def _require_group(self) -> asyncio.TaskGroup:
        if self._group is None:
            raise RuntimeError("task supervisor is not active; use 'async with'")
        return self._group


__all__ = ["TaskSupervisor"]
