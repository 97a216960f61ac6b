"""Latest-value progress broadcast with immediate replay to new subscribers."""

from __future__ import annotations

import asyncio
import contextlib
import queue
import threading
import time
from collections import deque
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Final

from sandbox_bootstrap.domain.progress import ProgressState

Subscriber = Callable[[ProgressState], object]

_DEFAULT_ERROR_BUFFER: Final[int] = 256
_STOP: Final = object()


@dataclass(frozen=True, slots=True)
class DispatchError:
    """Subscriber failure captured without interrupting the publisher."""

    target: str
    error_type: str
    message: str


class _Subscription:
    """One subscriber's FIFO of pending snapshots and the thread draining it."""

    __slots__ = ("callback", "_active", "_deliver", "_queue", "_thread")

    def __init__(
        self,
        token: int,
        callback: Subscriber,
        deliver: Callable[[Subscriber, ProgressState], DispatchError | None],
    ) -> None:
        self.callback = callback
        self._active = True
        self._deliver = deliver
        self._queue: queue.SimpleQueue[object] = queue.SimpleQueue()
        self._thread = threading.Thread(
            target=self._drain,
            name=f"progress-subscriber-{token}",
            daemon=True,
        )

    @property
    def thread(self) -> threading.Thread:
        return self._thread

    def start(self) -> None:
        self._thread.start()

    def enqueue(self, item: object) -> None:
        self._queue.put(item)

    def deactivate(self) -> None:
        """Drop undelivered snapshots and let the worker exit."""
        self._active = False
        self._queue.put(_STOP)

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            if isinstance(item, threading.Event):
                item.set()
            elif self._active:
                self._deliver(self.callback, item)  # type: ignore[arg-type]


class ProgressChannel:
    """Single-slot publish/subscribe channel carrying ``ProgressState`` snapshots.

    Only the most recent snapshot is retained. ``subscribe`` queues it for the
    new subscriber first, then every later snapshot in publish order.
    Publishing may happen from any thread and only enqueues; each subscription
    runs its callback on its own worker thread, so a slow observer delays
    nobody but itself. Subscriber exceptions are recorded and never reach the
    publisher.
    """

    def __init__(self, *, error_buffer_size: int = _DEFAULT_ERROR_BUFFER) -> None:
        if error_buffer_size <= 0:
            raise ValueError("error_buffer_size must be > 0")
        # Guards the slot, the subscription table, and every enqueue, so the
        # replay always lands ahead of later publications.
        self._state_lock = threading.Lock()
        self._latest: ProgressState | None = None
        self._subscriptions: dict[int, _Subscription] = {}
        self._next_token = 1
        self._closed = False
        self._dispatch_errors = deque[DispatchError](maxlen=error_buffer_size)

    @property
    def latest(self) -> ProgressState | None:
        with self._state_lock:
            return self._latest

    @property
    def closed(self) -> bool:
        with self._state_lock:
            return self._closed

    def subscribe(self, callback: Subscriber) -> int:
        """Register ``callback`` and queue the latest snapshot for it, if any."""

        if not callable(callback):
            raise ValueError("callback must be callable")

        with self._state_lock:
            if self._closed:
                raise RuntimeError("progress channel is closed")
            token = self._next_token
            self._next_token += 1
            subscription = _Subscription(token, callback, self._deliver)
            if self._latest is not None:
                subscription.enqueue(self._latest)
            self._subscriptions[token] = subscription
        subscription.start()
        return token

    def unsubscribe(self, token: int) -> bool:
        """Remove a subscription. Returns ``True`` when the token existed.

        Snapshots still queued for it are discarded.
        """

        with self._state_lock:
            subscription = self._subscriptions.pop(token, None)
            if subscription is None:
                return False
            subscription.deactivate()
        return True

    def publish(self, state: ProgressState) -> None:
        """Replace the latest snapshot and queue it for every subscriber."""

        if not isinstance(state, ProgressState):
            raise ValueError(f"state must be ProgressState, got {type(state).__name__}")

        with self._state_lock:
            self._latest = state
            for subscription in self._subscriptions.values():
                subscription.enqueue(state)

    def flush(self, timeout: float | None = None) -> bool:
        """Block until every snapshot queued so far for a live subscription is delivered.

        Returns ``False`` when ``timeout`` seconds pass first. A subscriber
        calling this from its own callback does not wait on itself.
        """

        current = threading.current_thread()
        markers: list[threading.Event] = []
        with self._state_lock:
            for subscription in self._subscriptions.values():
                if subscription.thread is current:
                    continue
                marker = threading.Event()
                subscription.enqueue(marker)
                markers.append(marker)

        deadline = None if timeout is None else time.monotonic() + max(timeout, 0.0)
        for marker in markers:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
            if not marker.wait(remaining):
                return False
        return True

    def close(self) -> None:
        """Refuse new subscribers and stop every worker once its queue drains."""

        with self._state_lock:
            self._closed = True
            subscriptions = tuple(self._subscriptions.values())
            self._subscriptions.clear()
            for subscription in subscriptions:
                subscription.enqueue(_STOP)

    def dispatch_errors(self) -> tuple[DispatchError, ...]:
        with self._state_lock:
            return tuple(self._dispatch_errors)

    async def updates(self) -> AsyncIterator[ProgressState]:
        """Yield the latest snapshot and every later one on the caller's event loop.

        The subscription worker hands snapshots over with
        ``call_soon_threadsafe`` and never waits for the consumer.
        """

        loop = asyncio.get_running_loop()
        pending: asyncio.Queue[ProgressState] = asyncio.Queue()

        def forward(state: ProgressState) -> None:
            loop.call_soon_threadsafe(pending.put_nowait, state)

        token = self.subscribe(forward)
        try:
            while True:
                yield await pending.get()
        finally:
            self.unsubscribe(token)

    async def wait_for(self, predicate: Callable[[ProgressState], bool]) -> ProgressState:
        """Return the first snapshot (latest included) satisfying ``predicate``."""

        async with contextlib.aclosing(self.updates()) as updates:
            async for state in updates:
                if predicate(state):
                    return state
        raise AssertionError("unreachable")  # pragma: no cover

    def _deliver(self, callback: Subscriber, state: ProgressState) -> DispatchError | None:
        try:
            callback(state)
        except Exception as exc:  # noqa: BLE001 - subscriber isolation boundary.
            error = DispatchError(
                target=_callback_name(callback),
                error_type=exc.__class__.__name__,
                message=str(exc),
            )
            with self._state_lock:
                self._dispatch_errors.append(error)
            return error
        return None


def _callback_name(callback: object) -> str:
    name = getattr(callback, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return callback.__class__.__name__


__all__ = ["DispatchError", "ProgressChannel", "Subscriber"]
