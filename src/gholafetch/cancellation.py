"""Cancellation and timeout coordination for in-flight calls.

A caller cancels a request through a :class:`CancellationToken`.  The
pipeline asks the :class:`CancellationCoordinator` for one
:class:`CancellationHandle` per call; the handle merges the token with an
internal timer and remembers which of the two fired first, so a timeout
can be reported as such (status 408) while any other abort is reported as
a transport failure (status 0).

Example::

    token = CancellationToken()
    task = asyncio.create_task(client.get("/slow", cancel_token=token))
    token.cancel("user pressed stop")
"""

from __future__ import annotations

import asyncio
import enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


class CancelSource(str, enum.Enum):
    """Which source aborted a call."""

    TIMEOUT = "timeout"
    EXTERNAL = "external"


class RequestCancelled(Exception):
    """Raised by :meth:`CancellationHandle.run` when a source fired first."""

    def __init__(self, source: CancelSource, reason: Optional[str] = None) -> None:
        super().__init__(reason or f"Request cancelled ({source.value})")
        self.source = source
        self.reason = reason


class CancellationToken:
    """Externally controlled cancellation signal.

    Cancelling is idempotent.  One token may be shared by several calls.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: Optional[str] = None
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: Optional[str] = None) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self.reason = reason
        for callback in list(self._callbacks):
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[], None]) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass


class CancellationHandle:
    """Per-call merge of a timeout and an optional external token.

    Must be entered (``with handle:``) inside the running event loop before
    :meth:`run` is used.  Leaving the block always clears the timer and
    detaches from the token, whatever the outcome of the call.

    Attributes:
        timeout: Effective timeout in seconds, or ``None``.
        token: External token, or ``None``.
        fired: The source that cancelled the call, once one has.
    """

    def __init__(self, timeout: Optional[float] = None, token: Optional[CancellationToken] = None) -> None:
        self.timeout = timeout
        self.token = token
        self.fired: Optional[CancelSource] = None
        self._event: Optional[asyncio.Event] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def __enter__(self) -> CancellationHandle:
        self._loop = asyncio.get_running_loop()
        self._event = asyncio.Event()
        if self.token is not None:
            if self.token.cancelled:
                self._fire(CancelSource.EXTERNAL)
            else:
                self.token.add_callback(self._on_token_cancelled)
        if self.timeout is not None and self.fired is None:
            self._timer = self._loop.call_later(self.timeout, self._fire, CancelSource.TIMEOUT)
        return self

    def __exit__(self, *args: object) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.token is not None:
            self.token.remove_callback(self._on_token_cancelled)

    @property
    def cancelled(self) -> bool:
        return self.fired is not None

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless a cancellation source fires first.

        Raises:
            RequestCancelled: If the timeout or the token fired before
                *awaitable* completed.  The underlying task is cancelled.
        """
        assert self._event is not None, "CancellationHandle must be entered before run()"

        if self.fired is not None:
            _discard(awaitable)
            raise self._cancelled_error()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        try:
            await task
        except (asyncio.CancelledError, Exception):
            # Whatever the aborted transport raised, the cancellation is the outcome.
            pass
        raise self._cancelled_error()

    def _cancelled_error(self) -> RequestCancelled:
        assert self.fired is not None
        reason = self.token.reason if self.fired == CancelSource.EXTERNAL and self.token else None
        return RequestCancelled(self.fired, reason)

    def _on_token_cancelled(self) -> None:
        assert self._loop is not None
        self._loop.call_soon_threadsafe(self._fire, CancelSource.EXTERNAL)

    def _fire(self, source: CancelSource) -> None:
        if self.fired is not None:
            return
        self.fired = source
        if self._event is not None:
            self._event.set()


class CancellationCoordinator:
    """Creates one :class:`CancellationHandle` per call.

    Args:
        default_timeout: Timeout in seconds used when the call does not set
            its own.  ``None`` disables the timer.
    """

    def __init__(self, default_timeout: Optional[float] = None) -> None:
        self.default_timeout = default_timeout

    def acquire(
        self,
        timeout: Optional[float] = None,
        token: Optional[CancellationToken] = None,
    ) -> CancellationHandle:
        effective = timeout if timeout is not None else self.default_timeout
        return CancellationHandle(effective, token)


def _discard(awaitable: Any) -> None:
    """Close a coroutine that will never be awaited."""
    close = getattr(awaitable, "close", None)
    if asyncio.iscoroutine(awaitable) and close is not None:
        close()
