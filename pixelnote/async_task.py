"""Non-blocking polling of background work from a frame loop.

A task wraps either a :class:`concurrent.futures.Future` or an awaitable.
Awaitables are advanced one step per poll without an event loop, so they
must only await objects that simply yield until they are ready.
"""

from __future__ import annotations

import concurrent.futures
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

_PENDING = object()


class _Poller:
    def __init__(self, source: Any) -> None:
        if isinstance(source, concurrent.futures.Future):
            self._future: Optional[concurrent.futures.Future] = source
            self._steps = None
        elif hasattr(source, "__await__"):
            self._future = None
            self._steps = source.__await__()
        else:
            raise TypeError(
                f"expected a Future or an awaitable, got {type(source).__name__}"
            )

    def poll(self) -> Any:
        """Return the result, ``_PENDING``, or raise the work's exception."""
        if self._future is not None:
            if not self._future.done():
                return _PENDING
            return self._future.result()
        try:
            next(self._steps)
        except StopIteration as finished:
            return finished.value
        return _PENDING


class AsyncTask(Generic[T]):
    """Work whose result is handed out exactly once."""

    def __init__(self, source: Any) -> None:
        self._poller: Optional[_Poller] = _Poller(source)

    def data(self) -> Optional[T]:
        """Return the result once finished, ``None`` while still pending.

        An exception raised by the work is raised here. Polling again after
        the outcome was delivered raises :class:`RuntimeError`.
        """
        if self._poller is None:
            raise RuntimeError("the result of an AsyncTask must not be used after it returned")
        try:
            result = self._poller.poll()
        except BaseException:
            self._poller = None
            raise
        if result is _PENDING:
            return None
        self._poller = None
        return result


class AsyncRefTask(Generic[T]):
    """Work whose result is kept and returned on every poll once finished."""

    def __init__(self, source: Any) -> None:
        self._poller: Optional[_Poller] = _Poller(source)
        self._value: Any = _PENDING
        self._error: Optional[BaseException] = None

    @classmethod
    def ready(cls, value: T) -> "AsyncRefTask[T]":
        task = cls.__new__(cls)
        task._poller = None
        task._value = value
        task._error = None
        return task

    def data(self) -> Optional[T]:
        """Return the kept result, ``None`` while pending.

        If the work failed, its exception is raised on every call.
        """
        if self._poller is not None:
            try:
                result = self._poller.poll()
            except Exception as error:
                self._poller = None
                self._error = error
            else:
                if result is not _PENDING:
                    self._poller = None
                    self._value = result
        if self._error is not None:
            raise self._error
        if self._value is _PENDING:
            return None
        return self._value