"""Deduplication of concurrent identical remote calls."""

from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import anyio

from ..logging import debug, LogRecord, LogEvent

T = TypeVar("T")


class _InFlightCall:
    def __init__(self):
        self.done = anyio.Event()
        self.completed = False
        self.result: Any = None
        self.error: Optional[Exception] = None
        self.followers = 0


class RequestCoalescer:
    """
    Lets concurrent callers for the same key share one in-flight call.

    The first caller (the leader) runs the factory; callers arriving while it
    is in flight wait for it and receive its result or its exception. If the
    leader is cancelled before finishing, a waiting caller takes over.
    """

    def __init__(self):
        self._in_flight: Dict[str, _InFlightCall] = {}

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        while True:
            call = self._in_flight.get(key)
            if call is None:
                return await self._lead(key, factory)

            call.followers += 1
            debug(
                LogRecord(
                    event=LogEvent.REQUEST_COALESCED.value,
                    message="Waiting for in-flight call",
                    data={"cache_key": key, "followers": call.followers},
                )
            )
            await call.done.wait()
            if not call.completed:
                continue
            if call.error is not None:
                raise call.error
            return call.result

    async def _lead(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        call = _InFlightCall()
        self._in_flight[key] = call
        try:
            call.result = await factory()
            call.completed = True
            return call.result
        except Exception as e:
            call.error = e
            call.completed = True
            raise
        finally:
            self._in_flight.pop(key, None)
            call.done.set()
