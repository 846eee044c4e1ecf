"""Memoizing wrapper composing the cache store and the usage ledger.

A wrapped remote call behaves like this:

1. derive the cache key from the call arguments;
2. on a cache hit, return the cached value without calling out or billing;
3. if the ledger refuses the category, raise ``BudgetExceededError``;
4. otherwise await the remote call, record usage, write the cache and
   return the result;
5. if the remote call raises, the exception propagates untouched and
   nothing is cached or billed.

The wrapper itself holds no state. Without a coalescer, two concurrent
first calls for the same key both miss and both reach the provider (and
both get billed); pass a ``RequestCoalescer`` to share one in-flight call.

The remote call and its bookkeeping run in a shielded cancel scope: once a
call is in flight it completes and is memoized even if the caller stops
waiting.
"""

import functools
import inspect
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import anyio

from .cache.keys import hashed_key
from .cache.store import CacheStore
from .coalescing import RequestCoalescer
from .usage.costs import resolve_category
from .usage.ledger import UsageLedger
from ..domain.exceptions import BudgetExceededError
from ..enums import UsageCategory
from ..logging import debug, LogRecord, LogEvent

T = TypeVar("T")
RemoteCall = Callable[..., Awaitable[T]]

_MISSING = object()


def memoize(
    remote_call: RemoteCall,
    *,
    cache: CacheStore,
    ledger: UsageLedger,
    category: Union[UsageCategory, str],
    key_fn: Optional[Callable[..., str]] = None,
    ttl_seconds: Optional[float] = None,
    weight_fn: Optional[Callable[..., float]] = None,
    coalescer: Optional[RequestCoalescer] = None,
) -> RemoteCall:
    """
    Wrap an async remote call with caching and budget accounting.

    Args:
        remote_call: Coroutine function performing the billable request
        cache: Shared cache store
        ledger: Shared usage ledger
        category: Billing category of the call
        key_fn: Builds the cache key from the call arguments. The default
            hashes the arguments by value and raises TypeError for objects
            it cannot encode, so pass one for such arguments
        ttl_seconds: Lifetime of cached results, the store default when None
        weight_fn: Billed units per call from the call arguments, 1 when None
        coalescer: Shares in-flight calls between concurrent callers

    Returns:
        Coroutine function with the same signature as ``remote_call``

    Raises:
        UnknownCategoryError: If ``category`` is not registered
        TypeError: If ``remote_call`` is not a coroutine function
    """
    if not inspect.iscoroutinefunction(remote_call):
        raise TypeError("memoize() expects a coroutine function")
    resolved = resolve_category(category)
    make_key = key_fn or functools.partial(hashed_key, remote_call.__qualname__)

    async def call_and_record(key: str, args: tuple, kwargs: dict) -> Any:
        with anyio.CancelScope(shield=True):
            result = await remote_call(*args, **kwargs)
            weight = weight_fn(*args, **kwargs) if weight_fn else 1
            ledger.record_usage(resolved, weight=weight)
            cache.set(key, result, ttl_seconds)
        debug(
            LogRecord(
                event=LogEvent.REMOTE_CALL.value,
                message="Remote call result cached",
                data={"category": resolved.value, "cache_key": key, "weight": weight},
            )
        )
        return result

    @functools.wraps(remote_call)
    async def wrapped(*args: Any, **kwargs: Any) -> Any:
        key = make_key(*args, **kwargs)

        cached = cache.get(key, _MISSING)
        if cached is not _MISSING:
            debug(
                LogRecord(
                    event=LogEvent.CACHE_HIT.value,
                    message="Cache hit",
                    data={"category": resolved.value, "cache_key": key},
                )
            )
            return cached

        debug(
            LogRecord(
                event=LogEvent.CACHE_MISS.value,
                message="Cache miss",
                data={"category": resolved.value, "cache_key": key},
            )
        )
        if not ledger.should_allow(resolved):
            status = ledger.budget_status()
            raise BudgetExceededError(
                f"Daily API budget exceeded for {resolved.value}",
                category=resolved.value,
                budget_status=status.model_dump(mode="json"),
            )

        if coalescer is None:
            return await call_and_record(key, args, kwargs)
        return await coalescer.run(key, lambda: call_and_record(key, args, kwargs))

    wrapped.cache_key = make_key  # type: ignore[attr-defined]
    return wrapped


class Memoizer:
    """Holds the process-wide cache, ledger and coalescer used by wrapped calls."""

    def __init__(
        self,
        cache: CacheStore,
        ledger: UsageLedger,
        coalescer: Optional[RequestCoalescer] = None,
    ):
        self.cache = cache
        self.ledger = ledger
        self.coalescer = coalescer

    def wrap(
        self,
        remote_call: RemoteCall,
        *,
        category: Union[UsageCategory, str],
        key_fn: Optional[Callable[..., str]] = None,
        ttl_seconds: Optional[float] = None,
        weight_fn: Optional[Callable[..., float]] = None,
    ) -> RemoteCall:
        return memoize(
            remote_call,
            cache=self.cache,
            ledger=self.ledger,
            category=category,
            key_fn=key_fn,
            ttl_seconds=ttl_seconds,
            weight_fn=weight_fn,
            coalescer=self.coalescer,
        )

    def cached(
        self,
        *,
        category: Union[UsageCategory, str],
        key_fn: Optional[Callable[..., str]] = None,
        ttl_seconds: Optional[float] = None,
        weight_fn: Optional[Callable[..., float]] = None,
    ) -> Callable[[RemoteCall], RemoteCall]:
        """Decorator form of :meth:`wrap`."""

        def decorator(remote_call: RemoteCall) -> RemoteCall:
            return self.wrap(
                remote_call,
                category=category,
                key_fn=key_fn,
                ttl_seconds=ttl_seconds,
                weight_fn=weight_fn,
            )

        return decorator
