"""Preferred-store-with-fallback combinator.

Each repository operation runs as:

    AttemptPreferred -> Done
                     -> (RemoteStoreError) AttemptFallback -> Done (flagged)
                                                           -> Fail

Only remote store failures trigger the fallback. Errors raised by the
fallback operation propagate to the caller unchanged.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from glucodiary.core.exceptions import RemoteStoreError
from glucodiary.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FallbackResult(Generic[T]):
    """Outcome of a with_fallback call."""

    value: T
    used_fallback: bool
    preferred_error: RemoteStoreError | None = None


async def with_fallback(
    preferred: Callable[[], Awaitable[T]] | None,
    fallback: Callable[[], Awaitable[T]],
    *,
    operation: str,
) -> FallbackResult[T]:
    """Run the preferred operation, falling back on remote store failure.

    Args:
        preferred: Remote operation, or None when the remote store is disabled
        fallback: Local operation
        operation: Name used in log messages

    Returns:
        FallbackResult with the value and whether the fallback ran

    Raises:
        Whatever the fallback operation raises.
    """
    if preferred is None:
        return FallbackResult(value=await fallback(), used_fallback=False)

    try:
        return FallbackResult(value=await preferred(), used_fallback=False)
    except RemoteStoreError as e:
        logger.warning(
            "Remote store failed, using local store",
            operation=operation,
            error_type=type(e).__name__,
            error=str(e),
        )
        preferred_error = e

    value = await fallback()
    return FallbackResult(
        value=value,
        used_fallback=True,
        preferred_error=preferred_error,
    )
