"""
Result values for storefront HTTP calls.

Platform clients never raise for expected transport problems (timeouts,
rate limits, unparsable bodies). They return either a ``Success`` holding
the decoded payload or a ``Failure`` holding a ``PlatformError``; adapters
and resolver tiers decide what each failure means for them.

Example:
    >>> result = await client.resolve_packages("12345")
    >>> if isinstance(result, Failure):
    ...     logger.warning("Package lookup failed", error=str(result.error))
    ... else:
    ...     packages = result.value
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Success[T]:
    """
    A call that produced a value.

    Attributes:
        value: The decoded payload.
    """

    value: T


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """
    A call that produced an error.

    Attributes:
        error: The error value (usually a ``PlatformError``).
    """

    error: E


type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Wrap a value in a Success."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Wrap an error in a Failure."""
    return Failure(error)
