"""Outcomes of cache operations.

Handlers match on these instead of catching exceptions: an absent key or a
bad request body is an ordinary result, and store failures are classified
once, in the service, before they reach the HTTP layer.
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Stored:
    key: str


@dataclass(frozen=True)
class Cleared:
    pass


@dataclass(frozen=True)
class Found:
    value: Any


@dataclass(frozen=True)
class Missing:
    key: str


@dataclass(frozen=True)
class MalformedInput:
    reason: str


@dataclass(frozen=True)
class StoreUnavailable:
    """Connection refused, pool exhausted or deadline hit; retryable by the caller."""

    reason: str


@dataclass(frozen=True)
class StoreFailure:
    """Any other error reported by the store."""

    reason: str


StoreProblem = Union[StoreUnavailable, StoreFailure]
PutResult = Union[Stored, StoreUnavailable, StoreFailure]
GetResult = Union[Found, Missing, StoreUnavailable, StoreFailure]
ClearResult = Union[Cleared, StoreUnavailable, StoreFailure]
