"""
Typed lookup results.

Repositories return a Lookup for expected absence and raise
ExternalServiceError for transport failures, so callers never
confuse "no such row" with "Sheets is down".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar


T = TypeVar("T")


class LookupStatus(str, Enum):
    """Outcome of a lookup."""
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """A found value or the reason it was not found."""
    status: LookupStatus
    value: Optional[T] = None
    reason: str = ""

    @classmethod
    def found(cls, value: T) -> "Lookup[T]":
        return cls(status=LookupStatus.FOUND, value=value)

    @classmethod
    def not_found(cls, reason: str) -> "Lookup[T]":
        return cls(status=LookupStatus.NOT_FOUND, reason=reason)

    @property
    def is_found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def unwrap(self, error_factory: Callable[[str], Exception]) -> T:
        """
        Return the value or raise the error built from the reason.

        Args:
            error_factory: Builds the exception from the not-found reason.
        """
        if not self.is_found:
            raise error_factory(self.reason)
        return self.value  # type: ignore[return-value]
