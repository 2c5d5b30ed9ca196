"""A value paired with the error that may have stopped its computation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """The outcome of an operation: its data and, on failure, its error."""

    data: Optional[T] = None
    err: Optional[BaseException] = None

    def is_success(self) -> bool:
        """Return True when no error occurred."""
        return self.err is None