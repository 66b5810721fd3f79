"""Time abstraction so timestamps written to state files are testable."""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
