"""Information gathered alongside the Crash Log records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Time:
    """Time at which the Crash Log was extracted."""

    year: int
    month: int
    day: int
    hour: int
    minute: int

    def __str__(self) -> str:
        return (
            f"{self.year:04}-{self.month:02}-{self.day:02}"
            f"-{self.hour:02}-{self.minute:02}"
        )


@dataclass
class Metadata:
    """Where and when a Crash Log was extracted."""

    computer: Optional[str] = None
    time: Optional[Time] = None

    def __str__(self) -> str:
        if self.computer is not None and self.time is not None:
            return f"{self.computer}-{self.time}"
        if self.time is not None:
            return str(self.time)
        if self.computer is not None:
            return self.computer
        return "unnamed"