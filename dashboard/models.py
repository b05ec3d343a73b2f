"""Domain models shown by the students dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class StudentRecord:
    """A student as stored by the backend. Only the server mutates these."""

    id: int
    first_name: str
    last_name: str
    birth_date: Optional[date]

    @property
    def birth_date_display(self) -> str:
        return self.birth_date.isoformat() if self.birth_date is not None else ""


@dataclass(frozen=True)
class YearAggregate:
    """Number of students born in a given year."""

    year: Optional[int]
    total: Optional[int]


__all__ = ["StudentRecord", "YearAggregate"]
