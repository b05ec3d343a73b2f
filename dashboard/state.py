"""Explicit state container backing the dashboard view.

The snapshot is immutable; every change goes through one of the named
transitions on :class:`DashboardState`, which swaps in a new snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Iterable, Optional, Tuple

from .models import StudentRecord, YearAggregate

LIST_LOAD_ERROR = "Some data failed to load (list)."
COUNT_LOAD_ERROR = "Some data failed to load (count)."


@dataclass(frozen=True)
class DraftForm:
    """Values typed into the "add student" form."""

    last_name: str = ""
    first_name: str = ""
    birth_date: str = ""

    def parsed_birth_date(self) -> Optional[date]:
        try:
            return date.fromisoformat(self.birth_date.strip())
        except ValueError:
            return None

    @property
    def can_save(self) -> bool:
        return bool(
            self.last_name.strip()
            and self.first_name.strip()
            and self.parsed_birth_date() is not None
        )


@dataclass(frozen=True)
class ViewSnapshot:
    students: Tuple[StudentRecord, ...] = ()
    total_count: int = 0
    year_aggregates: Tuple[YearAggregate, ...] = ()
    is_loading: bool = False
    error_message: Optional[str] = None
    is_saving: bool = False
    draft: DraftForm = field(default_factory=DraftForm)
    last_refreshed_at: Optional[datetime] = None


class DashboardState:
    """Owns the current :class:`ViewSnapshot` and its transitions."""

    def __init__(self, snapshot: Optional[ViewSnapshot] = None) -> None:
        self._snapshot = snapshot or ViewSnapshot()

    @property
    def snapshot(self) -> ViewSnapshot:
        return self._snapshot

    def _update(self, **changes) -> ViewSnapshot:
        self._snapshot = replace(self._snapshot, **changes)
        return self._snapshot

    # Refresh cycle

    def begin_refresh(self) -> ViewSnapshot:
        return self._update(is_loading=True, error_message=None)

    def students_loaded(self, students: Iterable[StudentRecord]) -> ViewSnapshot:
        return self._update(students=tuple(students))

    def students_failed(self) -> ViewSnapshot:
        return self._update(students=(), error_message=LIST_LOAD_ERROR)

    def count_loaded(self, total: int) -> ViewSnapshot:
        return self._update(total_count=total)

    def count_failed(self) -> ViewSnapshot:
        return self._update(
            total_count=0,
            error_message=self._snapshot.error_message or COUNT_LOAD_ERROR,
        )

    def year_aggregates_loaded(self, aggregates: Iterable[YearAggregate]) -> ViewSnapshot:
        return self._update(
            year_aggregates=tuple(item for item in aggregates if item.year is not None)
        )

    def year_aggregates_failed(self) -> ViewSnapshot:
        return self._update(year_aggregates=())

    def end_refresh(self) -> ViewSnapshot:
        return self._update(is_loading=False, last_refreshed_at=datetime.now(timezone.utc))

    # Draft form and saving flag

    def update_draft(
        self,
        *,
        last_name: Optional[str] = None,
        first_name: Optional[str] = None,
        birth_date: Optional[str] = None,
    ) -> ViewSnapshot:
        draft = self._snapshot.draft
        return self._update(
            draft=DraftForm(
                last_name=draft.last_name if last_name is None else last_name,
                first_name=draft.first_name if first_name is None else first_name,
                birth_date=draft.birth_date if birth_date is None else birth_date,
            )
        )

    def clear_draft(self) -> ViewSnapshot:
        return self._update(draft=DraftForm())

    def begin_save(self) -> ViewSnapshot:
        return self._update(is_saving=True)

    def end_save(self) -> ViewSnapshot:
        return self._update(is_saving=False)

    def report_error(self, message: str) -> ViewSnapshot:
        return self._update(error_message=message)


__all__ = [
    "COUNT_LOAD_ERROR",
    "DashboardState",
    "DraftForm",
    "LIST_LOAD_ERROR",
    "ViewSnapshot",
]
