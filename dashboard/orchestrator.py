"""Refresh the dashboard from the backend's three read endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from .client import BackendError, StudentsAPIClient
from .models import StudentRecord
from .normalizer import PayloadShape, normalize, normalize_students
from .state import DashboardState, ViewSnapshot

logger = logging.getLogger("students.dashboard.refresh")

# Failures a single fetch is allowed to absorb without affecting the others.
FETCH_ERRORS = (BackendError, httpx.HTTPError, ValueError)
# Failures raised while turning a decoded payload into dashboard records.
SHAPING_ERRORS = (ValueError, TypeError, OverflowError)


@dataclass(frozen=True)
class _FetchOutcome:
    value: Any = None
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


async def _fetch(
    fetcher: Callable[[], Awaitable[object]],
    shaper: Callable[[object], Any],
) -> _FetchOutcome:
    try:
        payload = await fetcher()
    except FETCH_ERRORS as exc:
        return _FetchOutcome(error=exc)
    try:
        return _FetchOutcome(value=shaper(payload))
    except SHAPING_ERRORS as exc:
        return _FetchOutcome(error=exc)


def _shape(shape: PayloadShape) -> Callable[[object], Any]:
    return lambda payload: normalize(payload, shape)


class RefreshOrchestrator:
    """Load students, count and per-year totals into a :class:`DashboardState`.

    Each read has its own failure boundary. A failing list or count degrades
    to an empty value and sets the banner message; a failing by-year read is
    logged and otherwise ignored since that data is optional.
    """

    def __init__(self, client: StudentsAPIClient, state: DashboardState) -> None:
        self._client = client
        self._state = state
        self._lock = asyncio.Lock()

    @property
    def state(self) -> DashboardState:
        return self._state

    def _shape_students(self, payload: object) -> List[StudentRecord]:
        rows = normalize(payload, PayloadShape.LIST)
        return normalize_students(rows, self._client.settings.fields)

    async def refresh(self) -> ViewSnapshot:
        async with self._lock:
            self._state.begin_refresh()
            try:
                students, count, by_year = await asyncio.gather(
                    _fetch(self._client.list_students, self._shape_students),
                    _fetch(self._client.count_students, _shape(PayloadShape.COUNT)),
                    _fetch(self._client.students_by_year, _shape(PayloadShape.YEAR_AGGREGATES)),
                )

                # Applied in a fixed order so the list message wins over the count one.
                if students.failed:
                    logger.error("students/all failed: %s", students.error)
                    self._state.students_failed()
                else:
                    self._state.students_loaded(students.value)

                if count.failed:
                    logger.error("students/count failed: %s", count.error)
                    self._state.count_failed()
                else:
                    self._state.count_loaded(count.value)

                if by_year.failed:
                    logger.warning("students/byYear failed (ignored): %s", by_year.error)
                    self._state.year_aggregates_failed()
                else:
                    self._state.year_aggregates_loaded(by_year.value)
            finally:
                self._state.end_refresh()
        return self._state.snapshot

    async def request_refresh(self) -> ViewSnapshot:
        """Refresh on user request, ignored while a refresh is already running."""
        if self._state.snapshot.is_loading:
            logger.debug("Refresh already in progress; ignoring request")
            return self._state.snapshot
        return await self.refresh()


__all__ = ["FETCH_ERRORS", "RefreshOrchestrator"]
