"""Create and delete students, then reload the dashboard."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Union

from .client import StudentsAPIClient
from .orchestrator import FETCH_ERRORS, RefreshOrchestrator
from .state import DashboardState

logger = logging.getLogger("students.dashboard.mutations")

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


def delete_prompt(student_id: int) -> str:
    return f"Delete student #{student_id}?"


class StudentMutations:
    """Write operations triggered from the dashboard."""

    def __init__(
        self,
        client: StudentsAPIClient,
        orchestrator: RefreshOrchestrator,
    ) -> None:
        self._client = client
        self._orchestrator = orchestrator

    @property
    def state(self) -> DashboardState:
        return self._orchestrator.state

    async def create(self) -> bool:
        """Save the current draft. Returns ``True`` when the backend accepted it."""
        snapshot = self.state.snapshot
        if snapshot.is_saving:
            logger.debug("Create ignored while a save is in progress")
            return False

        draft = snapshot.draft
        birth_date = draft.parsed_birth_date()
        if not draft.can_save or birth_date is None:
            return False

        self.state.begin_save()
        try:
            await self._client.save_student(
                last_name=draft.last_name.strip(),
                first_name=draft.first_name.strip(),
                birth_date=birth_date,
            )
            logger.info(
                "Created student %s %s", draft.first_name.strip(), draft.last_name.strip()
            )
            self.state.clear_draft()
            await self._orchestrator.refresh()
        except FETCH_ERRORS as exc:
            logger.error("Create failed: %s", exc)
            self.state.report_error(f"Create failed: {exc}")
            return False
        finally:
            self.state.end_save()
        return True

    async def delete(self, student_id: int, confirm: Confirm) -> bool:
        """Delete a student once ``confirm`` approves the prompt."""
        answer = confirm(delete_prompt(student_id))
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            return False

        try:
            await self._client.delete_student(student_id)
            logger.info("Deleted student #%s", student_id)
            await self._orchestrator.refresh()
        except FETCH_ERRORS as exc:
            logger.error("Delete failed: %s", exc)
            self.state.report_error(f"Delete failed: {exc}")
            return False
        return True


__all__ = ["Confirm", "StudentMutations", "delete_prompt"]
