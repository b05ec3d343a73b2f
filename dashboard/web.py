"""Browser-based students dashboard."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import httpx
from fastapi import FastAPI, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from .client import StudentsAPIClient
from .config import DashboardSettings, load_settings
from .mutations import StudentMutations, delete_prompt
from .orchestrator import RefreshOrchestrator
from .state import DashboardState, ViewSnapshot

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

logger = logging.getLogger("students.dashboard.web")


class StudentView(BaseModel):
    id: int
    first_name: str
    last_name: str
    birth_date: Optional[date] = None


class YearAggregateView(BaseModel):
    year: int
    total: Optional[int] = None


class DraftView(BaseModel):
    last_name: str = ""
    first_name: str = ""
    birth_date: str = ""
    can_save: bool = False


class SnapshotResponse(BaseModel):
    students: List[StudentView] = Field(default_factory=list)
    total_count: int = 0
    year_aggregates: List[YearAggregateView] = Field(default_factory=list)
    is_loading: bool = False
    is_saving: bool = False
    error_message: Optional[str] = None
    draft: DraftView = Field(default_factory=DraftView)
    last_refreshed_at: Optional[datetime] = None

    @staticmethod
    def from_snapshot(snapshot: ViewSnapshot) -> "SnapshotResponse":
        return SnapshotResponse(
            students=[
                StudentView(
                    id=student.id,
                    first_name=student.first_name,
                    last_name=student.last_name,
                    birth_date=student.birth_date,
                )
                for student in snapshot.students
            ],
            total_count=snapshot.total_count,
            year_aggregates=[
                YearAggregateView(year=item.year, total=item.total)
                for item in snapshot.year_aggregates
                if item.year is not None
            ],
            is_loading=snapshot.is_loading,
            is_saving=snapshot.is_saving,
            error_message=snapshot.error_message,
            draft=DraftView(
                last_name=snapshot.draft.last_name,
                first_name=snapshot.draft.first_name,
                birth_date=snapshot.draft.birth_date,
                can_save=snapshot.draft.can_save,
            ),
            last_refreshed_at=snapshot.last_refreshed_at,
        )


def create_app(
    settings: Optional[DashboardSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create the dashboard web application."""

    if settings is None:
        settings = load_settings()

    client = StudentsAPIClient(settings, transport=transport)
    state = DashboardState()
    orchestrator = RefreshOrchestrator(client, state)
    mutations = StudentMutations(client, orchestrator)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info("Students dashboard using backend at %s", settings.base_url)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="Students Dashboard",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.dashboard = state
    app.state.orchestrator = orchestrator
    app.state.mutations = mutations

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    templates.env.globals["backend_url"] = settings.base_url

    def _redirect_to_dashboard(request: Request) -> RedirectResponse:
        return RedirectResponse(
            request.url_for("dashboard"),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    @app.get("/", response_class=HTMLResponse, name="dashboard")
    async def dashboard(request: Request):
        if state.snapshot.last_refreshed_at is None:
            await orchestrator.refresh()
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {"snapshot": state.snapshot},
        )

    @app.post("/refresh", name="refresh")
    async def refresh(request: Request):
        await orchestrator.request_refresh()
        return _redirect_to_dashboard(request)

    @app.post("/students", name="create_student")
    async def create_student(
        request: Request,
        first_name: str = Form(""),
        last_name: str = Form(""),
        birth_date: str = Form(""),
    ):
        state.update_draft(first_name=first_name, last_name=last_name, birth_date=birth_date)
        await mutations.create()
        return _redirect_to_dashboard(request)

    @app.get("/students/{student_id}/delete", response_class=HTMLResponse, name="confirm_delete")
    async def confirm_delete(request: Request, student_id: int):
        student = next((item for item in state.snapshot.students if item.id == student_id), None)
        return templates.TemplateResponse(
            request,
            "confirm_delete.html",
            {
                "student_id": student_id,
                "student": student,
                "prompt": delete_prompt(student_id),
            },
        )

    @app.post("/students/{student_id}/delete", name="delete_student")
    async def delete_student(request: Request, student_id: int, confirm: str = Form("")):
        confirmed = confirm.strip().lower() == "yes"
        await mutations.delete(student_id, lambda _prompt: confirmed)
        return _redirect_to_dashboard(request)

    @app.get("/snapshot", response_model=SnapshotResponse, name="snapshot")
    async def snapshot() -> SnapshotResponse:
        return SnapshotResponse.from_snapshot(state.snapshot)

    return app


__all__ = ["SnapshotResponse", "create_app"]
