"""Students dashboard: a thin presentation layer over the students REST backend."""

from __future__ import annotations

from typing import Any

from .config import DashboardSettings, load_settings
from .state import DashboardState, DraftForm, ViewSnapshot


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the dashboard web application."""

    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "DashboardSettings",
    "DashboardState",
    "DraftForm",
    "ViewSnapshot",
    "create_app",
    "load_settings",
]
