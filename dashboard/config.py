"""Configuration management for the students dashboard."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

DEFAULT_BASE_URL = "http://localhost:8081"


@dataclass(frozen=True)
class EndpointPaths:
    """Paths of the backend endpoints, relative to the base URL."""

    students: str = "/api/students/all"
    count: str = "/api/students/count"
    by_year: str = "/api/students/byYear"
    save: str = "/api/students/save"
    delete: str = "/api/students/delete/{id}"

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "EndpointPaths":
        defaults = EndpointPaths()
        values = {}
        for name in ("students", "count", "by_year", "save", "delete"):
            raw = data.get(name)
            if raw is None:
                values[name] = getattr(defaults, name)
                continue
            path = str(raw).strip()
            if not path:
                raise ValueError(f"Endpoint path '{name}' must not be empty")
            if not path.startswith("/"):
                path = "/" + path
            values[name] = path
        if "{id}" not in values["delete"]:
            raise ValueError("The delete endpoint path must contain an '{id}' placeholder")
        return EndpointPaths(**values)

    def delete_path(self, student_id: int) -> str:
        return self.delete.replace("{id}", str(student_id))


@dataclass(frozen=True)
class StudentFieldNames:
    """JSON keys the backend uses for student attributes."""

    last_name: str = "nom"
    first_name: str = "prenom"
    birth_date: str = "dateNaissance"

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "StudentFieldNames":
        defaults = StudentFieldNames()
        values = {}
        for name in ("last_name", "first_name", "birth_date"):
            raw = data.get(name)
            key = str(raw).strip() if raw is not None else getattr(defaults, name)
            if not key:
                raise ValueError(f"Student field name '{name}' must not be empty")
            values[name] = key
        return StudentFieldNames(**values)


@dataclass(frozen=True)
class DashboardSettings:
    """Settings for talking to the students backend."""

    base_url: str = DEFAULT_BASE_URL
    timeout: Optional[float] = None
    verify: str | bool = True
    endpoints: EndpointPaths = field(default_factory=EndpointPaths)
    fields: StudentFieldNames = field(default_factory=StudentFieldNames)

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "DashboardSettings":
        """Create :class:`DashboardSettings` from raw dictionary data."""
        backend = data.get("backend") or {}
        endpoints = data.get("endpoints") or {}
        fields = data.get("fields") or {}
        for section, value in (("backend", backend), ("endpoints", endpoints), ("fields", fields)):
            if not isinstance(value, dict):
                raise ValueError(f"Configuration section '{section}' must be a mapping")

        timeout = backend.get("timeout")
        verify = backend.get("verify", True)
        return DashboardSettings(
            base_url=_normalize_base_url(str(backend.get("base_url") or DEFAULT_BASE_URL)),
            timeout=_parse_timeout(timeout) if timeout is not None else None,
            verify=verify if isinstance(verify, bool) else _parse_verify_setting(str(verify)),
            endpoints=EndpointPaths.from_dict(endpoints),
            fields=StudentFieldNames.from_dict(fields),
        )


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("Backend base URL must not be empty")
    return cleaned.rstrip("/")


def _parse_timeout(value: object) -> Optional[float]:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"", "none", "null"}:
            return None
        value = lowered
    try:
        seconds = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid backend timeout: {value!r}") from exc
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"Backend timeout must be a positive number of seconds, got {value!r}")
    return seconds


def _parse_verify_setting(value: str) -> str | bool:
    lowered = value.strip().lower()
    if lowered in {"", "default", "1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return str(Path(value).expanduser())


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "dashboard.yaml").resolve(strict=False)
    return candidate


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DashboardSettings:
    """Load settings from YAML and apply ``STUDENTS_*`` environment overrides."""
    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get("STUDENTS_DASHBOARD_CONFIG"))

    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        settings = DashboardSettings.from_dict(raw)
    else:
        settings = DashboardSettings()

    base_url = env.get("STUDENTS_API_URL")
    if base_url:
        settings = replace(settings, base_url=_normalize_base_url(base_url))
    timeout = env.get("STUDENTS_API_TIMEOUT")
    if timeout is not None:
        settings = replace(settings, timeout=_parse_timeout(timeout))
    verify = env.get("STUDENTS_API_VERIFY")
    if verify is not None:
        settings = replace(settings, verify=_parse_verify_setting(verify))
    return settings


__all__ = [
    "DEFAULT_BASE_URL",
    "DashboardSettings",
    "EndpointPaths",
    "StudentFieldNames",
    "load_settings",
    "resolve_config_path",
]
