from __future__ import annotations

from pathlib import Path

import pytest

from dashboard.config import (
    DEFAULT_BASE_URL,
    DashboardSettings,
    EndpointPaths,
    StudentFieldNames,
    load_settings,
    resolve_config_path,
)


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "absent.yaml", environ={})

    assert settings == DashboardSettings()
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.timeout is None
    assert settings.endpoints.students == "/api/students/all"
    assert settings.endpoints.delete_path(7) == "/api/students/delete/7"
    assert settings.fields == StudentFieldNames("nom", "prenom", "dateNaissance")


def test_yaml_file_is_loaded(tmp_path: Path) -> None:
    config_path = tmp_path / "dashboard.yaml"
    config_path.write_text(
        "\n".join(
            [
                "backend:",
                "  base_url: https://students.internal/",
                "  timeout: 2.5",
                "  verify: false",
                "endpoints:",
                "  students: students",
                "  delete: /students/{id}",
                "fields:",
                "  last_name: lastName",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(config_path, environ={})

    assert settings.base_url == "https://students.internal"
    assert settings.timeout == 2.5
    assert settings.verify is False
    assert settings.endpoints.students == "/students"
    assert settings.endpoints.count == EndpointPaths().count
    assert settings.endpoints.delete_path(3) == "/students/3"
    assert settings.fields.last_name == "lastName"
    assert settings.fields.first_name == "prenom"


def test_environment_overrides_file(tmp_path: Path) -> None:
    config_path = tmp_path / "dashboard.yaml"
    config_path.write_text("backend:\n  base_url: http://from-file:8081\n", encoding="utf-8")

    settings = load_settings(
        config_path,
        environ={
            "STUDENTS_API_URL": "http://from-env:9000/",
            "STUDENTS_API_TIMEOUT": "none",
            "STUDENTS_API_VERIFY": "/etc/ssl/ca.pem",
        },
    )

    assert settings.base_url == "http://from-env:9000"
    assert settings.timeout is None
    assert settings.verify == "/etc/ssl/ca.pem"


def test_config_path_from_environment(tmp_path: Path) -> None:
    config_path = tmp_path / "custom.yaml"
    config_path.write_text("backend:\n  base_url: http://custom\n", encoding="utf-8")

    settings = load_settings(environ={"STUDENTS_DASHBOARD_CONFIG": str(config_path)})

    assert settings.base_url == "http://custom"


def test_default_config_path_points_into_project() -> None:
    path = resolve_config_path(None)
    assert path.name == "dashboard.yaml"
    assert path.parent.name == "config"


@pytest.mark.parametrize(
    "content",
    [
        "endpoints:\n  delete: /students/delete\n",
        "backend:\n  timeout: soon\n",
        "backend:\n  timeout: -1\n",
        "backend:\n  base_url: '  '\n",
        "fields:\n  first_name: ''\n",
        "endpoints: [1, 2]\n",
        "- just\n- a list\n",
    ],
)
def test_invalid_configuration_is_rejected(tmp_path: Path, content: str) -> None:
    config_path = tmp_path / "dashboard.yaml"
    config_path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(config_path, environ={})
