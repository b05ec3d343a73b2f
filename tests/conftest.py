from __future__ import annotations

import json
import sys
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dashboard.client import StudentsAPIClient
from dashboard.config import DashboardSettings
from dashboard.orchestrator import RefreshOrchestrator
from dashboard.state import DashboardState


BASE_URL = "http://backend.test"


class FakeBackend:
    """In-memory stand-in for the students REST backend."""

    def __init__(self) -> None:
        self.students: Dict[int, Dict[str, object]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.bodies: List[object] = []
        self.count_as_text = True
        self.date_suffix = ""
        self._next_id = 1
        self._failures: Dict[str, int] = {}
        self._unreachable: set[str] = set()

    def add(self, prenom: str, nom: str, date_naissance: str) -> int:
        student_id = self._next_id
        self._next_id += 1
        self.students[student_id] = {
            "id": student_id,
            "nom": nom,
            "prenom": prenom,
            "dateNaissance": date_naissance,
        }
        return student_id

    def fail(self, path_prefix: str, status_code: int = 500) -> None:
        self._failures[path_prefix] = status_code

    def unreachable(self, path_prefix: str) -> None:
        self._unreachable.add(path_prefix)

    def recover(self) -> None:
        self._failures.clear()
        self._unreachable.clear()

    def calls(self, method: str) -> List[str]:
        return [path for verb, path in self.requests if verb == method]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def _failure_for(self, path: str) -> Optional[int]:
        for prefix, status_code in self._failures.items():
            if path.startswith(prefix):
                return status_code
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        if any(path.startswith(prefix) for prefix in self._unreachable):
            raise httpx.ConnectError("connection refused", request=request)

        status_code = self._failure_for(path)
        if status_code is not None:
            return httpx.Response(status_code, text="backend exploded")

        if request.method == "GET" and path == "/api/students/all":
            return httpx.Response(
                200,
                json=[
                    {**student, "dateNaissance": f"{student['dateNaissance']}{self.date_suffix}"}
                    for student in self.students.values()
                ],
            )
        if request.method == "GET" and path == "/api/students/count":
            if self.count_as_text:
                return httpx.Response(200, text=str(len(self.students)))
            return httpx.Response(200, json=len(self.students))
        if request.method == "GET" and path == "/api/students/byYear":
            years = Counter(int(str(s["dateNaissance"])[:4]) for s in self.students.values())
            return httpx.Response(200, json=[[year, total] for year, total in sorted(years.items())])
        if request.method == "POST" and path == "/api/students/save":
            body = json.loads(request.content)
            self.bodies.append(body)
            student_id = self.add(body["prenom"], body["nom"], body["dateNaissance"])
            return httpx.Response(201, json=self.students[student_id])
        if request.method == "DELETE" and path.startswith("/api/students/delete/"):
            student_id = int(path.rsplit("/", 1)[-1])
            if self.students.pop(student_id, None) is None:
                return httpx.Response(404)
            return httpx.Response(204)
        return httpx.Response(404)


@pytest.fixture()
def backend() -> FakeBackend:
    fake = FakeBackend()
    fake.add("Marie", "Dupont", "2001-05-03")
    fake.add("Jean", "Martin", "2001-11-20")
    fake.add("Amina", "Benali", "2002-02-14")
    return fake


@pytest.fixture()
def settings() -> DashboardSettings:
    return DashboardSettings(base_url=BASE_URL)


@pytest.fixture()
def client(settings: DashboardSettings, backend: FakeBackend) -> StudentsAPIClient:
    return StudentsAPIClient(settings, transport=backend.transport())


@pytest.fixture()
def state() -> DashboardState:
    return DashboardState()


@pytest.fixture()
def orchestrator(client: StudentsAPIClient, state: DashboardState) -> RefreshOrchestrator:
    return RefreshOrchestrator(client, state)
