"""HTTP client for the students REST backend."""

from __future__ import annotations

from datetime import date
from typing import Optional

import httpx

from .config import DashboardSettings


class BackendError(Exception):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, operation: str, status_code: int, reason: str, body: str = "") -> None:
        self.operation = operation
        self.status_code = status_code
        self.reason = reason
        self.body = body
        message = f"{operation} → {status_code} {reason}".rstrip()
        if body:
            message = f"{message}\n{body}"
        super().__init__(message)


def _raise_for_status(response: httpx.Response, operation: str, *, include_body: bool) -> None:
    if response.is_success:
        return
    body = response.text.strip() if include_body else ""
    raise BackendError(operation, response.status_code, response.reason_phrase, body)


def _decode(response: httpx.Response) -> object:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        return response.json()
    return response.text


class StudentsAPIClient:
    """Thin async wrapper over the backend endpoints.

    Read methods return the decoded payload untouched; shaping it is the
    normalizer's job.
    """

    def __init__(
        self,
        settings: DashboardSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._http = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.timeout,
            verify=settings.verify,
            transport=transport,
        )

    @property
    def settings(self) -> DashboardSettings:
        return self._settings

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "StudentsAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get_payload(self, path: str) -> object:
        response = await self._http.get(path)
        _raise_for_status(response, path, include_body=True)
        return _decode(response)

    async def list_students(self) -> object:
        return await self._get_payload(self._settings.endpoints.students)

    async def count_students(self) -> object:
        # The count endpoint may answer text/plain, so it is decoded the same way.
        return await self._get_payload(self._settings.endpoints.count)

    async def students_by_year(self) -> object:
        return await self._get_payload(self._settings.endpoints.by_year)

    async def save_student(self, *, last_name: str, first_name: str, birth_date: date) -> None:
        fields = self._settings.fields
        payload = {
            fields.last_name: last_name,
            fields.first_name: first_name,
            fields.birth_date: birth_date.isoformat(),
        }
        response = await self._http.post(self._settings.endpoints.save, json=payload)
        _raise_for_status(response, "save", include_body=False)

    async def delete_student(self, student_id: int) -> None:
        response = await self._http.delete(self._settings.endpoints.delete_path(student_id))
        _raise_for_status(response, "delete", include_body=False)


__all__ = ["BackendError", "StudentsAPIClient"]
