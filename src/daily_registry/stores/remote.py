from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Callable, Optional, TypeVar

from daily_registry.data.api_client import ApiClient, ApiError
from daily_registry.models import (
    AttendancePayload,
    AttendanceRecord,
    Course,
    DailyLogEntry,
    DailyLogPayload,
    RecordId,
    Student,
)

T = TypeVar("T")


def _as_list(payload: Any, path: str) -> list[dict]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ApiError(f"Expected a list from {path}, got {type(payload).__name__}")
    return payload


def _as_object(payload: Any, path: str) -> dict:
    if not isinstance(payload, dict):
        raise ApiError(f"Expected an object from {path}, got {type(payload).__name__}")
    return payload


def _parse(factory: Callable[[dict], T], rows: list[dict], path: str) -> list[T]:
    try:
        return [factory(row) for row in rows]
    except (KeyError, TypeError, ValueError) as exc:
        raise ApiError(f"Malformed record from {path}: {exc}") from exc


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class RemoteRosterProvider:
    path = "students"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all(self) -> list[Student]:
        rows = await asyncio.to_thread(self._client.get, self.path)
        return _parse(Student.from_mapping, _as_list(rows, self.path), self.path)


class RemoteCourseProvider:
    path = "courses"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all(self) -> list[Course]:
        rows = await asyncio.to_thread(self._client.get, self.path)
        return _parse(Course.from_mapping, _as_list(rows, self.path), self.path)


class RemoteAttendanceStore:
    path = "attendance"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all(
        self,
        course: Optional[str] = None,
        date: Optional[date] = None,
        student_id: Optional[str] = None,
    ) -> list[AttendanceRecord]:
        params = {"course": course, "date": _iso(date), "student_id": student_id}
        rows = await asyncio.to_thread(self._client.get, self.path, params=params)
        return _parse(AttendanceRecord.from_mapping, _as_list(rows, self.path), self.path)

    async def create(self, record: AttendancePayload) -> AttendanceRecord:
        row = await asyncio.to_thread(self._client.post, self.path, record.to_mapping())
        return _parse(AttendanceRecord.from_mapping, [_as_object(row, self.path)], self.path)[0]

    async def update(self, record_id: RecordId, record: AttendancePayload) -> AttendanceRecord:
        row = await asyncio.to_thread(self._client.put, self.path, record_id, record.to_mapping())
        return _parse(AttendanceRecord.from_mapping, [_as_object(row, self.path)], self.path)[0]


class RemoteDailyLogStore:
    path = "student-daily-reports"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_all(
        self,
        course: Optional[str] = None,
        date: Optional[date] = None,
        student_id: Optional[str] = None,
    ) -> list[DailyLogEntry]:
        params = {"course": course, "date": _iso(date), "student_id": student_id}
        rows = await asyncio.to_thread(self._client.get, self.path, params=params)
        return _parse(DailyLogEntry.from_mapping, _as_list(rows, self.path), self.path)

    async def create(self, entry: DailyLogPayload) -> DailyLogEntry:
        row = await asyncio.to_thread(self._client.post, self.path, entry.to_mapping())
        return _parse(DailyLogEntry.from_mapping, [_as_object(row, self.path)], self.path)[0]
