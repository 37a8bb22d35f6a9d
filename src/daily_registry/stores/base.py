from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from daily_registry.models import (
    AttendancePayload,
    AttendanceRecord,
    Course,
    DailyLogEntry,
    DailyLogPayload,
    RecordId,
    Student,
)


class RosterProvider(Protocol):
    async def get_all(self) -> list[Student]:
        """Students visible to the caller, already scoped server-side."""
        ...


class CourseProvider(Protocol):
    async def get_all(self) -> list[Course]:
        ...


class AttendanceStore(Protocol):
    async def get_all(
        self,
        course: Optional[str] = None,
        date: Optional[date] = None,
        student_id: Optional[str] = None,
    ) -> list[AttendanceRecord]:
        ...

    async def create(self, record: AttendancePayload) -> AttendanceRecord:
        ...

    async def update(self, record_id: RecordId, record: AttendancePayload) -> AttendanceRecord:
        ...


class DailyLogStore(Protocol):
    async def get_all(
        self,
        course: Optional[str] = None,
        date: Optional[date] = None,
        student_id: Optional[str] = None,
    ) -> list[DailyLogEntry]:
        ...

    async def create(self, entry: DailyLogPayload) -> DailyLogEntry:
        ...
