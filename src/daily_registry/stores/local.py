from __future__ import annotations

import asyncio
import json
from datetime import date
from typing import Optional

from daily_registry.data.database import Database
from daily_registry.exceptions import StoreError
from daily_registry.models import (
    AttendancePayload,
    AttendanceRecord,
    Course,
    DailyLogEntry,
    DailyLogPayload,
    RecordId,
    Student,
)


def _parse(factory, rows, table: str) -> list:
    try:
        return [factory(dict(row)) for row in rows]
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"Malformed row in {table}: {exc}") from exc


def _student_from_row(data: dict) -> Student:
    raw_course = data.get("course")
    if raw_course and raw_course.lstrip().startswith("["):
        data["course"] = json.loads(raw_course)
    return Student.from_mapping(data)


class LocalRosterProvider:
    def __init__(self, database: Database) -> None:
        self._database = database

    def add(self, student: Student) -> None:
        with self._database.connect() as connection:
            connection.execute(
                """
                INSERT OR REPLACE INTO students (id, name, course, email, phone)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    student.id,
                    student.name.strip(),
                    json.dumps(list(student.courses)),
                    student.email,
                    student.phone,
                ),
            )

    def _fetch_all(self) -> list[Student]:
        with self._database.connect() as connection:
            rows = connection.execute(
                "SELECT id, name, course, email, phone FROM students ORDER BY LOWER(name), id"
            ).fetchall()
        return _parse(_student_from_row, rows, "students")

    async def get_all(self) -> list[Student]:
        return await asyncio.to_thread(self._fetch_all)


class LocalCourseProvider:
    def __init__(self, database: Database) -> None:
        self._database = database

    def add(self, name: str) -> int:
        with self._database.connect() as connection:
            cursor = connection.execute("INSERT INTO courses (name) VALUES (?)", (name.strip(),))
            return int(cursor.lastrowid)

    def _fetch_all(self) -> list[Course]:
        with self._database.connect() as connection:
            rows = connection.execute("SELECT id, name FROM courses ORDER BY id").fetchall()
        return _parse(Course.from_mapping, rows, "courses")

    async def get_all(self) -> list[Course]:
        return await asyncio.to_thread(self._fetch_all)


class LocalAttendanceStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    def _fetch_all(
        self,
        course: Optional[str],
        day: Optional[date],
        student_id: Optional[str],
    ) -> list[AttendanceRecord]:
        query_parts = [
            "SELECT id, student_id, course, date, status, created_at, updated_at",
            "  FROM attendance",
        ]
        params: list[str] = []
        conditions: list[str] = []

        if course is not None:
            conditions.append("course = ?")
            params.append(course)

        if day is not None:
            conditions.append("date = ?")
            params.append(day.isoformat())

        if student_id is not None:
            conditions.append("student_id = ?")
            params.append(str(student_id))

        if conditions:
            query_parts.append(" WHERE " + " AND ".join(conditions))

        query_parts.append(" ORDER BY date DESC, id ASC")

        with self._database.connect() as connection:
            rows = connection.execute("\n".join(query_parts), tuple(params)).fetchall()

        return _parse(AttendanceRecord.from_mapping, rows, "attendance")

    def _insert(self, record: AttendancePayload) -> AttendanceRecord:
        with self._database.connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO attendance (student_id, course, date, status)
                VALUES (?, ?, ?, ?)
                """,
                (
                    record.student_id,
                    record.course,
                    record.date.isoformat(),
                    record.status.value,
                ),
            )
            row = connection.execute(
                "SELECT * FROM attendance WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return _parse(AttendanceRecord.from_mapping, [row], "attendance")[0]

    def _update(self, record_id: RecordId, record: AttendancePayload) -> AttendanceRecord:
        with self._database.connect() as connection:
            connection.execute(
                """
                UPDATE attendance
                   SET student_id = ?,
                       course = ?,
                       date = ?,
                       status = ?,
                       updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
                 WHERE id = ?
                """,
                (
                    record.student_id,
                    record.course,
                    record.date.isoformat(),
                    record.status.value,
                    record_id,
                ),
            )
            row = connection.execute("SELECT * FROM attendance WHERE id = ?", (record_id,)).fetchone()

        if row is None:
            raise StoreError(f"Attendance record {record_id} not found.")
        return _parse(AttendanceRecord.from_mapping, [row], "attendance")[0]

    async def get_all(
        self,
        course: Optional[str] = None,
        date: Optional[date] = None,
        student_id: Optional[str] = None,
    ) -> list[AttendanceRecord]:
        return await asyncio.to_thread(self._fetch_all, course, date, student_id)

    async def create(self, record: AttendancePayload) -> AttendanceRecord:
        return await asyncio.to_thread(self._insert, record)

    async def update(self, record_id: RecordId, record: AttendancePayload) -> AttendanceRecord:
        return await asyncio.to_thread(self._update, record_id, record)


class LocalDailyLogStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    def _fetch_all(
        self,
        course: Optional[str],
        day: Optional[date],
        student_id: Optional[str],
    ) -> list[DailyLogEntry]:
        query_parts = [
            "SELECT id, student_id, student_name, course, report_date,",
            "       topics_covered, trainer_remarks, created_at",
            "  FROM student_daily_reports",
        ]
        params: list[str] = []
        conditions: list[str] = []

        if course is not None:
            conditions.append("course = ?")
            params.append(course)

        if day is not None:
            conditions.append("substr(report_date, 1, 10) = ?")
            params.append(day.isoformat())

        if student_id is not None:
            conditions.append("student_id = ?")
            params.append(str(student_id))

        if conditions:
            query_parts.append(" WHERE " + " AND ".join(conditions))

        query_parts.append(" ORDER BY report_date DESC, id DESC")

        with self._database.connect() as connection:
            rows = connection.execute("\n".join(query_parts), tuple(params)).fetchall()

        return _parse(DailyLogEntry.from_mapping, rows, "student_daily_reports")

    def _insert(self, entry: DailyLogPayload) -> DailyLogEntry:
        with self._database.connect() as connection:
            cursor = connection.execute(
                """
                INSERT INTO student_daily_reports (
                    student_id, student_name, course, report_date, topics_covered, trainer_remarks
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.student_id,
                    entry.student_name,
                    entry.course,
                    entry.report_date.isoformat(),
                    entry.topics_covered,
                    entry.trainer_remarks or None,
                ),
            )
            row = connection.execute(
                "SELECT * FROM student_daily_reports WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return _parse(DailyLogEntry.from_mapping, [row], "student_daily_reports")[0]

    async def get_all(
        self,
        course: Optional[str] = None,
        date: Optional[date] = None,
        student_id: Optional[str] = None,
    ) -> list[DailyLogEntry]:
        return await asyncio.to_thread(self._fetch_all, course, date, student_id)

    async def create(self, entry: DailyLogPayload) -> DailyLogEntry:
        return await asyncio.to_thread(self._insert, entry)
