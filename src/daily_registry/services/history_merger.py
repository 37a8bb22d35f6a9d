from __future__ import annotations

from datetime import date
from typing import Iterable

from daily_registry.models import (
    AttendanceRecord,
    AttendanceStatus,
    AttendanceSummary,
    DailyLogEntry,
    HistoryDay,
)
from daily_registry.utils.time import coerce_date, format_time_of_day


class AttendanceHistoryMerger:
    """Join one student's attendance records with their daily log entries.

    A record picks up the first log entry for the same student whose report
    date falls on the record's calendar day; later duplicates are ignored.
    """

    def __init__(self, *, time_placeholder: str = "—") -> None:
        self._time_placeholder = time_placeholder

    def merge(
        self,
        records: Iterable[AttendanceRecord],
        entries: Iterable[DailyLogEntry],
    ) -> list[HistoryDay]:
        first_entry: dict[tuple[str, date], DailyLogEntry] = {}
        for entry in entries:
            first_entry.setdefault((entry.student_id, coerce_date(entry.report_date)), entry)

        days: list[HistoryDay] = []
        for record in records:
            entry = first_entry.get((record.student_id, coerce_date(record.date)))
            days.append(
                HistoryDay(
                    date=coerce_date(record.date),
                    course=record.course,
                    status=record.status,
                    topics=entry.topics_covered if entry else "",
                    remarks=entry.trainer_remarks if entry else "",
                    recorded_at=format_time_of_day(
                        record.created_at or record.updated_at,
                        placeholder=self._time_placeholder,
                    ),
                )
            )
        return days

    @staticmethod
    def summarize(days: Iterable[HistoryDay]) -> AttendanceSummary:
        counts = {status: 0 for status in AttendanceStatus}
        for day in days:
            counts[day.status] += 1
        return AttendanceSummary(
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
        )
