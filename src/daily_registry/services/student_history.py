from __future__ import annotations

import asyncio
from typing import Optional

from daily_registry.exceptions import LoadError
from daily_registry.models import AttendanceSummary, HistoryDay
from daily_registry.services.fetching import fetch_or_empty
from daily_registry.services.history_merger import AttendanceHistoryMerger
from daily_registry.stores.base import AttendanceStore, DailyLogStore


class StudentHistoryService:
    def __init__(
        self,
        attendance_store: AttendanceStore,
        daily_log_store: DailyLogStore,
        merger: Optional[AttendanceHistoryMerger] = None,
    ) -> None:
        self._attendance_store = attendance_store
        self._daily_log_store = daily_log_store
        self._merger = merger or AttendanceHistoryMerger()
        self.load_errors: list[LoadError] = []

    async def load(self, student_id: str) -> list[HistoryDay]:
        """Return the student's merged history, newest day first."""
        student_key = str(student_id)
        (records, records_error), (entries, entries_error) = await asyncio.gather(
            fetch_or_empty("attendance", self._attendance_store.get_all(student_id=student_key)),
            fetch_or_empty("daily_logs", self._daily_log_store.get_all(student_id=student_key)),
        )
        self.load_errors = [error for error in (records_error, entries_error) if error]

        own_records = [record for record in records if record.student_id == student_key]
        days = self._merger.merge(own_records, entries)
        return sorted(days, key=lambda day: day.date, reverse=True)

    def summarize(self, days: list[HistoryDay]) -> AttendanceSummary:
        return self._merger.summarize(days)
