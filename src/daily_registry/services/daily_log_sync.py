from __future__ import annotations

from typing import Awaitable

from daily_registry.models import DailyLogEntry, DailyLogPayload, SessionDraft
from daily_registry.stores.base import DailyLogStore


class DailyLogSynchronizer:
    """Fan the session's shared note out to one daily log entry per student.

    Entries are always created, never updated: saving the same session twice
    leaves two entries per student behind.
    """

    def plan(self, draft: SessionDraft) -> list[DailyLogPayload]:
        if not draft.topics.strip():
            return []
        return [
            DailyLogPayload(
                student_id=entry.student.id,
                student_name=entry.student.name,
                course=draft.course,
                report_date=draft.date,
                topics_covered=draft.topics,
                trainer_remarks=draft.remarks,
            )
            for entry in draft.roster
        ]

    @staticmethod
    def dispatch(entries: list[DailyLogPayload], store: DailyLogStore) -> list[Awaitable[DailyLogEntry]]:
        return [store.create(entry) for entry in entries]
