from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Union

from daily_registry.models import (
    AttendancePayload,
    AttendanceRecord,
    AttendanceStatus,
    RecordId,
    SessionDraft,
)
from daily_registry.stores.base import AttendanceStore


@dataclass(slots=True, frozen=True)
class CreateRecord:
    record: AttendancePayload


@dataclass(slots=True, frozen=True)
class UpdateRecord:
    record_id: RecordId
    record: AttendancePayload


RecordOperation = Union[CreateRecord, UpdateRecord]


class AttendanceRecordPlanner:
    """Decide, per roster entry, whether a save creates or updates a record.

    An entry that was seeded from a persisted record keeps updating that
    record; every other entry creates one. This is the only thing keeping
    (student, course, date) unique, the backend does not enforce it.
    """

    def __init__(self, missing_status: AttendanceStatus | str = AttendanceStatus.ABSENT) -> None:
        self._missing_status = AttendanceStatus.parse(missing_status)

    def plan(self, draft: SessionDraft) -> list[RecordOperation]:
        operations: list[RecordOperation] = []
        for entry in draft.roster:
            record = AttendancePayload(
                student_id=entry.student.id,
                course=draft.course,
                date=draft.date,
                status=entry.status or self._missing_status,
            )
            if entry.existing_record_id is not None:
                operations.append(UpdateRecord(record_id=entry.existing_record_id, record=record))
            else:
                operations.append(CreateRecord(record=record))
        return operations

    @staticmethod
    def dispatch(
        operations: list[RecordOperation], store: AttendanceStore
    ) -> list[Awaitable[AttendanceRecord]]:
        calls: list[Awaitable[AttendanceRecord]] = []
        for operation in operations:
            if isinstance(operation, UpdateRecord):
                calls.append(store.update(operation.record_id, operation.record))
            else:
                calls.append(store.create(operation.record))
        return calls
