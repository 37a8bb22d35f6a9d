from __future__ import annotations

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Optional

from daily_registry.exceptions import LoadError, SaveError, ValidationError
from daily_registry.models import (
    AttendanceRecord,
    AttendanceStatus,
    Course,
    DailyLogEntry,
    RosterEntry,
    SessionDraft,
    Student,
)
from daily_registry.services.course_membership import (
    CourseMembershipResolver,
    MembershipResult,
    normalize_course_name,
)
from daily_registry.services.daily_log_sync import DailyLogSynchronizer
from daily_registry.services.fetching import fetch_or_empty
from daily_registry.services.record_planner import AttendanceRecordPlanner
from daily_registry.stores.base import AttendanceStore, CourseProvider, DailyLogStore, RosterProvider
from daily_registry.utils.time import coerce_date

log = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    DIRTY = "dirty"
    SAVING = "saving"
    ERROR = "error"


_SAVEABLE_PHASES = {SessionPhase.LOADED, SessionPhase.DIRTY, SessionPhase.ERROR}


def default_course(courses: list[Course]) -> str:
    return courses[0].name if courses else ""


class SessionStateStore:
    """Owns the single editable draft of one (course, date) session.

    Only this controller mutates the draft. Reads issued by ``load`` are
    tagged with a generation number; a response that arrives after a newer
    load started, or after ``close``, is dropped instead of applied.
    """

    def __init__(
        self,
        *,
        roster_provider: RosterProvider,
        attendance_store: AttendanceStore,
        daily_log_store: DailyLogStore,
        course_provider: Optional[CourseProvider] = None,
        resolver: Optional[CourseMembershipResolver] = None,
        planner: Optional[AttendanceRecordPlanner] = None,
        synchronizer: Optional[DailyLogSynchronizer] = None,
        default_status: AttendanceStatus | str = AttendanceStatus.PRESENT,
    ) -> None:
        self._roster_provider = roster_provider
        self._attendance_store = attendance_store
        self._daily_log_store = daily_log_store
        self._course_provider = course_provider
        self._resolver = resolver or CourseMembershipResolver()
        self._planner = planner or AttendanceRecordPlanner()
        self._synchronizer = synchronizer or DailyLogSynchronizer()
        self._default_status = AttendanceStatus.parse(default_status)

        self._draft: Optional[SessionDraft] = None
        self._phase = SessionPhase.IDLE
        self._generation = 0
        self._closed = False
        self.membership: Optional[MembershipResult] = None
        self.load_errors: list[LoadError] = []
        self.last_error: Optional[SaveError] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def draft(self) -> Optional[SessionDraft]:
        return self._draft

    @property
    def roster(self) -> list[RosterEntry]:
        return list(self._draft.roster) if self._draft else []

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load_courses(self) -> list[Course]:
        if self._course_provider is None:
            return []
        courses, error = await fetch_or_empty("courses", self._course_provider.get_all())
        if error is not None and not self._closed:
            self.load_errors.append(error)
        return courses

    async def select(self, course: str, day: date | str) -> None:
        """Switch to another session. Unsaved edits of the current one are dropped."""
        if self._phase is SessionPhase.DIRTY:
            log.info("Discarding unsaved edits for %s on %s", self._draft.course, self._draft.date)
        self._reset()
        await self.load(course, day)

    async def load(self, course: str, day: date | str) -> None:
        session_date = coerce_date(day)
        self._generation += 1
        generation = self._generation

        if not normalize_course_name(course):
            self._reset()
            return

        roster_result, records_result, entries_result = await asyncio.gather(
            fetch_or_empty("roster", self._roster_provider.get_all()),
            fetch_or_empty("attendance", self._attendance_store.get_all(course=course, date=session_date)),
            fetch_or_empty("daily_logs", self._daily_log_store.get_all(course=course, date=session_date)),
        )

        if self._closed or generation != self._generation:
            log.debug("Discarding stale load of %s on %s", course, session_date)
            return

        students, roster_error = roster_result
        records, records_error = records_result
        entries, entries_error = entries_result
        self.load_errors = [error for error in (roster_error, records_error, entries_error) if error]

        self.membership = self._resolver.resolve(students, course)
        self._draft = self._build_draft(course, session_date, self.membership.students, records, entries)
        self._phase = SessionPhase.LOADED
        self.last_error = None

    def _build_draft(
        self,
        course: str,
        session_date: date,
        students: tuple[Student, ...],
        records: list[AttendanceRecord],
        entries: list[DailyLogEntry],
    ) -> SessionDraft:
        existing: dict[str, AttendanceRecord] = {}
        for record in records:
            existing[record.student_id] = record

        roster = []
        for student in students:
            record = existing.get(student.id)
            roster.append(
                RosterEntry(
                    student=student,
                    status=record.status if record else self._default_status,
                    existing_record_id=record.id if record else None,
                )
            )

        note = entries[0] if entries else None
        return SessionDraft(
            course=course,
            date=session_date,
            roster=roster,
            topics=note.topics_covered if note else "",
            remarks=note.trainer_remarks if note else "",
        )

    def _reset(self) -> None:
        self._generation += 1
        self._draft = None
        self._phase = SessionPhase.IDLE
        self.membership = None
        self.load_errors = []
        self.last_error = None

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def update_status(self, student_id: str, status: AttendanceStatus | str) -> None:
        parsed = AttendanceStatus.parse(status)
        entry = self._draft.entry_for(student_id) if self._draft else None
        if entry is None:
            raise ValidationError(f"Student {student_id!r} is not on the current roster.")
        entry.status = parsed
        self._mark_dirty()

    def update_notes(self, *, topics: Optional[str] = None, remarks: Optional[str] = None) -> None:
        if self._draft is None:
            raise ValidationError("Select a course and date before writing session notes.")
        if topics is not None:
            self._draft.topics = topics
        if remarks is not None:
            self._draft.remarks = remarks
        self._mark_dirty()

    def _mark_dirty(self) -> None:
        if self._phase is not SessionPhase.SAVING:
            self._phase = SessionPhase.DIRTY

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------
    async def save(self) -> None:
        draft = self._draft
        if draft is None or not normalize_course_name(draft.course):
            raise ValidationError("Please select a course before saving attendance.")
        if self._phase is SessionPhase.SAVING:
            raise ValidationError("A save for this session is already in progress.")
        if self._phase not in _SAVEABLE_PHASES:
            raise ValidationError(f"Cannot save a session in phase {self._phase.value!r}.")

        self._phase = SessionPhase.SAVING
        generation = self._generation
        calls = AttendanceRecordPlanner.dispatch(self._planner.plan(draft), self._attendance_store)
        calls.extend(DailyLogSynchronizer.dispatch(self._synchronizer.plan(draft), self._daily_log_store))

        results = await asyncio.gather(*calls, return_exceptions=True)
        failures = [result for result in results if isinstance(result, BaseException)]

        if self._closed or generation != self._generation:
            log.debug(
                "Discarding save result for %s on %s after the session changed (%d failed writes)",
                draft.course,
                draft.date,
                len(failures),
            )
            return

        if failures:
            self._phase = SessionPhase.ERROR
            error = SaveError("Failed to save attendance registry. Please try again.")
            self.last_error = error
            log.error(
                "Save of %s on %s failed: %d of %d writes rejected",
                draft.course,
                draft.date,
                len(failures),
                len(results),
                exc_info=failures[0],
            )
            raise error from failures[0]

        await self.load(draft.course, draft.date)

    def close(self) -> None:
        """Detach from the view; responses still in flight are ignored."""
        self._closed = True
        self._generation += 1
