import asyncio
from datetime import date

import pytest

from daily_registry.data import Database
from daily_registry.exceptions import SaveError, StoreError, ValidationError
from daily_registry.models import AttendanceStatus, Course, Student
from daily_registry.services import FallbackAll, SessionPhase, SessionStateStore, default_course
from daily_registry.stores import (
    LocalAttendanceStore,
    LocalCourseProvider,
    LocalDailyLogStore,
    LocalRosterProvider,
)

DAY = date(2025, 3, 1)


class FailingReads:
    """Wraps a store so that every listing call fails."""

    def __init__(self, inner) -> None:
        self._inner = inner
        self.calls = 0

    async def get_all(self, *args, **kwargs):
        self.calls += 1
        raise StoreError("backend unavailable")

    def __getattr__(self, name):
        return getattr(self._inner, name)


class RejectingCreates:
    """Attendance store whose creates fail for chosen students."""

    def __init__(self, inner, rejected: set[str]) -> None:
        self._inner = inner
        self.rejected = rejected

    async def get_all(self, *args, **kwargs):
        return await self._inner.get_all(*args, **kwargs)

    async def update(self, record_id, record):
        return await self._inner.update(record_id, record)

    async def create(self, record):
        if record.student_id in self.rejected:
            raise StoreError("insert rejected")
        return await self._inner.create(record)


class CountingRoster:
    def __init__(self, inner) -> None:
        self._inner = inner
        self.calls = 0

    async def get_all(self):
        self.calls += 1
        return await self._inner.get_all()


def _backend(tmp_path):
    database = Database(tmp_path / "registry.db")
    database.initialize()
    roster = LocalRosterProvider(database)
    roster.add(Student.from_mapping({"id": 1, "name": "Amina", "course": "Hairdressing"}))
    roster.add(Student.from_mapping({"id": 2, "name": "Brian", "course": ["hairdressing ", "Beauty"]}))
    roster.add(Student.from_mapping({"id": 3, "name": "Chloe", "course": "Hairdressing"}))
    roster.add(Student.from_mapping({"id": 4, "name": "Dan", "course": "Beauty"}))
    courses = LocalCourseProvider(database)
    courses.add("Hairdressing")
    courses.add("Beauty")
    return roster, courses, LocalAttendanceStore(database), LocalDailyLogStore(database)


def _session(tmp_path, **overrides) -> SessionStateStore:
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    options = {
        "roster_provider": roster,
        "course_provider": courses,
        "attendance_store": attendance,
        "daily_log_store": daily_logs,
    }
    options.update(overrides)
    return SessionStateStore(**options)


def test_load_seeds_defaults(tmp_path):
    session = _session(tmp_path)

    asyncio.run(session.load("Hairdressing", DAY))

    assert session.phase is SessionPhase.LOADED
    assert [entry.student.name for entry in session.roster] == ["Amina", "Brian", "Chloe"]
    assert {entry.status for entry in session.roster} == {AttendanceStatus.PRESENT}
    assert all(entry.existing_record_id is None for entry in session.roster)
    assert session.draft.topics == ""
    assert session.load_errors == []


def test_load_without_course_fetches_nothing(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    counting = CountingRoster(roster)
    session = SessionStateStore(
        roster_provider=counting,
        attendance_store=FailingReads(attendance),
        daily_log_store=FailingReads(daily_logs),
    )

    asyncio.run(session.load("  ", DAY))

    assert counting.calls == 0
    assert session.roster == []
    assert session.phase is SessionPhase.IDLE


def test_save_then_reload_marks_existing_records(tmp_path):
    session = _session(tmp_path)

    async def scenario():
        await session.load("Hairdressing", DAY)
        session.update_status("2", "late")
        session.update_status(3, AttendanceStatus.ABSENT)
        assert session.phase is SessionPhase.DIRTY
        await session.save()

    asyncio.run(scenario())

    assert session.phase is SessionPhase.LOADED
    statuses = {entry.student.id: entry.status for entry in session.roster}
    assert statuses == {
        "1": AttendanceStatus.PRESENT,
        "2": AttendanceStatus.LATE,
        "3": AttendanceStatus.ABSENT,
    }
    assert all(entry.existing_record_id is not None for entry in session.roster)


def test_second_save_updates_instead_of_duplicating(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    session = SessionStateStore(
        roster_provider=roster, attendance_store=attendance, daily_log_store=daily_logs
    )

    async def scenario():
        await session.load("Hairdressing", DAY)
        await session.save()
        first_ids = [entry.existing_record_id for entry in session.roster]
        session.update_status("1", "Absent")
        await session.save()
        return first_ids, await attendance.get_all(course="Hairdressing", date=DAY)

    first_ids, records = asyncio.run(scenario())

    assert len(records) == 3
    assert [entry.existing_record_id for entry in session.roster] == first_ids
    assert session.draft.entry_for("1").status is AttendanceStatus.ABSENT


def test_notes_fan_out_and_accumulate_on_resave(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    session = SessionStateStore(
        roster_provider=roster, attendance_store=attendance, daily_log_store=daily_logs
    )

    async def scenario():
        await session.load("Hairdressing", DAY)
        session.update_notes(topics="Blow-drying", remarks="Bring combs")
        await session.save()
        after_first = await daily_logs.get_all(course="Hairdressing", date=DAY)
        await session.save()
        after_second = await daily_logs.get_all(course="Hairdressing", date=DAY)
        return after_first, after_second

    after_first, after_second = asyncio.run(scenario())

    assert len(after_first) == 3
    assert {entry.student_id for entry in after_first} == {"1", "2", "3"}
    assert {entry.topics_covered for entry in after_first} == {"Blow-drying"}
    assert len(after_second) == 6
    assert session.draft.topics == "Blow-drying"
    assert session.draft.remarks == "Bring combs"


def test_failed_attendance_fetch_treats_everyone_as_new(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    seeded = SessionStateStore(roster_provider=roster, attendance_store=attendance, daily_log_store=daily_logs)
    asyncio.run(seeded.load("Hairdressing", DAY))
    asyncio.run(seeded.save())

    session = SessionStateStore(
        roster_provider=roster,
        attendance_store=FailingReads(attendance),
        daily_log_store=daily_logs,
    )
    asyncio.run(session.load("Hairdressing", DAY))

    assert session.phase is SessionPhase.LOADED
    assert len(session.roster) == 3
    assert all(entry.existing_record_id is None for entry in session.roster)
    assert [error.source for error in session.load_errors] == ["attendance"]


def test_failed_roster_fetch_still_loads(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    session = SessionStateStore(
        roster_provider=FailingReads(roster), attendance_store=attendance, daily_log_store=daily_logs
    )

    asyncio.run(session.load("Hairdressing", DAY))

    assert session.phase is SessionPhase.LOADED
    assert session.roster == []
    assert [error.source for error in session.load_errors] == ["roster"]


def test_course_mismatch_falls_back_to_whole_roster(tmp_path):
    session = _session(tmp_path)

    asyncio.run(session.load("Nail Technology", DAY))

    assert isinstance(session.membership, FallbackAll)
    assert len(session.roster) == 4


def test_save_failure_reports_single_error_and_allows_retry(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    flaky = RejectingCreates(attendance, rejected={"2"})
    session = SessionStateStore(roster_provider=roster, attendance_store=flaky, daily_log_store=daily_logs)

    asyncio.run(session.load("Hairdressing", DAY))
    session.update_status("1", "Late")

    with pytest.raises(SaveError) as excinfo:
        asyncio.run(session.save())

    assert isinstance(excinfo.value.__cause__, StoreError)
    assert session.phase is SessionPhase.ERROR
    assert session.last_error is excinfo.value
    assert session.draft.entry_for("1").status is AttendanceStatus.LATE

    flaky.rejected.clear()
    asyncio.run(session.save())

    assert session.phase is SessionPhase.LOADED
    # The first attempt already committed the other two creates; the retry re-plans them as new.
    records = asyncio.run(attendance.get_all(course="Hairdressing", date=DAY))
    assert len(records) == 5


def test_save_without_course_is_rejected_locally(tmp_path):
    session = _session(tmp_path)

    with pytest.raises(ValidationError):
        asyncio.run(session.save())

    assert session.phase is SessionPhase.IDLE


def test_update_status_rejects_unknown_values(tmp_path):
    session = _session(tmp_path)
    asyncio.run(session.load("Hairdressing", DAY))

    with pytest.raises(ValidationError):
        session.update_status("1", "Excused")
    with pytest.raises(ValidationError):
        session.update_status("99", "Present")

    assert session.phase is SessionPhase.LOADED


def test_select_discards_unsaved_edits(tmp_path):
    session = _session(tmp_path)

    async def scenario():
        await session.load("Hairdressing", DAY)
        session.update_status("1", "Absent")
        await session.select("Hairdressing", DAY)

    asyncio.run(scenario())

    assert session.phase is SessionPhase.LOADED
    assert session.draft.entry_for("1").status is AttendanceStatus.PRESENT


def test_responses_after_close_are_ignored(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)

    class SlowRoster:
        def __init__(self) -> None:
            self.release = asyncio.Event()

        async def get_all(self):
            await self.release.wait()
            return await roster.get_all()

    async def scenario():
        slow = SlowRoster()
        session = SessionStateStore(roster_provider=slow, attendance_store=attendance, daily_log_store=daily_logs)
        pending = asyncio.create_task(session.load("Hairdressing", DAY))
        await asyncio.sleep(0)
        session.close()
        slow.release.set()
        await pending
        return session

    session = asyncio.run(scenario())

    assert session.closed
    assert session.draft is None
    assert session.phase is SessionPhase.IDLE


def test_newer_load_wins_over_slower_older_one(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)

    class GatedRoster:
        def __init__(self) -> None:
            self.gate = asyncio.Event()
            self.calls = 0

        async def get_all(self):
            self.calls += 1
            if self.calls == 1:
                await self.gate.wait()
            return await roster.get_all()

    async def scenario():
        gated = GatedRoster()
        session = SessionStateStore(roster_provider=gated, attendance_store=attendance, daily_log_store=daily_logs)
        older = asyncio.create_task(session.load("Hairdressing", DAY))
        await asyncio.sleep(0)
        await session.load("Beauty", DAY)
        gated.gate.set()
        await older
        return session

    session = asyncio.run(scenario())

    assert session.draft.course == "Beauty"
    assert [entry.student.name for entry in session.roster] == ["Brian", "Dan"]


class HeldCreates(RejectingCreates):
    """Attendance store whose creates wait for a release before settling."""

    def __init__(self, inner, rejected: set[str]) -> None:
        super().__init__(inner, rejected)
        self.release = asyncio.Event()

    async def create(self, record):
        await self.release.wait()
        return await super().create(record)


@pytest.mark.parametrize("rejected", [set(), {"2"}])
def test_save_finishing_after_course_switch_keeps_new_session(tmp_path, rejected):
    roster, courses, attendance, daily_logs = _backend(tmp_path)

    async def scenario():
        held = HeldCreates(attendance, rejected)
        session = SessionStateStore(roster_provider=roster, attendance_store=held, daily_log_store=daily_logs)
        await session.load("Hairdressing", DAY)
        saving = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        assert session.phase is SessionPhase.SAVING
        await session.select("Beauty", DAY)
        held.release.set()
        await saving
        return session

    session = asyncio.run(scenario())

    assert session.draft.course == "Beauty"
    assert session.phase is SessionPhase.LOADED
    assert session.last_error is None
    assert [entry.student.name for entry in session.roster] == ["Brian", "Dan"]


def test_reload_after_resave_seeds_latest_topics(tmp_path):
    session = _session(tmp_path)

    async def scenario():
        await session.load("Hairdressing", DAY)
        session.update_notes(topics="Old topic", remarks="First remark")
        await session.save()
        session.update_notes(topics="New topic", remarks="Second remark")
        await session.save()

    asyncio.run(scenario())

    assert session.draft.topics == "New topic"
    assert session.draft.remarks == "Second remark"


def test_malformed_roster_row_only_empties_the_roster(tmp_path):
    roster, courses, attendance, daily_logs = _backend(tmp_path)
    with Database(tmp_path / "registry.db").connect() as connection:
        connection.execute(
            "INSERT INTO students (id, name, course) VALUES (?, ?, ?)", ("9", "Eve", "[broken")
        )
    session = SessionStateStore(roster_provider=roster, attendance_store=attendance, daily_log_store=daily_logs)

    asyncio.run(session.load("Hairdressing", DAY))

    assert session.phase is SessionPhase.LOADED
    assert session.roster == []
    assert [error.source for error in session.load_errors] == ["roster"]


def test_load_courses_and_default_selection(tmp_path):
    session = _session(tmp_path)

    courses = asyncio.run(session.load_courses())

    assert default_course(courses) == "Hairdressing"
    assert default_course([]) == ""
    assert default_course([Course(id=5, name="Beauty")]) == "Beauty"
