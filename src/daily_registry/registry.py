from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from daily_registry.config.settings import Settings
from daily_registry.data import ApiClient, Database
from daily_registry.services import (
    AttendanceHistoryMerger,
    AttendanceRecordPlanner,
    SessionStateStore,
    StudentHistoryService,
)
from daily_registry.stores import (
    AttendanceStore,
    CourseProvider,
    DailyLogStore,
    LocalAttendanceStore,
    LocalCourseProvider,
    LocalDailyLogStore,
    LocalRosterProvider,
    RemoteAttendanceStore,
    RemoteCourseProvider,
    RemoteDailyLogStore,
    RemoteRosterProvider,
    RosterProvider,
)


@dataclass(slots=True)
class Registry:
    """The four collaborators plus the settings used to build controllers on top of them."""

    roster: RosterProvider
    courses: CourseProvider
    attendance: AttendanceStore
    daily_logs: DailyLogStore
    settings: Settings

    @classmethod
    def remote(cls, settings: Settings, client: Optional[ApiClient] = None) -> "Registry":
        client = client or ApiClient.from_settings(settings)
        return cls(
            roster=RemoteRosterProvider(client),
            courses=RemoteCourseProvider(client),
            attendance=RemoteAttendanceStore(client),
            daily_logs=RemoteDailyLogStore(client),
            settings=settings,
        )

    @classmethod
    def local(cls, settings: Settings, database: Optional[Database] = None) -> "Registry":
        database = database or Database(settings.database_path)
        database.initialize()
        return cls(
            roster=LocalRosterProvider(database),
            courses=LocalCourseProvider(database),
            attendance=LocalAttendanceStore(database),
            daily_logs=LocalDailyLogStore(database),
            settings=settings,
        )

    def session(self) -> SessionStateStore:
        return SessionStateStore(
            roster_provider=self.roster,
            attendance_store=self.attendance,
            daily_log_store=self.daily_logs,
            course_provider=self.courses,
            planner=AttendanceRecordPlanner(missing_status=self.settings.missing_status),
            default_status=self.settings.default_status,
        )

    def history(self) -> StudentHistoryService:
        merger = AttendanceHistoryMerger(time_placeholder=self.settings.time_placeholder)
        return StudentHistoryService(self.attendance, self.daily_logs, merger)
