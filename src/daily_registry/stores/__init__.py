from .base import AttendanceStore, CourseProvider, DailyLogStore, RosterProvider
from .local import LocalAttendanceStore, LocalCourseProvider, LocalDailyLogStore, LocalRosterProvider
from .remote import RemoteAttendanceStore, RemoteCourseProvider, RemoteDailyLogStore, RemoteRosterProvider

__all__ = [
    "AttendanceStore",
    "CourseProvider",
    "DailyLogStore",
    "RosterProvider",
    "LocalAttendanceStore",
    "LocalCourseProvider",
    "LocalDailyLogStore",
    "LocalRosterProvider",
    "RemoteAttendanceStore",
    "RemoteCourseProvider",
    "RemoteDailyLogStore",
    "RemoteRosterProvider",
]
