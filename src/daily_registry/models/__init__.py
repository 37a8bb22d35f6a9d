from .registry import (
    AttendancePayload,
    AttendanceRecord,
    AttendanceStatus,
    AttendanceSummary,
    Course,
    DailyLogEntry,
    DailyLogPayload,
    HistoryDay,
    RecordId,
    RosterEntry,
    SessionDraft,
    Student,
    parse_course_names,
)

__all__ = [
    "AttendancePayload",
    "AttendanceRecord",
    "AttendanceStatus",
    "AttendanceSummary",
    "Course",
    "DailyLogEntry",
    "DailyLogPayload",
    "HistoryDay",
    "RecordId",
    "RosterEntry",
    "SessionDraft",
    "Student",
    "parse_course_names",
]
