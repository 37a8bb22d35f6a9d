from .course_membership import (
    CourseMembershipResolver,
    ExactMatch,
    FallbackAll,
    MembershipDiagnostic,
    MembershipResult,
)
from .daily_log_sync import DailyLogSynchronizer
from .history_merger import AttendanceHistoryMerger
from .record_planner import AttendanceRecordPlanner, CreateRecord, RecordOperation, UpdateRecord
from .session_state import SessionPhase, SessionStateStore, default_course
from .student_history import StudentHistoryService

__all__ = [
    "AttendanceHistoryMerger",
    "AttendanceRecordPlanner",
    "CourseMembershipResolver",
    "CreateRecord",
    "DailyLogSynchronizer",
    "ExactMatch",
    "FallbackAll",
    "MembershipDiagnostic",
    "MembershipResult",
    "RecordOperation",
    "SessionPhase",
    "SessionStateStore",
    "StudentHistoryService",
    "UpdateRecord",
    "default_course",
]
