from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

from daily_registry.exceptions import ValidationError
from daily_registry.utils.time import coerce_date, coerce_datetime

RecordId = Union[int, str]


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"

    @classmethod
    def parse(cls, value: "AttendanceStatus | str") -> "AttendanceStatus":
        if isinstance(value, cls):
            return value
        cleaned = str(value or "").strip().lower()
        for status in cls:
            if status.value.lower() == cleaned:
                return status
        raise ValidationError(f"Unknown attendance status: {value!r}")


def parse_course_names(raw: Any) -> tuple[str, ...]:
    """Normalise a student's ``course`` field, a single name or a list of names.

    Blank values are dropped and duplicates (ignoring case) keep their first
    spelling.
    """

    if raw is None:
        return ()
    values: Iterable[Any] = raw if isinstance(raw, (list, tuple, set, frozenset)) else (raw,)

    names: list[str] = []
    seen: set[str] = set()
    for value in values:
        if value is None:
            continue
        name = str(value).strip()
        key = name.lower()
        if not name or key in seen:
            continue
        seen.add(key)
        names.append(name)
    return tuple(names)


def _record_id(data: Mapping[str, Any]) -> Optional[RecordId]:
    value = data.get("id")
    if value is None:
        value = data.get("_id")
    return value


def _optional_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return coerce_datetime(value)


@dataclass(slots=True, frozen=True)
class Student:
    id: str
    name: str
    courses: tuple[str, ...] = ()
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def course_keys(self) -> frozenset[str]:
        return frozenset(name.lower() for name in self.courses)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Student":
        identifier = _record_id(data)
        if identifier is None:
            raise KeyError("id")
        return cls(
            id=str(identifier),
            name=str(data.get("name") or "").strip(),
            courses=parse_course_names(data.get("course")),
            email=data.get("email"),
            phone=data.get("phone"),
        )


@dataclass(slots=True, frozen=True)
class Course:
    id: RecordId
    name: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Course":
        return cls(id=_record_id(data), name=str(data.get("name") or "").strip())


@dataclass(slots=True)
class AttendanceRecord:
    id: RecordId
    student_id: str
    course: str
    date: date
    status: AttendanceStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AttendanceRecord":
        return cls(
            id=_record_id(data),
            student_id=str(data["student_id"]),
            course=str(data.get("course") or ""),
            date=coerce_date(data["date"]),
            status=AttendanceStatus.parse(data["status"]),
            created_at=_optional_datetime(data.get("created_at")),
            updated_at=_optional_datetime(data.get("updated_at")),
        )


@dataclass(slots=True)
class DailyLogEntry:
    id: RecordId
    student_id: str
    student_name: str
    course: str
    report_date: datetime
    topics_covered: str
    trainer_remarks: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DailyLogEntry":
        return cls(
            id=_record_id(data),
            student_id=str(data["student_id"]),
            student_name=str(data.get("student_name") or ""),
            course=str(data.get("course") or ""),
            report_date=coerce_datetime(data["report_date"]),
            topics_covered=str(data.get("topics_covered") or ""),
            trainer_remarks=str(data.get("trainer_remarks") or ""),
            created_at=_optional_datetime(data.get("created_at")),
        )


@dataclass(slots=True, frozen=True)
class AttendancePayload:
    student_id: str
    course: str
    date: date
    status: AttendanceStatus

    def to_mapping(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "course": self.course,
            "date": self.date.isoformat(),
            "status": self.status.value,
        }


@dataclass(slots=True, frozen=True)
class DailyLogPayload:
    student_id: str
    student_name: str
    course: str
    report_date: date
    topics_covered: str
    trainer_remarks: str = ""

    def to_mapping(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            "course": self.course,
            "report_date": self.report_date.isoformat(),
            "topics_covered": self.topics_covered,
            "trainer_remarks": self.trainer_remarks,
        }


@dataclass(slots=True)
class RosterEntry:
    student: Student
    status: Optional[AttendanceStatus] = AttendanceStatus.PRESENT
    existing_record_id: Optional[RecordId] = None


@dataclass(slots=True)
class SessionDraft:
    """Editable state of one (course, date) session. Never persisted."""

    course: str
    date: date
    roster: list[RosterEntry] = field(default_factory=list)
    topics: str = ""
    remarks: str = ""

    def entry_for(self, student_id: str) -> Optional[RosterEntry]:
        for entry in self.roster:
            if entry.student.id == str(student_id):
                return entry
        return None


@dataclass(slots=True, frozen=True)
class HistoryDay:
    date: date
    course: str
    status: AttendanceStatus
    topics: str
    remarks: str
    recorded_at: str


@dataclass(slots=True, frozen=True)
class AttendanceSummary:
    present: int = 0
    absent: int = 0
    late: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.late

    @property
    def rate(self) -> float:
        """Share of sessions attended, counting late arrivals as attended."""
        if not self.total:
            return 0.0
        return (self.present + self.late) / self.total
