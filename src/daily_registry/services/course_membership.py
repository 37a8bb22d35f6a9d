from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Union

from daily_registry.models import Student

log = logging.getLogger(__name__)


def normalize_course_name(value: str | None) -> str:
    return (value or "").strip().lower()


@dataclass(slots=True, frozen=True)
class MembershipDiagnostic:
    target: str
    seen_courses: frozenset[str]

    def describe(self) -> str:
        seen = ", ".join(sorted(self.seen_courses)) or "none"
        return f"course {self.target!r} matched no student; course values seen: {seen}"


@dataclass(slots=True, frozen=True)
class ExactMatch:
    students: tuple[Student, ...]
    is_fallback = False


@dataclass(slots=True, frozen=True)
class FallbackAll:
    """Every scoped student, returned because no course value matched the target."""

    students: tuple[Student, ...]
    diagnostic: MembershipDiagnostic
    is_fallback = True


MembershipResult = Union[ExactMatch, FallbackAll]


def _unique_by_id(roster: Iterable[Student]) -> list[Student]:
    seen: set[str] = set()
    unique: list[Student] = []
    for student in roster:
        if student.id in seen:
            continue
        seen.add(student.id)
        unique.append(student)
    return unique


class CourseMembershipResolver:
    """Filter a server-scoped roster down to the students of one course.

    Matching ignores case and surrounding whitespace. When a non-empty roster
    produces no match at all the whole roster is returned as ``FallbackAll``:
    the server already limited what the caller may see, so an empty result is
    treated as a course-naming defect rather than an empty class.
    """

    def resolve(self, roster: Iterable[Student], target: str | None) -> MembershipResult:
        students = _unique_by_id(roster)
        key = normalize_course_name(target)
        if not key:
            return ExactMatch(students=())

        matched = tuple(student for student in students if key in student.course_keys)
        if matched or not students:
            return ExactMatch(students=matched)

        diagnostic = MembershipDiagnostic(
            target=target or "",
            seen_courses=frozenset(name for student in students for name in student.courses),
        )
        log.warning(
            "Course name mismatch, showing all %d scoped students: %s",
            len(students),
            diagnostic.describe(),
        )
        return FallbackAll(students=tuple(students), diagnostic=diagnostic)
