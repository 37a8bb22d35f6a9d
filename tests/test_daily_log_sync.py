from datetime import date

from daily_registry.models import RosterEntry, SessionDraft, Student
from daily_registry.services import DailyLogSynchronizer


def _draft(topics: str, remarks: str = "") -> SessionDraft:
    roster = [
        RosterEntry(student=Student(id=str(index), name=f"Student {index}"))
        for index in (1, 2, 3)
    ]
    return SessionDraft(
        course="Hairdressing",
        date=date(2025, 3, 1),
        roster=roster,
        topics=topics,
        remarks=remarks,
    )


def test_one_entry_per_roster_student():
    entries = DailyLogSynchronizer().plan(_draft("Blow-drying", "Bring combs"))

    assert len(entries) == 3
    assert {entry.student_id for entry in entries} == {"1", "2", "3"}
    assert {entry.topics_covered for entry in entries} == {"Blow-drying"}
    assert entries[0].student_name == "Student 1"
    assert entries[0].trainer_remarks == "Bring combs"
    assert entries[0].to_mapping()["report_date"] == "2025-03-01"


def test_no_entries_without_topics():
    assert DailyLogSynchronizer().plan(_draft("")) == []
    assert DailyLogSynchronizer().plan(_draft("   ", remarks="ignored")) == []
