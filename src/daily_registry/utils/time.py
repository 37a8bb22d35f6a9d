from __future__ import annotations

from datetime import date, datetime


class InvalidDateValue(ValueError):
    pass


def coerce_datetime(value: datetime | date | str) -> datetime:
    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, str):
        candidate = value.strip().replace(" ", "T", 1)
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S.%f%z"):
                try:
                    return datetime.strptime(value.strip(), fmt)
                except ValueError:
                    continue

    raise InvalidDateValue(f"Unsupported datetime value: {value!r}")


def coerce_date(value: datetime | date | str) -> date:
    """Reduce a date, datetime or ISO string to its calendar-day component.

    Strings are truncated to their leading ``YYYY-MM-DD`` before parsing, so
    ``"2025-03-01T23:30:00Z"`` is the 1st of March whatever the local offset.
    """

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise InvalidDateValue(f"Unsupported date value: {value!r}") from exc

    raise InvalidDateValue(f"Unsupported date value: {value!r}")


def format_time_of_day(value: datetime | str | None, *, placeholder: str = "—") -> str:
    if value is None or value == "":
        return placeholder

    try:
        moment = coerce_datetime(value)
    except InvalidDateValue:
        return placeholder

    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%H:%M")
