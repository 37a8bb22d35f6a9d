from .time import InvalidDateValue, coerce_date, coerce_datetime, format_time_of_day

__all__ = ["InvalidDateValue", "coerce_date", "coerce_datetime", "format_time_of_day"]
