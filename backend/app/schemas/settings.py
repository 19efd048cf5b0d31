from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

# Only Monday..Friday are schedulable; bits 5 and 6 of the mask are accepted but ignored.
WEEKDAY_SHORT_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri"]
SCHEDULABLE_WEEKDAYS = range(1, len(WEEKDAY_SHORT_NAMES) + 1)

DEFAULT_WORKING_DAYS_MASK = 0b11111
DEFAULT_PERIODS_PER_DAY = 8
DEFAULT_PERIOD_MINUTES = 40
DEFAULT_LUNCH_AFTER_PERIOD = 4
DEFAULT_START_TIME = "08:30"
DEFAULT_END_TIME = "15:30"


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(minutes: int) -> str:
    return f"{(minutes // 60) % 24:02d}:{minutes % 60:02d}"


class TimetableSettingsBase(BaseModel):
    working_days_mask: int = Field(default=DEFAULT_WORKING_DAYS_MASK, ge=1, le=127)
    periods_per_day: int = Field(default=DEFAULT_PERIODS_PER_DAY, ge=1, le=16)
    period_minutes: int = Field(default=DEFAULT_PERIOD_MINUTES, ge=5, le=180)
    # 0 disables the locked lunch period
    lunch_after_period: int = Field(default=DEFAULT_LUNCH_AFTER_PERIOD, ge=0, le=16)
    max_periods_per_teacher_per_day: int | None = Field(default=None, ge=1, le=16)
    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_layout(self):
        if self.lunch_after_period > self.periods_per_day:
            raise ValueError("Lunch period must fall within the periods of the day")
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class TimetableSettingsUpdate(TimetableSettingsBase):
    pass


class ScheduleSettings(TimetableSettingsBase):
    """Resolved scheduling configuration, loaded once per call and passed to every component."""

    model_config = ConfigDict(frozen=True)

    max_periods_per_teacher_per_day: int = Field(default=DEFAULT_PERIODS_PER_DAY, ge=1, le=16)

    @property
    def working_days(self) -> list[int]:
        """ISO weekdays (1 = Monday) enabled by the mask, in week order."""
        return [day for day in SCHEDULABLE_WEEKDAYS if self.working_days_mask & (1 << (day - 1))]

    def is_working_day(self, day_of_week: int) -> bool:
        return day_of_week in self.working_days

    def is_lunch_period(self, period_no: int) -> bool:
        return self.lunch_after_period > 0 and period_no == self.lunch_after_period

    def period_times(self) -> dict[int, str]:
        start = parse_time_to_minutes(self.start_time)
        times: dict[int, str] = {}
        for period_no in range(1, self.periods_per_day + 1):
            begin = start + (period_no - 1) * self.period_minutes
            times[period_no] = f"{minutes_to_hhmm(begin)}-{minutes_to_hhmm(begin + self.period_minutes)}"
        return times


DEFAULT_SCHEDULE_SETTINGS = ScheduleSettings()
