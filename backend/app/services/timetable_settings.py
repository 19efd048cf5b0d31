from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ConfigurationError
from app.models.timetable_settings import TimetableSettings
from app.schemas.settings import (
    DEFAULT_END_TIME,
    DEFAULT_LUNCH_AFTER_PERIOD,
    DEFAULT_PERIOD_MINUTES,
    DEFAULT_PERIODS_PER_DAY,
    DEFAULT_START_TIME,
    DEFAULT_WORKING_DAYS_MASK,
    ScheduleSettings,
    TimetableSettingsUpdate,
)

logger = logging.getLogger(__name__)


def get_settings_record(db: Session) -> TimetableSettings | None:
    return db.execute(select(TimetableSettings).order_by(TimetableSettings.id).limit(1)).scalar_one_or_none()


def build_default_settings_record() -> TimetableSettings:
    return TimetableSettings(
        id=1,
        working_days_mask=DEFAULT_WORKING_DAYS_MASK,
        periods_per_day=DEFAULT_PERIODS_PER_DAY,
        period_minutes=DEFAULT_PERIOD_MINUTES,
        lunch_after_period=DEFAULT_LUNCH_AFTER_PERIOD,
        max_periods_per_teacher_per_day=DEFAULT_PERIODS_PER_DAY,
        start_time=DEFAULT_START_TIME,
        end_time=DEFAULT_END_TIME,
    )


def get_or_create_settings_record(db: Session) -> TimetableSettings:
    record = get_settings_record(db)
    if record is None:
        record = build_default_settings_record()
        db.add(record)
        db.flush()
        logger.info("Timetable settings were missing; created defaults")
    return record


def build_schedule_settings(record: TimetableSettings | None) -> ScheduleSettings:
    """Resolve a persisted row into a ScheduleSettings value, defaulting any missing column."""
    if record is None:
        return ScheduleSettings()

    periods_per_day = record.periods_per_day or DEFAULT_PERIODS_PER_DAY
    try:
        return ScheduleSettings(
            working_days_mask=record.working_days_mask if record.working_days_mask is not None else DEFAULT_WORKING_DAYS_MASK,
            periods_per_day=periods_per_day,
            period_minutes=record.period_minutes or DEFAULT_PERIOD_MINUTES,
            lunch_after_period=(
                record.lunch_after_period if record.lunch_after_period is not None else DEFAULT_LUNCH_AFTER_PERIOD
            ),
            max_periods_per_teacher_per_day=record.max_periods_per_teacher_per_day or periods_per_day,
            start_time=record.start_time or DEFAULT_START_TIME,
            end_time=record.end_time or DEFAULT_END_TIME,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Stored timetable settings are invalid: {exc.errors()[0]['msg']}") from exc


def load_schedule_settings(db: Session) -> ScheduleSettings:
    """Read the settings singleton once for a call, creating the default row when absent."""
    return build_schedule_settings(get_or_create_settings_record(db))


def apply_settings_update(db: Session, payload: TimetableSettingsUpdate) -> TimetableSettings:
    record = get_or_create_settings_record(db)
    record.working_days_mask = payload.working_days_mask
    record.periods_per_day = payload.periods_per_day
    record.period_minutes = payload.period_minutes
    record.lunch_after_period = payload.lunch_after_period
    record.max_periods_per_teacher_per_day = payload.max_periods_per_teacher_per_day or payload.periods_per_day
    record.start_time = payload.start_time
    record.end_time = payload.end_time
    return record
