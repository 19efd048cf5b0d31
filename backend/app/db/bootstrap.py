from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "class_sections": {"id", "grade_number", "section_name"},
    "subjects": {"id", "code", "name"},
    "teachers": {"id", "name", "is_active"},
    "teacher_subject_eligibility": {"teacher_id", "subject_id"},
    "teacher_class_assignments": {"teacher_id", "class_section_id"},
    "timetable_requirements": {"id", "class_section_id", "subject_id", "weekly_periods"},
    "timetable_settings": {
        "id",
        "working_days_mask",
        "periods_per_day",
        "lunch_after_period",
        "max_periods_per_teacher_per_day",
    },
    "timetable_slots": {"id", "class_section_id", "day_of_week", "period_no", "locked", "generated_by"},
    "timetable_substitutions": {"id", "on_date", "class_section_id", "period_no", "substitute_teacher_id"},
}


def find_schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    """Return (missing tables, table -> missing columns) for the scheduling schema."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return sorted(missing_tables), missing_columns


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Create absent tables first; existing tables are only checked, never altered.
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
