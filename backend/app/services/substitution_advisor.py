from __future__ import annotations

from datetime import date
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from app.models.school import ClassSection, Teacher
from app.models.substitution import TimetableSubstitution
from app.models.timetable_slot import TimetableSlot
from app.models.user import User
from app.schemas.settings import ScheduleSettings
from app.schemas.substitution import (
    AffectedPeriodOut,
    SubstituteCandidateOut,
    SubstitutionCreate,
    SubstitutionOut,
)
from app.services.audit import log_activity
from app.services.display import load_display_lookup
from app.services.eligibility import teachers_for_subject
from app.services.load_tracker import committed_day_load, committed_substitution_load

logger = logging.getLogger(__name__)


def _teachers_busy_at(db: Session, *, day_of_week: int, period_no: int) -> set[str]:
    rows = db.execute(
        select(TimetableSlot.teacher_id).where(
            TimetableSlot.day_of_week == day_of_week,
            TimetableSlot.period_no == period_no,
            TimetableSlot.teacher_id.is_not(None),
        )
    ).scalars()
    return set(rows)


def _teachers_substituting_at(db: Session, *, on_date: date, period_no: int) -> set[str]:
    rows = db.execute(
        select(TimetableSubstitution.substitute_teacher_id).where(
            TimetableSubstitution.on_date == on_date,
            TimetableSubstitution.period_no == period_no,
        )
    ).scalars()
    return set(rows)


def _load_flags(load: int, max_load: int) -> tuple[bool, bool, str | None]:
    if load >= max_load:
        return (
            True,
            False,
            f"Teacher already has {load} periods that day (max recommended: {max_load}). "
            "Consider a teacher with a lighter workload.",
        )
    if load == max_load - 1:
        return False, True, f"One more period brings this teacher to the daily maximum of {max_load}."
    return False, False, None


def suggest_substitutes(
    db: Session,
    class_section: ClassSection,
    settings: ScheduleSettings,
    *,
    period_no: int,
    on_date: date,
    subject_id: str | None = None,
    absent_teacher_id: str | None = None,
) -> list[SubstituteCandidateOut]:
    """Rank free teachers for one period of an absence, least loaded first.

    Load is what is already committed: the teacher's slots on that weekday
    plus substitutions they have taken on that date.
    """
    day_of_week = on_date.isoweekday()
    max_load = settings.max_periods_per_teacher_per_day
    busy = _teachers_busy_at(db, day_of_week=day_of_week, period_no=period_no)
    busy |= _teachers_substituting_at(db, on_date=on_date, period_no=period_no)

    ranked: list[tuple[int, str, str, SubstituteCandidateOut]] = []
    for teacher in teachers_for_subject(db, subject_id):
        if teacher.id == absent_teacher_id or teacher.id in busy:
            continue
        load = committed_day_load(db, teacher.id, day_of_week) + committed_substitution_load(db, teacher.id, on_date)
        overloaded, near_cap, warning = _load_flags(load, max_load)
        candidate = SubstituteCandidateOut(
            teacher_id=teacher.id,
            teacher_name=teacher.name,
            department=teacher.department,
            current_day_load=load,
            max_day_load=max_load,
            is_overloaded=overloaded,
            near_cap=near_cap,
            warning_message=warning,
        )
        ranked.append((load, teacher.name, teacher.id, candidate))

    ranked.sort(key=lambda item: item[:3])
    logger.info(
        "SUBSTITUTE SUGGESTIONS | class_section_id=%s | date=%s | period=%s | subject_id=%s | candidates=%s",
        class_section.id,
        on_date.isoformat(),
        period_no,
        subject_id,
        len(ranked),
    )
    return [item[3] for item in ranked]


def _slot_at(db: Session, class_section_id: str, day_of_week: int, period_no: int) -> TimetableSlot | None:
    return db.execute(
        select(TimetableSlot).where(
            TimetableSlot.class_section_id == class_section_id,
            TimetableSlot.day_of_week == day_of_week,
            TimetableSlot.period_no == period_no,
        )
    ).scalar_one_or_none()


def _build_substitution_out(
    db: Session,
    record: TimetableSubstitution,
    *,
    class_section: ClassSection | None = None,
) -> SubstitutionOut:
    if class_section is None:
        class_section = db.get(ClassSection, record.class_section_id)
    slot = _slot_at(db, record.class_section_id, record.on_date.isoweekday(), record.period_no)
    lookup = load_display_lookup(
        db,
        subject_ids=[slot.subject_id if slot is not None else None],
        teacher_ids=[record.original_teacher_id, record.substitute_teacher_id],
    )
    subject_id = slot.subject_id if slot is not None else None
    return SubstitutionOut(
        id=record.id,
        on_date=record.on_date,
        class_section_id=record.class_section_id,
        class_section_label=class_section.label if class_section is not None else None,
        period_no=record.period_no,
        original_teacher_id=record.original_teacher_id,
        original_teacher_name=lookup.teacher_name(record.original_teacher_id),
        substitute_teacher_id=record.substitute_teacher_id,
        substitute_teacher_name=lookup.teacher_name(record.substitute_teacher_id),
        subject_code=lookup.subject_code(subject_id),
        subject_name=lookup.subject_name(subject_id),
        reason=record.reason,
        notes=record.notes,
        approved_by_id=record.approved_by_id,
        approved_by_name=record.approved_by_name,
        created_at=record.created_at,
    )


def create_substitution(
    db: Session,
    class_section: ClassSection,
    settings: ScheduleSettings,
    payload: SubstitutionCreate,
    *,
    user: User | None = None,
) -> SubstitutionOut:
    day_of_week = payload.on_date.isoweekday()
    if payload.period_no > settings.periods_per_day:
        raise ValidationFailedError(
            f"Period {payload.period_no} is outside the {settings.periods_per_day} periods of the day",
            details={"period_no": payload.period_no},
        )

    substitute = db.get(Teacher, payload.substitute_teacher_id)
    if substitute is None:
        raise ResourceNotFoundError("Teacher", payload.substitute_teacher_id)

    original_teacher_id = payload.original_teacher_id
    if original_teacher_id is None:
        slot = _slot_at(db, class_section.id, day_of_week, payload.period_no)
        original_teacher_id = slot.teacher_id if slot is not None else None
    elif db.get(Teacher, original_teacher_id) is None:
        raise ResourceNotFoundError("Teacher", original_teacher_id)

    if original_teacher_id == substitute.id:
        raise ValidationFailedError("Substitute teacher must differ from the absent teacher")

    duplicate = db.execute(
        select(func.count(TimetableSubstitution.id)).where(
            TimetableSubstitution.on_date == payload.on_date,
            TimetableSubstitution.class_section_id == class_section.id,
            TimetableSubstitution.period_no == payload.period_no,
        )
    ).scalar_one()
    if duplicate:
        raise ConflictError(
            "A substitution already exists for this class-section, date and period",
            details={"on_date": payload.on_date.isoformat(), "period_no": payload.period_no},
        )

    if substitute.id in _teachers_busy_at(db, day_of_week=day_of_week, period_no=payload.period_no):
        raise ConflictError(
            f"{substitute.name} already teaches a class at this time",
            details={"teacher_id": substitute.id, "day_of_week": day_of_week, "period_no": payload.period_no},
        )
    if substitute.id in _teachers_substituting_at(db, on_date=payload.on_date, period_no=payload.period_no):
        raise ConflictError(
            f"{substitute.name} is already substituting at this time",
            details={"teacher_id": substitute.id, "on_date": payload.on_date.isoformat(), "period_no": payload.period_no},
        )

    record = TimetableSubstitution(
        on_date=payload.on_date,
        class_section_id=class_section.id,
        period_no=payload.period_no,
        original_teacher_id=original_teacher_id,
        substitute_teacher_id=substitute.id,
        reason=(payload.reason or "").strip() or None,
        notes=(payload.notes or "").strip() or None,
        approved_by_id=user.id if user is not None else None,
        approved_by_name=user.name if user is not None else None,
    )
    try:
        db.add(record)
        db.flush()
        log_activity(
            db,
            user=user,
            action="timetable.substitution.create",
            entity_type="timetable_substitution",
            entity_id=record.id,
            class_section_id=class_section.id,
            details={
                "on_date": payload.on_date.isoformat(),
                "period_no": payload.period_no,
                "original_teacher_id": original_teacher_id,
                "substitute_teacher_id": substitute.id,
            },
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(
            "A substitution already exists for this class-section, date and period",
            details={"on_date": payload.on_date.isoformat(), "period_no": payload.period_no},
        ) from exc
    db.refresh(record)

    logger.info(
        "SUBSTITUTION CREATED | id=%s | class_section_id=%s | date=%s | period=%s | substitute=%s",
        record.id,
        class_section.id,
        record.on_date.isoformat(),
        record.period_no,
        substitute.id,
    )
    return _build_substitution_out(db, record, class_section=class_section)


def list_substitutions(db: Session, on_date: date) -> list[SubstitutionOut]:
    records = db.execute(
        select(TimetableSubstitution)
        .where(TimetableSubstitution.on_date == on_date)
        .order_by(TimetableSubstitution.class_section_id, TimetableSubstitution.period_no)
    ).scalars()
    return [_build_substitution_out(db, record) for record in records]


def delete_substitution(db: Session, substitution_id: str, *, user: User | None = None) -> None:
    record = db.get(TimetableSubstitution, substitution_id)
    if record is None:
        raise ResourceNotFoundError("Substitution", substitution_id)
    log_activity(
        db,
        user=user,
        action="timetable.substitution.delete",
        entity_type="timetable_substitution",
        entity_id=record.id,
        class_section_id=record.class_section_id,
        details={"on_date": record.on_date.isoformat(), "period_no": record.period_no},
    )
    db.delete(record)
    db.commit()
    logger.info("SUBSTITUTION REMOVED | id=%s", substitution_id)


def affected_periods(
    db: Session,
    settings: ScheduleSettings,
    *,
    teacher_id: str,
    on_date: date,
) -> list[AffectedPeriodOut]:
    """Periods the absent teacher would have taught on ``on_date``."""
    if db.get(Teacher, teacher_id) is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    day_of_week = on_date.isoweekday()
    slots = list(
        db.execute(
            select(TimetableSlot)
            .where(TimetableSlot.teacher_id == teacher_id, TimetableSlot.day_of_week == day_of_week)
            .order_by(TimetableSlot.period_no, TimetableSlot.class_section_id)
        ).scalars()
    )
    if not slots:
        return []

    sections = {
        item.id: item
        for item in db.execute(
            select(ClassSection).where(ClassSection.id.in_({slot.class_section_id for slot in slots}))
        ).scalars()
    }
    covered = {
        (record.class_section_id, record.period_no): record.substitute_teacher_id
        for record in db.execute(
            select(TimetableSubstitution).where(TimetableSubstitution.on_date == on_date)
        ).scalars()
    }
    lookup = load_display_lookup(db, subject_ids=[slot.subject_id for slot in slots])
    period_times = settings.period_times()
    return [
        AffectedPeriodOut(
            class_section_id=slot.class_section_id,
            class_section_label=sections[slot.class_section_id].label if slot.class_section_id in sections else None,
            day_of_week=day_of_week,
            period_no=slot.period_no,
            period_time=period_times.get(slot.period_no),
            subject_id=slot.subject_id,
            subject_code=lookup.subject_code(slot.subject_id),
            subject_name=lookup.subject_name(slot.subject_id),
            substitute_teacher_id=covered.get((slot.class_section_id, slot.period_no)),
        )
        for slot in slots
    ]
