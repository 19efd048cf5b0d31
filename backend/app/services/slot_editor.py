from __future__ import annotations

import logging
from typing import NoReturn

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AppError,
    ConflictError,
    ResourceNotFoundError,
    UnprocessableError,
    ValidationFailedError,
)
from app.models.school import ClassSection, Subject, Teacher
from app.models.timetable_slot import SlotSource, TimetableSlot
from app.models.user import User
from app.schemas.settings import ScheduleSettings
from app.schemas.timetable import SlotUpdateRequest, TimetableGridOut
from app.services.audit import log_activity
from app.services.eligibility import is_teacher_eligible
from app.services.locks import class_section_locks
from app.services.timetable_grid import build_grid_response

logger = logging.getLogger(__name__)


def find_slot(db: Session, class_section_id: str, day_of_week: int, period_no: int) -> TimetableSlot | None:
    return db.execute(
        select(TimetableSlot).where(
            TimetableSlot.class_section_id == class_section_id,
            TimetableSlot.day_of_week == day_of_week,
            TimetableSlot.period_no == period_no,
        )
    ).scalar_one_or_none()


def teacher_booked_elsewhere(
    db: Session,
    *,
    teacher_id: str,
    day_of_week: int,
    period_no: int,
    class_section_id: str,
) -> bool:
    count = db.execute(
        select(func.count(TimetableSlot.id)).where(
            TimetableSlot.teacher_id == teacher_id,
            TimetableSlot.day_of_week == day_of_week,
            TimetableSlot.period_no == period_no,
            TimetableSlot.class_section_id != class_section_id,
        )
    ).scalar_one()
    return count > 0


def _reject(message: str, error: type[AppError], **details) -> NoReturn:
    logger.info("SLOT EDIT REJECTED | reason=%s | %s", message, details)
    raise error(message, details=details)


def update_slot(
    db: Session,
    class_section: ClassSection,
    settings: ScheduleSettings,
    payload: SlotUpdateRequest,
    *,
    user: User | None = None,
) -> TimetableGridOut:
    """Validate and apply one manual cell edit, then return the refreshed grid.

    The daily load cap is not enforced here; manual edits may exceed it.
    """
    day_of_week = payload.day_of_week
    period_no = payload.period_no
    if period_no > settings.periods_per_day:
        raise ValidationFailedError(
            f"Period {period_no} is outside the {settings.periods_per_day} periods of the day",
            details={"period_no": period_no, "periods_per_day": settings.periods_per_day},
        )

    fields_set = payload.model_fields_set
    subject_id = payload.subject_id
    teacher_id = payload.teacher_id
    if subject_id is not None and db.get(Subject, subject_id) is None:
        raise ResourceNotFoundError("Subject", subject_id)
    if teacher_id is not None and db.get(Teacher, teacher_id) is None:
        raise ResourceNotFoundError("Teacher", teacher_id)

    with class_section_locks.hold(class_section.id):
        slot = find_slot(db, class_section.id, day_of_week, period_no)
        if slot is None:
            slot = TimetableSlot(
                class_section_id=class_section.id,
                day_of_week=day_of_week,
                period_no=period_no,
                locked=False,
                generated_by=SlotSource.manual,
            )

        # The configured lunch period is locked whether or not its row exists yet.
        if slot.locked or settings.is_lunch_period(period_no):
            _reject(
                "Slot is locked and cannot be edited",
                ConflictError,
                class_section_id=class_section.id,
                day_of_week=day_of_week,
                period_no=period_no,
            )

        if teacher_id is not None and teacher_booked_elsewhere(
            db,
            teacher_id=teacher_id,
            day_of_week=day_of_week,
            period_no=period_no,
            class_section_id=class_section.id,
        ):
            _reject(
                "Teacher is already assigned to another class at this time",
                ConflictError,
                teacher_id=teacher_id,
                day_of_week=day_of_week,
                period_no=period_no,
            )

        if (
            subject_id is not None
            and teacher_id is not None
            and not is_teacher_eligible(db, class_section.id, subject_id, teacher_id)
        ):
            _reject(
                "Teacher is not eligible to teach this subject for the class-section",
                UnprocessableError,
                teacher_id=teacher_id,
                subject_id=subject_id,
                class_section_id=class_section.id,
            )

        if subject_id is not None:
            slot.subject_id = subject_id
        # A new subject without a teacher clears the previous teacher; an explicit null clears it too.
        if "teacher_id" in fields_set or subject_id is not None:
            slot.teacher_id = teacher_id
        if payload.locked is not None:
            slot.locked = payload.locked
        slot.generated_by = SlotSource.manual

        try:
            db.add(slot)
            db.flush()
            log_activity(
                db,
                user=user,
                action="timetable.slot.update",
                entity_type="timetable_slot",
                entity_id=slot.id,
                class_section_id=class_section.id,
                details={
                    "day_of_week": day_of_week,
                    "period_no": period_no,
                    "subject_id": slot.subject_id,
                    "teacher_id": slot.teacher_id,
                    "locked": slot.locked,
                },
            )
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError(
                "Slot was modified concurrently; reload the timetable and retry",
                details={"day_of_week": day_of_week, "period_no": period_no},
            ) from exc

    logger.info(
        "SLOT EDIT APPLIED | class_section_id=%s | day=%s | period=%s | subject_id=%s | teacher_id=%s | locked=%s",
        class_section.id,
        day_of_week,
        period_no,
        slot.subject_id,
        slot.teacher_id,
        slot.locked,
    )
    return build_grid_response(db, class_section, settings)
