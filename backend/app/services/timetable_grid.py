from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.school import ClassSection
from app.models.timetable_slot import TimetableSlot
from app.schemas.settings import WEEKDAY_SHORT_NAMES, ScheduleSettings
from app.schemas.timetable import GridCellOut, TimetableGridOut
from app.services.display import load_display_lookup


def load_slots(db: Session, class_section_id: str) -> list[TimetableSlot]:
    return list(
        db.execute(
            select(TimetableSlot)
            .where(TimetableSlot.class_section_id == class_section_id)
            .order_by(TimetableSlot.day_of_week, TimetableSlot.period_no)
        ).scalars()
    )


def build_grid_response(
    db: Session,
    class_section: ClassSection,
    settings: ScheduleSettings,
    slots: list[TimetableSlot] | None = None,
) -> TimetableGridOut:
    """Shape persisted slots as 0-based day index -> period number -> cell.

    All five weekdays are always present; days the mask disables stay empty.
    """
    if slots is None:
        slots = load_slots(db, class_section.id)

    lookup = load_display_lookup(
        db,
        subject_ids=[slot.subject_id for slot in slots],
        teacher_ids=[slot.teacher_id for slot in slots],
    )
    grid: dict[int, dict[int, GridCellOut]] = {index: {} for index in range(len(WEEKDAY_SHORT_NAMES))}
    for slot in slots:
        day_index = slot.day_of_week - 1
        if day_index not in grid:
            continue
        grid[day_index][slot.period_no] = GridCellOut(
            slot_id=slot.id,
            subject_id=slot.subject_id,
            teacher_id=slot.teacher_id,
            locked=bool(slot.locked),
            generated_by=slot.generated_by.value if slot.generated_by is not None else None,
            subject_code=lookup.subject_code(slot.subject_id),
            subject_name=lookup.subject_name(slot.subject_id),
            teacher_name=lookup.teacher_name(slot.teacher_id),
        )

    return TimetableGridOut(
        class_section_id=class_section.id,
        class_section_label=class_section.label,
        periods_per_day=settings.periods_per_day,
        days=list(WEEKDAY_SHORT_NAMES),
        working_days=[day - 1 for day in settings.working_days],
        period_times=settings.period_times(),
        grid=grid,
    )
