"""Greedy weekly timetable generation for one class-section.

Requirements are consumed from a work queue one occurrence at a time. Each
occurrence goes to the first open period of the first day, scanning from a
rotating start day, that does not already carry the subject; the start day
advances after every placement so repeated occurrences spread across the week.
The run stops at the first occurrence that fits nowhere and reports what is
left instead of relaxing the one-per-day rule.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
from time import perf_counter

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.models.school import ClassSection
from app.models.timetable_requirement import TimetableRequirement
from app.models.timetable_slot import SlotSource, TimetableSlot
from app.models.user import User
from app.schemas.settings import ScheduleSettings
from app.schemas.timetable import TimetableGenerationOut, UnplacedRequirementOut
from app.services.audit import log_activity
from app.services.display import load_display_lookup
from app.services.eligibility import eligible_teachers_by_subject
from app.services.grid_builder import Grid, GridCell, build_grid, cells_to_persist, subject_on_day
from app.services.load_tracker import TeacherLoadTracker
from app.services.locks import class_section_locks
from app.services.timetable_grid import build_grid_response, load_slots

logger = logging.getLogger(__name__)

# (teacher_id, day_of_week, period_no)
Booking = tuple[str, int, int]


@dataclass
class PlacementResult:
    placed: list[GridCell] = field(default_factory=list)
    unplaced: list[tuple[str, int]] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.unplaced


def _find_open_cell(
    grid: Grid,
    working_days: Sequence[int],
    start_index: int,
    subject_id: str,
    periods_per_day: int,
) -> GridCell | None:
    day_count = len(working_days)
    for offset in range(day_count):
        row = grid.get(working_days[(start_index + offset) % day_count])
        if not row or subject_on_day(row, subject_id):
            continue
        for period_no in range(1, periods_per_day + 1):
            cell = row.get(period_no)
            if cell is not None and cell.is_open:
                return cell
    return None


def fill_grid(
    grid: Grid,
    requirements: Sequence[tuple[str, int]],
    eligible: Mapping[str, Sequence[str]],
    settings: ScheduleSettings,
    *,
    bookings: set[Booking] | None = None,
    tracker: TeacherLoadTracker | None = None,
) -> PlacementResult:
    """Place every required occurrence into ``grid`` in memory.

    ``bookings`` holds teacher positions already committed elsewhere; such a
    teacher is never picked for the same weekday and period. A subject without
    an available teacher is still placed, with no teacher.
    """
    if tracker is None:
        tracker = TeacherLoadTracker(settings.max_periods_per_teacher_per_day)
    bookings = bookings or set()
    result = PlacementResult()

    queue: deque[tuple[str, int]] = deque(
        (subject_id, weekly) for subject_id, weekly in requirements if weekly and weekly > 0
    )
    working_days = [day for day in settings.working_days if day in grid]
    if not working_days:
        result.unplaced = list(queue)
        return result

    start_index = 0
    while queue:
        subject_id, remaining = queue.popleft()
        cell = _find_open_cell(grid, working_days, start_index, subject_id, settings.periods_per_day)
        if cell is None:
            queue.appendleft((subject_id, remaining))
            break

        candidates = eligible.get(subject_id, ())
        busy = {
            teacher_id
            for teacher_id in candidates
            if (teacher_id, cell.day_of_week, cell.period_no) in bookings
        }
        teacher_id = tracker.pick_teacher(cell.day_of_week, candidates, exclude=busy)

        cell.subject_id = subject_id
        cell.teacher_id = teacher_id
        cell.generated_by = SlotSource.auto
        cell.placed = True
        if teacher_id is not None:
            tracker.record_assignment(cell.day_of_week, teacher_id)
        result.placed.append(cell)

        remaining -= 1
        if remaining > 0:
            queue.append((subject_id, remaining))
        start_index = (start_index + 1) % len(working_days)

    result.unplaced = list(queue)
    return result


def load_requirements(db: Session, class_section_id: str) -> list[tuple[str, int]]:
    rows = db.execute(
        select(TimetableRequirement.subject_id, TimetableRequirement.weekly_periods)
        .where(TimetableRequirement.class_section_id == class_section_id)
        .order_by(TimetableRequirement.subject_id)
    ).all()
    return [(subject_id, weekly) for subject_id, weekly in rows if weekly and weekly > 0]


def teacher_bookings_elsewhere(db: Session, class_section_id: str) -> set[Booking]:
    rows = db.execute(
        select(TimetableSlot.teacher_id, TimetableSlot.day_of_week, TimetableSlot.period_no).where(
            TimetableSlot.class_section_id != class_section_id,
            TimetableSlot.teacher_id.is_not(None),
        )
    ).all()
    return {(teacher_id, day, period_no) for teacher_id, day, period_no in rows}


def _persist_cells(
    db: Session,
    class_section_id: str,
    cells: Sequence[GridCell],
    existing_by_id: Mapping[str, TimetableSlot],
) -> None:
    for cell in cells:
        slot = existing_by_id.get(cell.slot_id) if cell.slot_id else None
        if slot is None:
            db.add(
                TimetableSlot(
                    class_section_id=class_section_id,
                    day_of_week=cell.day_of_week,
                    period_no=cell.period_no,
                    subject_id=cell.subject_id,
                    teacher_id=cell.teacher_id,
                    locked=cell.locked,
                    generated_by=cell.generated_by,
                )
            )
            continue
        slot.subject_id = cell.subject_id
        slot.teacher_id = cell.teacher_id
        slot.locked = cell.locked
        slot.generated_by = cell.generated_by


def generate_timetable(
    db: Session,
    class_section: ClassSection,
    settings: ScheduleSettings,
    *,
    preserve_existing: bool = False,
    user: User | None = None,
) -> TimetableGenerationOut:
    """Regenerate (or top up) a class-section's week and return the refreshed grid.

    Everything is computed in memory first; old rows are removed and new rows
    written in the same transaction, so a failure leaves the previous week intact.
    """
    started = perf_counter()
    logger.info(
        "TIMETABLE GENERATION START | class_section_id=%s | preserve_existing=%s | user_id=%s",
        class_section.id,
        preserve_existing,
        user.id if user is not None else None,
    )
    with class_section_locks.hold(class_section.id):
        try:
            existing = load_slots(db, class_section.id) if preserve_existing else []
            grid = build_grid(settings, existing)
            requirements = load_requirements(db, class_section.id)
            eligible = eligible_teachers_by_subject(db, class_section.id, [subject for subject, _ in requirements])
            result = fill_grid(
                grid,
                requirements,
                eligible,
                settings,
                bookings=teacher_bookings_elsewhere(db, class_section.id),
            )

            if not preserve_existing:
                db.execute(delete(TimetableSlot).where(TimetableSlot.class_section_id == class_section.id))
            _persist_cells(
                db,
                class_section.id,
                cells_to_persist(grid),
                {slot.id: slot for slot in existing},
            )
            log_activity(
                db,
                user=user,
                action="timetable.generate",
                entity_type="class_section",
                entity_id=class_section.id,
                class_section_id=class_section.id,
                details={
                    "preserve_existing": preserve_existing,
                    "placed": len(result.placed),
                    "unplaced": {subject_id: remaining for subject_id, remaining in result.unplaced},
                },
            )
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.warning(
                "TIMETABLE GENERATION CONFLICT | class_section_id=%s | error=%s",
                class_section.id,
                exc.orig,
            )
            raise ConflictError(
                "Timetable was modified concurrently; retry the generation",
                details={"class_section_id": class_section.id},
            ) from exc
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                "TIMETABLE GENERATION FAILED | class_section_id=%s | wall_ms=%s",
                class_section.id,
                int((perf_counter() - started) * 1000),
            )
            raise

    wall_ms = int((perf_counter() - started) * 1000)
    if result.complete:
        logger.info(
            "TIMETABLE GENERATION COMPLETE | class_section_id=%s | placed=%s | wall_ms=%s",
            class_section.id,
            len(result.placed),
            wall_ms,
        )
    else:
        logger.warning(
            "TIMETABLE GENERATION INCOMPLETE | class_section_id=%s | placed=%s | unplaced=%s | wall_ms=%s",
            class_section.id,
            len(result.placed),
            sum(remaining for _, remaining in result.unplaced),
            wall_ms,
        )

    grid_out = build_grid_response(db, class_section, settings)
    lookup = load_display_lookup(db, subject_ids=[subject_id for subject_id, _ in result.unplaced])
    return TimetableGenerationOut(
        **grid_out.model_dump(),
        complete=result.complete,
        placed_count=len(result.placed),
        unplaced=[
            UnplacedRequirementOut(
                subject_id=subject_id,
                subject_code=lookup.subject_code(subject_id),
                remaining_periods=remaining,
            )
            for subject_id, remaining in result.unplaced
        ],
    )
