from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.models.timetable_slot import SlotSource, TimetableSlot
from app.schemas.settings import ScheduleSettings


@dataclass
class GridCell:
    day_of_week: int
    period_no: int
    subject_id: str | None = None
    teacher_id: str | None = None
    locked: bool = False
    generated_by: SlotSource = SlotSource.auto
    # id of the persisted row this cell mirrors, if any
    slot_id: str | None = None
    placed: bool = False
    # persisted unlocked row at the lunch period, reset to the lunch placeholder
    reclaimed: bool = False

    @property
    def is_open(self) -> bool:
        return not self.locked and self.subject_id is None

    @property
    def is_new(self) -> bool:
        return self.slot_id is None

    @classmethod
    def from_slot(cls, slot: TimetableSlot) -> "GridCell":
        return cls(
            day_of_week=slot.day_of_week,
            period_no=slot.period_no,
            subject_id=slot.subject_id,
            teacher_id=slot.teacher_id,
            locked=bool(slot.locked),
            generated_by=slot.generated_by or SlotSource.auto,
            slot_id=slot.id,
        )


Grid = dict[int, dict[int, GridCell]]


def build_grid(settings: ScheduleSettings, existing_slots: Iterable[TimetableSlot] | None = None) -> Grid:
    """Day -> period -> placeholder for every working day, lunch pre-locked.

    Existing slots, when given, replace the placeholder at their position and
    keep their locked/assigned state. An unlocked row sitting on the lunch
    period does not: the cell stays a locked, empty placeholder bound to that
    row. Callers that want a clean week delete prior slots instead of passing
    them here.
    """
    grid: Grid = {}
    for day in settings.working_days:
        row: dict[int, GridCell] = {}
        for period_no in range(1, settings.periods_per_day + 1):
            row[period_no] = GridCell(
                day_of_week=day,
                period_no=period_no,
                locked=settings.is_lunch_period(period_no),
                generated_by=SlotSource.auto,
            )
        grid[day] = row

    for slot in existing_slots or ():
        if settings.is_lunch_period(slot.period_no) and not slot.locked:
            cell = GridCell(
                day_of_week=slot.day_of_week,
                period_no=slot.period_no,
                locked=True,
                generated_by=SlotSource.auto,
                slot_id=slot.id,
                reclaimed=True,
            )
        else:
            cell = GridCell.from_slot(slot)
        grid.setdefault(slot.day_of_week, {})[slot.period_no] = cell
    return grid


def subject_on_day(row: dict[int, GridCell], subject_id: str) -> bool:
    return any(cell.subject_id == subject_id for cell in row.values())


def cells_to_persist(grid: Grid) -> list[GridCell]:
    """Cells the current run wrote: placed subjects plus new or reclaimed locked placeholders."""
    pending: list[GridCell] = []
    for day in sorted(grid):
        for period_no in sorted(grid[day]):
            cell = grid[day][period_no]
            if cell.placed or cell.reclaimed or (cell.is_new and cell.locked):
                pending.append(cell)
    return pending
