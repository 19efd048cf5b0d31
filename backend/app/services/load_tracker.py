from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.substitution import TimetableSubstitution
from app.models.timetable_slot import TimetableSlot


class TeacherLoadTracker:
    """Per-run count of periods handed to each teacher on each day.

    Owned by a single generation call and discarded with it; nothing here is
    shared across requests or written to the database.
    """

    def __init__(self, max_per_teacher_per_day: int) -> None:
        self.max_per_teacher_per_day = max(1, max_per_teacher_per_day)
        self._load: dict[int, dict[str, int]] = defaultdict(dict)

    def current_load(self, day: int, teacher_id: str) -> int:
        return self._load[day].get(teacher_id, 0)

    def record_assignment(self, day: int, teacher_id: str) -> None:
        day_load = self._load[day]
        day_load[teacher_id] = day_load.get(teacher_id, 0) + 1

    def has_capacity(self, day: int, teacher_id: str) -> bool:
        return self.current_load(day, teacher_id) < self.max_per_teacher_per_day

    def pick_teacher(self, day: int, candidates: Iterable[str], *, exclude: set[str] | None = None) -> str | None:
        """Least-loaded candidate still under the daily cap; ties keep the candidates' order."""
        best: str | None = None
        best_load = 0
        for teacher_id in candidates:
            if exclude and teacher_id in exclude:
                continue
            load = self.current_load(day, teacher_id)
            if load >= self.max_per_teacher_per_day:
                continue
            if best is None or load < best_load:
                best = teacher_id
                best_load = load
        return best

    def snapshot(self) -> dict[int, dict[str, int]]:
        return {day: dict(loads) for day, loads in self._load.items() if loads}


def committed_day_load(db: Session, teacher_id: str, day_of_week: int) -> int:
    """Slots already held by the teacher on a weekday across every class-section."""
    return db.execute(
        select(func.count(TimetableSlot.id)).where(
            TimetableSlot.teacher_id == teacher_id,
            TimetableSlot.day_of_week == day_of_week,
        )
    ).scalar_one()


def committed_substitution_load(db: Session, teacher_id: str, on_date: date) -> int:
    return db.execute(
        select(func.count(TimetableSubstitution.id)).where(
            TimetableSubstitution.substitute_teacher_id == teacher_id,
            TimetableSubstitution.on_date == on_date,
        )
    ).scalar_one()
