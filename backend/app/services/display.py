from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.school import Subject, Teacher

logger = logging.getLogger(__name__)


@dataclass
class DisplayLookup:
    subjects: dict[str, tuple[str, str]] = field(default_factory=dict)
    teachers: dict[str, str] = field(default_factory=dict)

    def subject_code(self, subject_id: str | None) -> str | None:
        if subject_id is None or subject_id not in self.subjects:
            return None
        return self.subjects[subject_id][0]

    def subject_name(self, subject_id: str | None) -> str | None:
        if subject_id is None or subject_id not in self.subjects:
            return None
        return self.subjects[subject_id][1]

    def teacher_name(self, teacher_id: str | None) -> str | None:
        if teacher_id is None:
            return None
        return self.teachers.get(teacher_id)


def load_display_lookup(
    db: Session,
    *,
    subject_ids: Iterable[str | None] = (),
    teacher_ids: Iterable[str | None] = (),
) -> DisplayLookup:
    """Best-effort names for response decoration.

    A failed lookup degrades to missing display fields; it never fails the
    operation whose result is being decorated.
    """
    lookup = DisplayLookup()
    wanted_subjects = {item for item in subject_ids if item}
    wanted_teachers = {item for item in teacher_ids if item}
    try:
        if wanted_subjects:
            for subject_id, code, name in db.execute(
                select(Subject.id, Subject.code, Subject.name).where(Subject.id.in_(wanted_subjects))
            ):
                lookup.subjects[subject_id] = (code, name)
        if wanted_teachers:
            for teacher_id, name in db.execute(
                select(Teacher.id, Teacher.name).where(Teacher.id.in_(wanted_teachers))
            ):
                lookup.teachers[teacher_id] = name
    except SQLAlchemyError:
        logger.warning("Display name lookup failed; returning undecorated result", exc_info=True)
    return lookup
