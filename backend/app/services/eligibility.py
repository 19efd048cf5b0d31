"""Teacher eligibility: a teacher may take a (class-section, subject) cell only when
they both teach the subject and are assigned to the class-section."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.eligibility import TeacherClassAssignment, TeacherSubjectEligibility
from app.models.school import Subject, Teacher
from app.models.timetable_requirement import TimetableRequirement


def _eligible_query(class_section_id: str):
    return (
        select(TeacherSubjectEligibility.subject_id, Teacher.id)
        .join(Teacher, Teacher.id == TeacherSubjectEligibility.teacher_id)
        .join(
            TeacherClassAssignment,
            (TeacherClassAssignment.teacher_id == TeacherSubjectEligibility.teacher_id)
            & (TeacherClassAssignment.class_section_id == class_section_id),
        )
        .order_by(Teacher.name, Teacher.id)
    )


def eligible_teacher_ids(db: Session, class_section_id: str, subject_id: str) -> list[str]:
    """Ordered teacher ids for one cell; an empty list means the subject is unstaffable here."""
    rows = db.execute(
        _eligible_query(class_section_id).where(TeacherSubjectEligibility.subject_id == subject_id)
    ).all()
    return [teacher_id for _, teacher_id in rows]


def eligible_teachers_by_subject(
    db: Session,
    class_section_id: str,
    subject_ids: Iterable[str],
) -> dict[str, list[str]]:
    wanted = set(subject_ids)
    if not wanted:
        return {}
    rows = db.execute(
        _eligible_query(class_section_id).where(TeacherSubjectEligibility.subject_id.in_(wanted))
    ).all()
    by_subject: dict[str, list[str]] = defaultdict(list)
    for subject_id, teacher_id in rows:
        by_subject[subject_id].append(teacher_id)
    return {subject_id: by_subject.get(subject_id, []) for subject_id in wanted}


def is_teacher_eligible(db: Session, class_section_id: str, subject_id: str, teacher_id: str) -> bool:
    row = db.execute(
        _eligible_query(class_section_id).where(
            TeacherSubjectEligibility.subject_id == subject_id,
            TeacherSubjectEligibility.teacher_id == teacher_id,
        )
    ).first()
    return row is not None


def eligible_teachers(db: Session, class_section_id: str, subject_id: str) -> list[Teacher]:
    teacher_ids = eligible_teacher_ids(db, class_section_id, subject_id)
    if not teacher_ids:
        return []
    teachers = {item.id: item for item in db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids))).scalars()}
    return [teachers[teacher_id] for teacher_id in teacher_ids if teacher_id in teachers]


def available_subjects(db: Session, class_section_id: str) -> list[Subject]:
    """Subjects with a weekly requirement for the class-section.

    Falls back to every subject taught by a teacher assigned to the class-section
    when no requirement has been configured yet.
    """
    required = list(
        db.execute(
            select(Subject)
            .join(TimetableRequirement, TimetableRequirement.subject_id == Subject.id)
            .where(TimetableRequirement.class_section_id == class_section_id)
            .order_by(Subject.name, Subject.id)
        ).scalars()
    )
    if required:
        return required

    return list(
        db.execute(
            select(Subject)
            .join(TeacherSubjectEligibility, TeacherSubjectEligibility.subject_id == Subject.id)
            .join(
                TeacherClassAssignment,
                TeacherClassAssignment.teacher_id == TeacherSubjectEligibility.teacher_id,
            )
            .where(TeacherClassAssignment.class_section_id == class_section_id)
            .distinct()
            .order_by(Subject.name, Subject.id)
        ).scalars()
    )


def teachers_for_subject(db: Session, subject_id: str | None) -> list[Teacher]:
    """Active teachers allowed to teach ``subject_id``, or every active teacher when it is omitted."""
    query = select(Teacher).where(Teacher.is_active.is_(True)).order_by(Teacher.name, Teacher.id)
    if subject_id:
        query = query.join(TeacherSubjectEligibility, TeacherSubjectEligibility.teacher_id == Teacher.id).where(
            TeacherSubjectEligibility.subject_id == subject_id
        )
    return list(db.execute(query).scalars())
