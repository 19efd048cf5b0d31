from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.api.deps import get_db, schedule_editors, schedule_readers
from app.core.exceptions import ResourceNotFoundError
from app.models.eligibility import TeacherClassAssignment, TeacherSubjectEligibility
from app.models.school import ClassSection, Subject, Teacher
from app.models.user import User
from app.schemas.eligibility import (
    TeacherClassSectionOut,
    TeacherClassSectionsOut,
    TeacherClassSectionsUpdate,
    TeacherSubjectOut,
    TeacherSubjectsOut,
    TeacherSubjectsUpdate,
)
from app.services.audit import log_activity

router = APIRouter()


def _get_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    return teacher


def _teacher_subjects(db: Session, teacher_id: str) -> TeacherSubjectsOut:
    subjects = db.execute(
        select(Subject)
        .join(TeacherSubjectEligibility, TeacherSubjectEligibility.subject_id == Subject.id)
        .where(TeacherSubjectEligibility.teacher_id == teacher_id)
        .order_by(Subject.name, Subject.id)
    ).scalars()
    return TeacherSubjectsOut(
        teacher_id=teacher_id,
        subjects=[TeacherSubjectOut(id=item.id, code=item.code, name=item.name) for item in subjects],
    )


def _teacher_class_sections(db: Session, teacher_id: str) -> TeacherClassSectionsOut:
    sections = db.execute(
        select(ClassSection)
        .join(TeacherClassAssignment, TeacherClassAssignment.class_section_id == ClassSection.id)
        .where(TeacherClassAssignment.teacher_id == teacher_id)
        .order_by(ClassSection.grade_number, ClassSection.section_name)
    ).scalars()
    return TeacherClassSectionsOut(
        teacher_id=teacher_id,
        class_sections=[
            TeacherClassSectionOut(
                id=item.id,
                class_name=item.class_name,
                grade_number=item.grade_number,
                section_name=item.section_name,
            )
            for item in sections
        ],
    )


@router.get("/staff/teachers/{teacher_id}/subjects", response_model=TeacherSubjectsOut)
def get_teacher_subjects(
    teacher_id: str,
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> TeacherSubjectsOut:
    _get_teacher(db, teacher_id)
    return _teacher_subjects(db, teacher_id)


@router.put("/staff/teachers/{teacher_id}/subjects", response_model=TeacherSubjectsOut)
def replace_teacher_subjects(
    teacher_id: str,
    payload: TeacherSubjectsUpdate,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> TeacherSubjectsOut:
    teacher = _get_teacher(db, teacher_id)
    known = set(db.execute(select(Subject.id).where(Subject.id.in_(payload.subject_ids))).scalars())
    for subject_id in payload.subject_ids:
        if subject_id not in known:
            raise ResourceNotFoundError("Subject", subject_id)

    db.execute(delete(TeacherSubjectEligibility).where(TeacherSubjectEligibility.teacher_id == teacher.id))
    for subject_id in payload.subject_ids:
        db.add(TeacherSubjectEligibility(teacher_id=teacher.id, subject_id=subject_id))
    log_activity(
        db,
        user=current_user,
        action="staff.teacher.subjects.replace",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"subject_ids": payload.subject_ids},
    )
    db.commit()
    return _teacher_subjects(db, teacher.id)


@router.get("/staff/teachers/{teacher_id}/class-sections", response_model=TeacherClassSectionsOut)
def get_teacher_class_sections(
    teacher_id: str,
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> TeacherClassSectionsOut:
    _get_teacher(db, teacher_id)
    return _teacher_class_sections(db, teacher_id)


@router.put("/staff/teachers/{teacher_id}/class-sections", response_model=TeacherClassSectionsOut)
def replace_teacher_class_sections(
    teacher_id: str,
    payload: TeacherClassSectionsUpdate,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> TeacherClassSectionsOut:
    teacher = _get_teacher(db, teacher_id)
    known = set(
        db.execute(select(ClassSection.id).where(ClassSection.id.in_(payload.class_section_ids))).scalars()
    )
    for class_section_id in payload.class_section_ids:
        if class_section_id not in known:
            raise ResourceNotFoundError("ClassSection", class_section_id)

    db.execute(delete(TeacherClassAssignment).where(TeacherClassAssignment.teacher_id == teacher.id))
    for class_section_id in payload.class_section_ids:
        db.add(TeacherClassAssignment(teacher_id=teacher.id, class_section_id=class_section_id))
    log_activity(
        db,
        user=current_user,
        action="staff.teacher.class_sections.replace",
        entity_type="teacher",
        entity_id=teacher.id,
        details={"class_section_ids": payload.class_section_ids},
    )
    db.commit()
    return _teacher_class_sections(db, teacher.id)
