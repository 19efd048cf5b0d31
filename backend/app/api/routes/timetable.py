from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_class_section, get_db, schedule_editors, schedule_readers
from app.core.exceptions import ResourceNotFoundError
from app.models.school import ClassSection, Subject
from app.models.user import User
from app.schemas.timetable import (
    AvailableSubjectOut,
    EligibleTeacherOut,
    GenerateTimetableRequest,
    SlotUpdateRequest,
    TimetableGenerationOut,
    TimetableGridOut,
)
from app.services.class_sections import resolve_class_section
from app.services.eligibility import available_subjects, eligible_teachers
from app.services.slot_editor import update_slot
from app.services.timetable_generator import generate_timetable
from app.services.timetable_grid import build_grid_response
from app.services.timetable_settings import load_schedule_settings

router = APIRouter()


@router.get("/slots", response_model=TimetableGridOut)
def get_grid(
    class_section: ClassSection = Depends(get_class_section),
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> TimetableGridOut:
    settings = load_schedule_settings(db)
    db.commit()
    return build_grid_response(db, class_section, settings)


@router.post("/generate", response_model=TimetableGenerationOut)
def generate(
    payload: GenerateTimetableRequest,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> TimetableGenerationOut:
    class_section = resolve_class_section(
        db,
        class_section_id=payload.class_section_id,
        grade=payload.grade,
        section=payload.section,
    )
    settings = load_schedule_settings(db)
    return generate_timetable(
        db,
        class_section,
        settings,
        preserve_existing=payload.preserve_existing,
        user=current_user,
    )


@router.post("/update-slot", response_model=TimetableGridOut)
def update_timetable_slot(
    payload: SlotUpdateRequest,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> TimetableGridOut:
    class_section = resolve_class_section(
        db,
        class_section_id=payload.class_section_id,
        grade=payload.grade,
        section=payload.section,
    )
    settings = load_schedule_settings(db)
    return update_slot(db, class_section, settings, payload, user=current_user)


@router.get("/eligible-teachers", response_model=list[EligibleTeacherOut])
def list_eligible_teachers(
    subject_id: str = Query(min_length=1, max_length=36),
    class_section: ClassSection = Depends(get_class_section),
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> list[EligibleTeacherOut]:
    if db.get(Subject, subject_id) is None:
        raise ResourceNotFoundError("Subject", subject_id)
    return [
        EligibleTeacherOut(id=teacher.id, name=teacher.name, department=teacher.department)
        for teacher in eligible_teachers(db, class_section.id, subject_id)
    ]


@router.get("/available-subjects", response_model=list[AvailableSubjectOut])
def list_available_subjects(
    class_section: ClassSection = Depends(get_class_section),
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> list[AvailableSubjectOut]:
    return [
        AvailableSubjectOut(id=subject.id, code=subject.code, name=subject.name)
        for subject in available_subjects(db, class_section.id)
    ]
