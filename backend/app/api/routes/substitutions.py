from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_class_section, get_db, schedule_editors, schedule_readers
from app.models.school import ClassSection
from app.models.user import User
from app.schemas.substitution import (
    AffectedPeriodOut,
    SubstituteCandidateOut,
    SubstitutionCreate,
    SubstitutionOut,
)
from app.services.class_sections import resolve_class_section
from app.services.substitution_advisor import (
    affected_periods,
    create_substitution,
    delete_substitution,
    list_substitutions,
    suggest_substitutes,
)
from app.services.timetable_settings import load_schedule_settings

router = APIRouter()


@router.get("/timetable/substitutions", response_model=list[SubstitutionOut])
def get_substitutions(
    on_date: date = Query(),
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> list[SubstitutionOut]:
    return list_substitutions(db, on_date)


@router.get("/timetable/substitutions/affected-periods", response_model=list[AffectedPeriodOut])
def get_affected_periods(
    teacher_id: str = Query(min_length=1, max_length=36),
    on_date: date = Query(),
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> list[AffectedPeriodOut]:
    settings = load_schedule_settings(db)
    return affected_periods(db, settings, teacher_id=teacher_id, on_date=on_date)


@router.get("/timetable/substitutions/suggest-teachers", response_model=list[SubstituteCandidateOut])
def get_substitute_suggestions(
    period_no: int = Query(ge=1, le=16),
    on_date: date = Query(),
    subject_id: str | None = Query(default=None, max_length=36),
    absent_teacher_id: str | None = Query(default=None, max_length=36),
    class_section: ClassSection = Depends(get_class_section),
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> list[SubstituteCandidateOut]:
    settings = load_schedule_settings(db)
    return suggest_substitutes(
        db,
        class_section,
        settings,
        period_no=period_no,
        on_date=on_date,
        subject_id=subject_id,
        absent_teacher_id=absent_teacher_id,
    )


@router.post("/timetable/substitutions", response_model=SubstitutionOut, status_code=status.HTTP_201_CREATED)
def post_substitution(
    payload: SubstitutionCreate,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> SubstitutionOut:
    class_section = resolve_class_section(
        db,
        class_section_id=payload.class_section_id,
        grade=payload.grade,
        section=payload.section,
    )
    settings = load_schedule_settings(db)
    return create_substitution(db, class_section, settings, payload, user=current_user)


@router.delete("/timetable/substitutions/{substitution_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_substitution(
    substitution_id: str,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> Response:
    delete_substitution(db, substitution_id, user=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
