from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_class_section, get_db, schedule_editors, schedule_readers
from app.core.exceptions import ConflictError, ResourceNotFoundError
from app.models.school import ClassSection, Subject
from app.models.timetable_requirement import TimetableRequirement
from app.models.user import User
from app.schemas.requirement import RequirementCreate, RequirementOut, RequirementUpdate
from app.services.audit import log_activity
from app.services.class_sections import resolve_class_section

router = APIRouter()


def _requirement_out(record: TimetableRequirement, subject: Subject | None) -> RequirementOut:
    return RequirementOut(
        id=record.id,
        class_section_id=record.class_section_id,
        subject_id=record.subject_id,
        subject_code=subject.code if subject is not None else None,
        subject_name=subject.name if subject is not None else None,
        weekly_periods=record.weekly_periods,
        notes=record.notes,
        created_at=record.created_at,
    )


@router.get("/timetable/requirements", response_model=list[RequirementOut])
def list_requirements(
    class_section: ClassSection = Depends(get_class_section),
    current_user: User = Depends(schedule_readers),
    db: Session = Depends(get_db),
) -> list[RequirementOut]:
    rows = db.execute(
        select(TimetableRequirement, Subject)
        .join(Subject, Subject.id == TimetableRequirement.subject_id, isouter=True)
        .where(TimetableRequirement.class_section_id == class_section.id)
        .order_by(Subject.name, TimetableRequirement.id)
    ).all()
    return [_requirement_out(record, subject) for record, subject in rows]


@router.post("/timetable/requirements", response_model=RequirementOut, status_code=status.HTTP_201_CREATED)
def create_requirement(
    payload: RequirementCreate,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> RequirementOut:
    class_section = resolve_class_section(
        db,
        class_section_id=payload.class_section_id,
        grade=payload.grade,
        section=payload.section,
    )
    subject = db.get(Subject, payload.subject_id)
    if subject is None:
        raise ResourceNotFoundError("Subject", payload.subject_id)

    existing = db.execute(
        select(TimetableRequirement).where(
            TimetableRequirement.class_section_id == class_section.id,
            TimetableRequirement.subject_id == subject.id,
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise ConflictError(
            f"{subject.code} already has a weekly requirement for {class_section.label}",
            details={"requirement_id": existing.id},
        )

    record = TimetableRequirement(
        class_section_id=class_section.id,
        subject_id=subject.id,
        weekly_periods=payload.weekly_periods,
        notes=payload.notes,
    )
    try:
        db.add(record)
        db.flush()
        log_activity(
            db,
            user=current_user,
            action="timetable.requirement.create",
            entity_type="timetable_requirement",
            entity_id=record.id,
            class_section_id=class_section.id,
            details={"subject_id": subject.id, "weekly_periods": payload.weekly_periods},
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"{subject.code} already has a weekly requirement for {class_section.label}") from exc
    db.refresh(record)
    return _requirement_out(record, subject)


@router.put("/timetable/requirements/{requirement_id}", response_model=RequirementOut)
def update_requirement(
    requirement_id: str,
    payload: RequirementUpdate,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> RequirementOut:
    record = db.get(TimetableRequirement, requirement_id)
    if record is None:
        raise ResourceNotFoundError("Requirement", requirement_id)
    record.weekly_periods = payload.weekly_periods
    record.notes = payload.notes
    log_activity(
        db,
        user=current_user,
        action="timetable.requirement.update",
        entity_type="timetable_requirement",
        entity_id=record.id,
        class_section_id=record.class_section_id,
        details={"weekly_periods": payload.weekly_periods},
    )
    db.commit()
    db.refresh(record)
    return _requirement_out(record, db.get(Subject, record.subject_id))


@router.delete("/timetable/requirements/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_requirement(
    requirement_id: str,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> Response:
    record = db.get(TimetableRequirement, requirement_id)
    if record is None:
        raise ResourceNotFoundError("Requirement", requirement_id)
    log_activity(
        db,
        user=current_user,
        action="timetable.requirement.delete",
        entity_type="timetable_requirement",
        entity_id=record.id,
        class_section_id=record.class_section_id,
        details={"subject_id": record.subject_id},
    )
    db.delete(record)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
