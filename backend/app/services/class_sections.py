from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError, ValidationFailedError
from app.models.school import ClassSection


def _normalize_section_letter(value: str) -> str:
    return value.strip().upper()


def resolve_class_section(
    db: Session,
    *,
    class_section_id: str | None = None,
    grade: int | None = None,
    section: str | None = None,
) -> ClassSection:
    """Turn either accepted identifier form into the canonical ClassSection row.

    ``class_section_id`` wins when both forms are supplied. A section given as
    an id (rather than a letter) is accepted too, since older clients send it
    that way.
    """
    if class_section_id:
        record = db.get(ClassSection, class_section_id)
        if record is None:
            raise ResourceNotFoundError("ClassSection", class_section_id)
        return record

    if section and grade is None:
        record = db.get(ClassSection, section.strip())
        if record is not None:
            return record

    if grade is None or not section or not section.strip():
        raise ValidationFailedError(
            "A class-section id or a grade and section pair is required",
            details={"grade": grade, "section": section},
        )

    letter = _normalize_section_letter(section)
    record = db.execute(
        select(ClassSection).where(
            ClassSection.grade_number == grade,
            func.upper(ClassSection.section_name) == letter,
        )
    ).scalar_one_or_none()
    if record is None:
        raise ResourceNotFoundError("ClassSection", f"{grade}-{letter}")
    return record
