from datetime import date, datetime

from pydantic import BaseModel, Field

from app.schemas.timetable import ClassSectionRef


class SubstitutionCreate(ClassSectionRef):
    on_date: date
    period_no: int = Field(ge=1, le=16)
    original_teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    substitute_teacher_id: str = Field(min_length=1, max_length=36)
    reason: str | None = Field(default=None, max_length=1000)
    notes: str | None = Field(default=None, max_length=1000)


class SubstituteCandidateOut(BaseModel):
    teacher_id: str
    teacher_name: str
    department: str | None = None
    current_day_load: int
    max_day_load: int
    is_overloaded: bool = False
    near_cap: bool = False
    warning_message: str | None = None


class AffectedPeriodOut(BaseModel):
    class_section_id: str
    class_section_label: str | None = None
    day_of_week: int
    period_no: int
    period_time: str | None = None
    subject_id: str | None = None
    subject_code: str | None = None
    subject_name: str | None = None
    substitute_teacher_id: str | None = None


class SubstitutionOut(BaseModel):
    id: str
    on_date: date
    class_section_id: str
    class_section_label: str | None = None
    period_no: int
    original_teacher_id: str | None = None
    original_teacher_name: str | None = None
    substitute_teacher_id: str
    substitute_teacher_name: str | None = None
    subject_code: str | None = None
    subject_name: str | None = None
    reason: str | None = None
    notes: str | None = None
    approved_by_id: str | None = None
    approved_by_name: str | None = None
    created_at: datetime | None = None
