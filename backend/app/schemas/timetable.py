from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from app.schemas.settings import WEEKDAY_SHORT_NAMES


class ClassSectionRef(BaseModel):
    """Either a class-section id or a grade + section letter pair."""

    class_section_id: str | None = Field(default=None, min_length=1, max_length=36)
    grade: int | None = Field(default=None, ge=1, le=20)
    # a section letter, or a class-section id sent in its place
    section: str | None = Field(default=None, min_length=1, max_length=36)


class GridCellOut(BaseModel):
    slot_id: str | None = None
    subject_id: str | None = None
    teacher_id: str | None = None
    locked: bool = False
    generated_by: str | None = None
    subject_code: str | None = None
    subject_name: str | None = None
    teacher_name: str | None = None


class TimetableGridOut(BaseModel):
    class_section_id: str
    class_section_label: str | None = None
    periods_per_day: int
    days: list[str] = Field(default_factory=lambda: list(WEEKDAY_SHORT_NAMES))
    working_days: list[int] = Field(default_factory=list)
    period_times: dict[int, str] = Field(default_factory=dict)
    # 0-based day index (Monday = 0) -> period number -> cell
    grid: dict[int, dict[int, GridCellOut]] = Field(default_factory=dict)


class UnplacedRequirementOut(BaseModel):
    subject_id: str
    subject_code: str | None = None
    remaining_periods: int


class TimetableGenerationOut(TimetableGridOut):
    complete: bool = True
    placed_count: int = 0
    unplaced: list[UnplacedRequirementOut] = Field(default_factory=list)


class GenerateTimetableRequest(ClassSectionRef):
    preserve_existing: bool = False


class SlotUpdateRequest(ClassSectionRef):
    day_of_week: int = Field(ge=1, le=len(WEEKDAY_SHORT_NAMES))
    period_no: int = Field(ge=1, le=16)
    subject_id: str | None = Field(default=None, min_length=1, max_length=36)
    teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    locked: bool | None = None

    @model_validator(mode="after")
    def validate_has_change(self) -> "SlotUpdateRequest":
        changes = {"subject_id", "teacher_id", "locked"} & self.model_fields_set
        if not changes:
            raise ValueError("At least one of subject_id, teacher_id or locked must be provided")
        return self


class EligibleTeacherOut(BaseModel):
    id: str
    name: str
    department: str | None = None


class AvailableSubjectOut(BaseModel):
    id: str
    code: str
    name: str
