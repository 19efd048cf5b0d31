from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.timetable import ClassSectionRef


class RequirementCreate(ClassSectionRef):
    subject_id: str = Field(min_length=1, max_length=36)
    weekly_periods: int = Field(ge=1, le=80)
    notes: str | None = Field(default=None, max_length=1000)


class RequirementUpdate(BaseModel):
    weekly_periods: int = Field(ge=1, le=80)
    notes: str | None = Field(default=None, max_length=1000)


class RequirementOut(BaseModel):
    id: str
    class_section_id: str
    subject_id: str
    subject_code: str | None = None
    subject_name: str | None = None
    weekly_periods: int
    notes: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
