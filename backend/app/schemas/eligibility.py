from pydantic import BaseModel, Field, field_validator


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        item = value.strip()
        if item and item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


class TeacherSubjectsUpdate(BaseModel):
    subject_ids: list[str] = Field(default_factory=list, max_length=200)

    @field_validator("subject_ids")
    @classmethod
    def normalize_ids(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


class TeacherClassSectionsUpdate(BaseModel):
    class_section_ids: list[str] = Field(default_factory=list, max_length=200)

    @field_validator("class_section_ids")
    @classmethod
    def normalize_ids(cls, value: list[str]) -> list[str]:
        return _dedupe(value)


class TeacherSubjectOut(BaseModel):
    id: str
    code: str
    name: str


class TeacherClassSectionOut(BaseModel):
    id: str
    class_name: str
    grade_number: int
    section_name: str


class TeacherSubjectsOut(BaseModel):
    teacher_id: str
    subjects: list[TeacherSubjectOut] = Field(default_factory=list)


class TeacherClassSectionsOut(BaseModel):
    teacher_id: str
    class_sections: list[TeacherClassSectionOut] = Field(default_factory=list)
