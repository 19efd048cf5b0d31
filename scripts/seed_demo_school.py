"""Seed a small demo school (class-sections, subjects, teachers, weekly requirements)
plus one account per role, and print bearer tokens for trying the API.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py
"""

from __future__ import annotations

import os
from typing import Iterable

from sqlalchemy import select

from app.core.security import create_access_token
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.eligibility import TeacherClassAssignment, TeacherSubjectEligibility
from app.models.school import ClassSection, Subject, Teacher
from app.models.timetable_requirement import TimetableRequirement
from app.models.user import User, UserRole
from app.services.timetable_settings import get_or_create_settings_record

ACADEMIC_YEAR = os.getenv("DEMO_ACADEMIC_YEAR", "2026-2027")
TOKEN_MINUTES = int(os.getenv("DEMO_TOKEN_MINUTES", "720"))

DEMO_ACCOUNTS = {
    "admin": ("Demo Admin", "admin.demo@school.example", UserRole.admin),
    "principal": ("Demo Principal", "principal.demo@school.example", UserRole.principal),
    "staff": ("Demo Staff", "staff.demo@school.example", UserRole.staff),
}

SUBJECTS = {
    "MATH": "Mathematics",
    "SCI": "Science",
    "ENG": "English",
    "SOC": "Social Studies",
    "ART": "Art",
}

# (name, department, subject codes)
TEACHERS = [
    ("Asha Rao", "Mathematics", ["MATH"]),
    ("Ben Okafor", "Science", ["SCI"]),
    ("Chen Li", "Mathematics", ["MATH", "SCI"]),
    ("Divya Iyer", "Languages", ["ENG"]),
    ("Elias Mensah", "Humanities", ["SOC", "ENG"]),
    ("Farah Khan", "Arts", ["ART"]),
]

WEEKLY_PERIODS = {"MATH": 6, "SCI": 5, "ENG": 5, "SOC": 4, "ART": 2}
GRADES = {6: ["A", "B"], 7: ["A"]}


def _get_or_create(session, model, lookup: dict, **values):
    record = session.execute(select(model).filter_by(**lookup)).scalar_one_or_none()
    if record is None:
        record = model(**lookup, **values)
        session.add(record)
        session.flush()
    return record


def _seed_school(session) -> list[ClassSection]:
    subjects = {
        code: _get_or_create(session, Subject, {"code": code}, name=name) for code, name in SUBJECTS.items()
    }

    sections: list[ClassSection] = []
    for grade, letters in GRADES.items():
        for letter in letters:
            sections.append(
                _get_or_create(
                    session,
                    ClassSection,
                    {"grade_number": grade, "section_name": letter},
                    class_name=f"Grade {grade}",
                    academic_year=ACADEMIC_YEAR,
                )
            )

    for name, department, codes in TEACHERS:
        teacher = _get_or_create(session, Teacher, {"name": name}, department=department, is_active=True)
        for code in codes:
            _get_or_create(
                session,
                TeacherSubjectEligibility,
                {"teacher_id": teacher.id, "subject_id": subjects[code].id},
            )
        for section in sections:
            _get_or_create(
                session,
                TeacherClassAssignment,
                {"teacher_id": teacher.id, "class_section_id": section.id},
            )

    for section in sections:
        for code, weekly in WEEKLY_PERIODS.items():
            _get_or_create(
                session,
                TimetableRequirement,
                {"class_section_id": section.id, "subject_id": subjects[code].id},
                weekly_periods=weekly,
            )
    return sections


def _upsert_user(session, *, name: str, email: str, role: UserRole) -> User:
    existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing is None:
        existing = User(name=name, email=email, role=role, is_active=True)
        session.add(existing)
    else:
        existing.name = name
        existing.role = role
        existing.is_active = True
    session.flush()
    return existing


def _print_summary(sections: Iterable[ClassSection], users: Iterable[tuple[str, User]]) -> None:
    print("\nClass-sections ready:")
    for section in sections:
        print(f"  - {section.label}: class_section_id={section.id}")
    print("\nDemo accounts (bearer tokens):")
    for label, user in users:
        token = create_access_token(user.id, role=user.role.value, expires_minutes=TOKEN_MINUTES)
        print(f"  - {label}: {user.email} | role={user.role.value}\n    {token}")


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        get_or_create_settings_record(session)
        sections = _seed_school(session)
        users = {
            key: _upsert_user(session, name=name, email=email, role=role)
            for key, (name, email, role) in DEMO_ACCOUNTS.items()
        }
        session.commit()
        _print_summary(sections, users.items())


if __name__ == "__main__":
    main()
