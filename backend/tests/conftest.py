import os
import tempfile
from pathlib import Path
from uuid import uuid4

# The app builds its engine at import time; point it at a throwaway file before importing.
os.environ["DATABASE_URL"] = f"sqlite:///{Path(tempfile.gettempdir()) / 'school_timetable_test.db'}"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.eligibility import TeacherClassAssignment, TeacherSubjectEligibility
from app.models.school import ClassSection, Subject, Teacher
from app.models.timetable_requirement import TimetableRequirement
from app.models.timetable_settings import TimetableSettings
from app.models.timetable_slot import SlotSource, TimetableSlot
from app.models.user import User, UserRole
from app.services.locks import class_section_locks


class SchoolSeeder:
    """Writes fixture rows straight through a session and commits each one."""

    def __init__(self, session):
        self.session = session

    def _save(self, *records):
        self.session.add_all(records)
        self.session.commit()
        return records[0]

    def class_section(self, grade=6, section="A", class_name=None):
        return self._save(
            ClassSection(
                class_name=class_name or f"Grade {grade}",
                grade_number=grade,
                section_name=section,
                academic_year="2026-2027",
            )
        )

    def subject(self, code, name=None):
        return self._save(Subject(code=code, name=name or code.title()))

    def teacher(self, name, *, department=None, subjects=(), class_sections=(), is_active=True):
        teacher = self._save(Teacher(name=name, department=department, is_active=is_active))
        for subject in subjects:
            self.session.add(TeacherSubjectEligibility(teacher_id=teacher.id, subject_id=subject.id))
        for class_section in class_sections:
            self.session.add(TeacherClassAssignment(teacher_id=teacher.id, class_section_id=class_section.id))
        self.session.commit()
        return teacher

    def requirement(self, class_section, subject, weekly_periods):
        return self._save(
            TimetableRequirement(
                class_section_id=class_section.id,
                subject_id=subject.id,
                weekly_periods=weekly_periods,
            )
        )

    def settings(self, **overrides):
        values = {
            "working_days_mask": 31,
            "periods_per_day": 8,
            "period_minutes": 40,
            "lunch_after_period": 4,
            "max_periods_per_teacher_per_day": None,
            "start_time": "08:30",
            "end_time": "15:30",
        }
        values.update(overrides)
        return self._save(TimetableSettings(id=1, **values))

    def slot(self, class_section, day_of_week, period_no, *, subject=None, teacher=None, locked=False):
        return self._save(
            TimetableSlot(
                class_section_id=class_section.id,
                day_of_week=day_of_week,
                period_no=period_no,
                subject_id=subject.id if subject is not None else None,
                teacher_id=teacher.id if teacher is not None else None,
                locked=locked,
                generated_by=SlotSource.manual,
            )
        )

    def user(self, role=UserRole.admin, name=None):
        return self._save(
            User(
                name=name or f"{role.value.title()} User",
                email=f"{role.value}-{uuid4().hex[:8]}@school.example",
                role=role,
                is_active=True,
            )
        )


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seed(db_session):
    return SchoolSeeder(db_session)


@pytest.fixture()
def client(session_factory):
    class_section_locks.clear()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    class_section_locks.clear()


@pytest.fixture()
def auth_headers(seed):
    def _headers(role=UserRole.admin):
        user = seed.user(role)
        token = create_access_token(user.id, role=user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers
