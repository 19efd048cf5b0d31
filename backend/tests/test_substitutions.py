from datetime import date

import pytest
from sqlalchemy import func, select

from app.models.substitution import TimetableSubstitution
from app.models.user import UserRole
from app.services.substitution_advisor import suggest_substitutes
from app.services.timetable_settings import load_schedule_settings

MONDAY = date(2026, 10, 19)


@pytest.fixture
def school(seed):
    seed.settings(max_periods_per_teacher_per_day=4)
    six_a = seed.class_section(6, "A")
    seven_b = seed.class_section(7, "B")
    eight_c = seed.class_section(8, "C")
    math = seed.subject("MATH", "Mathematics")
    science = seed.subject("SCI", "Science")

    asha = seed.teacher("Asha Rao", subjects=[math])
    chen = seed.teacher("Chen Li", subjects=[math])
    dev = seed.teacher("Dev Patel", subjects=[math])
    esha = seed.teacher("Esha Nair", subjects=[math])
    farah = seed.teacher("Farah Khan", subjects=[math])
    gita = seed.teacher("Gita Menon", subjects=[science])

    seed.slot(six_a, 1, 2, subject=math, teacher=asha)
    seed.slot(seven_b, 1, 2, subject=math, teacher=esha)
    for period_no in (1, 3, 5):
        seed.slot(seven_b, 1, period_no, subject=math, teacher=dev)
    for period_no in (1, 3, 5, 6):
        seed.slot(eight_c, 1, period_no, subject=math, teacher=farah)

    return {
        "six_a": six_a,
        "eight_c": eight_c,
        "math": math,
        "asha": asha,
        "chen": chen,
        "dev": dev,
        "esha": esha,
        "farah": farah,
        "gita": gita,
    }


def test_suggestions_rank_by_load_and_flag_overload(db_session, school):
    settings = load_schedule_settings(db_session)

    candidates = suggest_substitutes(
        db_session,
        school["six_a"],
        settings,
        period_no=2,
        on_date=MONDAY,
        subject_id=school["math"].id,
        absent_teacher_id=school["asha"].id,
    )

    assert [item.teacher_name for item in candidates] == ["Chen Li", "Dev Patel", "Farah Khan"]
    chen, dev, farah = candidates
    assert (chen.current_day_load, chen.is_overloaded, chen.near_cap) == (0, False, False)
    assert chen.warning_message is None
    assert (dev.current_day_load, dev.near_cap) == (3, True)
    assert (farah.current_day_load, farah.is_overloaded) == (4, True)
    assert "max recommended: 4" in farah.warning_message


def test_suggestions_without_subject_include_every_free_teacher(db_session, school):
    settings = load_schedule_settings(db_session)

    candidates = suggest_substitutes(db_session, school["six_a"], settings, period_no=2, on_date=MONDAY)

    names = [item.teacher_name for item in candidates]
    assert "Gita Menon" in names
    assert "Esha Nair" not in names
    assert "Asha Rao" not in names


def test_substitution_lifecycle(client, school, auth_headers):
    headers = auth_headers()

    response = client.post(
        "/api/timetable/substitutions",
        json={
            "class_section_id": school["six_a"].id,
            "on_date": MONDAY.isoformat(),
            "period_no": 2,
            "substitute_teacher_id": school["chen"].id,
            "reason": "Sick leave",
        },
        headers=headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["original_teacher_id"] == school["asha"].id
    assert created["substitute_teacher_name"] == "Chen Li"
    assert created["subject_code"] == "MATH"
    assert created["approved_by_name"] == "Admin User"

    listed = client.get(
        "/api/timetable/substitutions",
        params={"on_date": MONDAY.isoformat()},
        headers=auth_headers(UserRole.staff),
    )
    assert [item["id"] for item in listed.json()] == [created["id"]]

    affected = client.get(
        "/api/timetable/substitutions/affected-periods",
        params={"teacher_id": school["asha"].id, "on_date": MONDAY.isoformat()},
        headers=headers,
    )
    assert affected.status_code == 200
    assert affected.json() == [
        {
            "class_section_id": school["six_a"].id,
            "class_section_label": "Grade 6 A",
            "day_of_week": 1,
            "period_no": 2,
            "period_time": "09:10-09:50",
            "subject_id": school["math"].id,
            "subject_code": "MATH",
            "subject_name": "Mathematics",
            "substitute_teacher_id": school["chen"].id,
        }
    ]

    suggestions = client.get(
        "/api/timetable/substitutions/suggest-teachers",
        params={
            "class_section_id": school["six_a"].id,
            "period_no": 7,
            "on_date": MONDAY.isoformat(),
            "subject_id": school["math"].id,
        },
        headers=headers,
    )
    loads = {item["teacher_name"]: item["current_day_load"] for item in suggestions.json()}
    assert loads["Chen Li"] == 1

    assert client.delete(f"/api/timetable/substitutions/{created['id']}", headers=headers).status_code == 204
    assert client.delete(f"/api/timetable/substitutions/{created['id']}", headers=headers).status_code == 404


def _substitutions_on(db_session, on_date):
    return db_session.execute(
        select(func.count(TimetableSubstitution.id)).where(TimetableSubstitution.on_date == on_date)
    ).scalar_one()


def test_substitution_conflicts(client, school, db_session, auth_headers):
    headers = auth_headers(UserRole.principal)
    base = {"on_date": MONDAY.isoformat(), "period_no": 2}

    first = client.post(
        "/api/timetable/substitutions",
        json={**base, "class_section_id": school["six_a"].id, "substitute_teacher_id": school["chen"].id},
        headers=headers,
    )
    assert first.status_code == 201
    assert _substitutions_on(db_session, MONDAY) == 1

    duplicate = client.post(
        "/api/timetable/substitutions",
        json={**base, "class_section_id": school["six_a"].id, "substitute_teacher_id": school["gita"].id},
        headers=headers,
    )
    assert duplicate.status_code == 409

    teaching = client.post(
        "/api/timetable/substitutions",
        json={**base, "class_section_id": school["eight_c"].id, "substitute_teacher_id": school["esha"].id},
        headers=headers,
    )
    assert teaching.status_code == 409

    substituting = client.post(
        "/api/timetable/substitutions",
        json={**base, "class_section_id": school["eight_c"].id, "substitute_teacher_id": school["chen"].id},
        headers=headers,
    )
    assert substituting.status_code == 409

    same_teacher = client.post(
        "/api/timetable/substitutions",
        json={
            "on_date": MONDAY.isoformat(),
            "period_no": 7,
            "class_section_id": school["six_a"].id,
            "original_teacher_id": school["asha"].id,
            "substitute_teacher_id": school["asha"].id,
        },
        headers=headers,
    )
    assert same_teacher.status_code == 400

    staff = client.post(
        "/api/timetable/substitutions",
        json={**base, "class_section_id": school["eight_c"].id, "substitute_teacher_id": school["gita"].id},
        headers=auth_headers(UserRole.staff),
    )
    assert staff.status_code == 403

    assert _substitutions_on(db_session, MONDAY) == 1
