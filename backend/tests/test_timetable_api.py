from sqlalchemy import select

from app.models.timetable_slot import TimetableSlot
from app.models.user import UserRole


def _school(seed):
    seed.settings(periods_per_day=6, lunch_after_period=3, max_periods_per_teacher_per_day=4)
    six_a = seed.class_section(6, "A")
    seven_b = seed.class_section(7, "B")
    math = seed.subject("MATH", "Mathematics")
    science = seed.subject("SCI", "Science")
    asha = seed.teacher("Asha Rao", subjects=[math], class_sections=[six_a, seven_b])
    ben = seed.teacher("Ben Okafor", subjects=[science], class_sections=[six_a])
    return {"six_a": six_a, "seven_b": seven_b, "math": math, "science": science, "asha": asha, "ben": ben}


def test_grid_is_empty_before_generation(client, seed, auth_headers):
    school = _school(seed)

    response = client.get(
        "/api/timetable/slots",
        params={"grade": 6, "section": "a"},
        headers=auth_headers(UserRole.staff),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["class_section_id"] == school["six_a"].id
    assert payload["periods_per_day"] == 6
    assert payload["days"] == ["Mon", "Tue", "Wed", "Thu", "Fri"]
    assert payload["grid"] == {"0": {}, "1": {}, "2": {}, "3": {}, "4": {}}
    assert payload["period_times"]["1"] == "08:30-09:10"


def test_grid_requires_a_class_section(client, auth_headers):
    response = client.get("/api/timetable/slots", headers=auth_headers())
    assert response.status_code == 400

    response = client.get("/api/timetable/slots", params={"grade": 6, "section": "Q"}, headers=auth_headers())
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "ClassSection"


def test_generate_fills_the_week(client, seed, auth_headers):
    school = _school(seed)
    seed.requirement(school["six_a"], school["math"], 5)
    seed.requirement(school["six_a"], school["science"], 5)

    response = client.post(
        "/api/timetable/generate",
        json={"class_section_id": school["six_a"].id},
        headers=auth_headers(UserRole.principal),
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["complete"] is True
    assert payload["placed_count"] == 10
    for day in payload["grid"].values():
        taught = sorted(cell["subject_code"] for cell in day.values() if cell["subject_id"])
        assert taught == ["MATH", "SCI"]
        assert day["3"]["locked"] is True


def test_generate_requires_editor_role(client, seed, auth_headers):
    _school(seed)
    payload = {"grade": 6, "section": "A"}

    assert client.post("/api/timetable/generate", json=payload, headers=auth_headers(UserRole.staff)).status_code == 403
    assert client.post("/api/timetable/generate", json=payload).status_code in {401, 403}


def test_update_slot_assigns_subject_and_teacher(client, seed, auth_headers):
    school = _school(seed)

    response = client.post(
        "/api/timetable/update-slot",
        json={
            "grade": 6,
            "section": "A",
            "day_of_week": 2,
            "period_no": 1,
            "subject_id": school["math"].id,
            "teacher_id": school["asha"].id,
        },
        headers=auth_headers(),
    )

    assert response.status_code == 200
    cell = response.json()["grid"]["1"]["1"]
    assert cell["subject_code"] == "MATH"
    assert cell["teacher_name"] == "Asha Rao"
    assert cell["generated_by"] == "manual"
    assert cell["locked"] is False


def test_update_slot_rejects_locked_cell_without_mutation(client, seed, db_session, auth_headers):
    school = _school(seed)
    locked = seed.slot(school["six_a"], 1, 3, locked=True)

    response = client.post(
        "/api/timetable/update-slot",
        json={
            "class_section_id": school["six_a"].id,
            "day_of_week": 1,
            "period_no": 3,
            "subject_id": school["math"].id,
        },
        headers=auth_headers(),
    )

    assert response.status_code == 409
    db_session.expire_all()
    stored = db_session.get(TimetableSlot, locked.id)
    assert stored.subject_id is None
    assert stored.locked is True


def test_update_slot_rejects_lunch_period_before_first_generation(client, seed, db_session, auth_headers):
    school = _school(seed)

    response = client.post(
        "/api/timetable/update-slot",
        json={
            "class_section_id": school["six_a"].id,
            "day_of_week": 1,
            "period_no": 3,
            "subject_id": school["math"].id,
        },
        headers=auth_headers(),
    )

    assert response.status_code == 409
    assert response.json()["details"]["period_no"] == 3
    rows = db_session.execute(
        select(TimetableSlot).where(TimetableSlot.class_section_id == school["six_a"].id)
    ).scalars().all()
    assert rows == []

    generated = client.post(
        "/api/timetable/generate",
        json={"class_section_id": school["six_a"].id, "preserve_existing": True},
        headers=auth_headers(),
    )
    monday_lunch = generated.json()["grid"]["0"]["3"]
    assert monday_lunch["locked"] is True
    assert monday_lunch["subject_id"] is None


def test_update_slot_rejects_double_booking(client, seed, auth_headers):
    school = _school(seed)
    seed.slot(school["seven_b"], 4, 2, subject=school["math"], teacher=school["asha"])

    response = client.post(
        "/api/timetable/update-slot",
        json={
            "class_section_id": school["six_a"].id,
            "day_of_week": 4,
            "period_no": 2,
            "subject_id": school["math"].id,
            "teacher_id": school["asha"].id,
        },
        headers=auth_headers(),
    )

    assert response.status_code == 409
    assert response.json()["details"]["teacher_id"] == school["asha"].id


def test_update_slot_rejects_ineligible_teacher(client, seed, db_session, auth_headers):
    school = _school(seed)

    response = client.post(
        "/api/timetable/update-slot",
        json={
            "class_section_id": school["six_a"].id,
            "day_of_week": 1,
            "period_no": 1,
            "subject_id": school["math"].id,
            "teacher_id": school["ben"].id,
        },
        headers=auth_headers(),
    )

    assert response.status_code == 422
    slots = db_session.execute(select(TimetableSlot)).scalars().all()
    assert slots == []


def test_update_slot_validates_period_and_payload(client, seed, auth_headers):
    school = _school(seed)
    base = {"class_section_id": school["six_a"].id, "day_of_week": 1}

    response = client.post(
        "/api/timetable/update-slot",
        json={**base, "period_no": 7, "subject_id": school["math"].id},
        headers=auth_headers(),
    )
    assert response.status_code == 400

    response = client.post("/api/timetable/update-slot", json={**base, "period_no": 1}, headers=auth_headers())
    assert response.status_code == 422

    response = client.post(
        "/api/timetable/update-slot",
        json={**base, "period_no": 1, "subject_id": "missing"},
        headers=auth_headers(),
    )
    assert response.status_code == 404


def test_update_slot_can_lock_and_clear_teacher(client, seed, db_session, auth_headers):
    school = _school(seed)
    slot = seed.slot(school["six_a"], 2, 2, subject=school["math"], teacher=school["asha"])
    headers = auth_headers()
    base = {"class_section_id": school["six_a"].id, "day_of_week": 2, "period_no": 2}

    response = client.post("/api/timetable/update-slot", json={**base, "teacher_id": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["grid"]["1"]["2"]["teacher_id"] is None
    assert response.json()["grid"]["1"]["2"]["subject_id"] == school["math"].id

    response = client.post("/api/timetable/update-slot", json={**base, "locked": True}, headers=headers)
    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(TimetableSlot, slot.id).locked is True


def test_eligible_teachers_and_available_subjects(client, seed, auth_headers):
    school = _school(seed)
    headers = auth_headers(UserRole.staff)
    params = {"class_section_id": school["seven_b"].id}

    response = client.get(
        "/api/timetable/eligible-teachers",
        params={**params, "subject_id": school["math"].id},
        headers=headers,
    )
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Asha Rao"]

    response = client.get(
        "/api/timetable/eligible-teachers",
        params={**params, "subject_id": school["science"].id},
        headers=headers,
    )
    assert response.json() == []

    # no requirements yet: subjects of teachers assigned to the class-section
    response = client.get("/api/timetable/available-subjects", params=params, headers=headers)
    assert [item["code"] for item in response.json()] == ["MATH"]

    seed.requirement(school["seven_b"], school["science"], 3)
    response = client.get("/api/timetable/available-subjects", params=params, headers=headers)
    assert [item["code"] for item in response.json()] == ["SCI"]
