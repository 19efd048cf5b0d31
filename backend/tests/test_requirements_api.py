from app.models.user import UserRole


def test_requirement_crud(client, seed, auth_headers):
    class_section = seed.class_section(6, "A")
    math = seed.subject("MATH", "Mathematics")
    headers = auth_headers()

    response = client.post(
        "/api/timetable/requirements",
        json={"grade": 6, "section": "A", "subject_id": math.id, "weekly_periods": 5},
        headers=headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["class_section_id"] == class_section.id
    assert created["subject_code"] == "MATH"
    assert created["weekly_periods"] == 5

    response = client.get(
        "/api/timetable/requirements",
        params={"class_section_id": class_section.id},
        headers=auth_headers(UserRole.staff),
    )
    assert [item["id"] for item in response.json()] == [created["id"]]

    response = client.put(
        f"/api/timetable/requirements/{created['id']}",
        json={"weekly_periods": 4, "notes": "Lab week"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["weekly_periods"] == 4
    assert response.json()["notes"] == "Lab week"

    response = client.delete(f"/api/timetable/requirements/{created['id']}", headers=headers)
    assert response.status_code == 204
    response = client.delete(f"/api/timetable/requirements/{created['id']}", headers=headers)
    assert response.status_code == 404


def test_requirement_conflicts_and_validation(client, seed, auth_headers):
    class_section = seed.class_section(6, "A")
    math = seed.subject("MATH", "Mathematics")
    headers = auth_headers()
    body = {"class_section_id": class_section.id, "subject_id": math.id, "weekly_periods": 5}

    assert client.post("/api/timetable/requirements", json=body, headers=headers).status_code == 201
    assert client.post("/api/timetable/requirements", json=body, headers=headers).status_code == 409

    response = client.post(
        "/api/timetable/requirements",
        json={**body, "subject_id": "missing"},
        headers=headers,
    )
    assert response.status_code == 404

    response = client.post(
        "/api/timetable/requirements",
        json={**body, "weekly_periods": 0},
        headers=headers,
    )
    assert response.status_code == 422

    response = client.post("/api/timetable/requirements", json=body, headers=auth_headers(UserRole.staff))
    assert response.status_code == 403
