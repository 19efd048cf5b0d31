from app.models.user import UserRole


def test_activity_history_is_scoped_and_filtered(client, seed, auth_headers):
    six_a = seed.class_section(6, "A")
    seven_b = seed.class_section(7, "B")
    math = seed.subject("MATH", "Mathematics")
    headers = auth_headers(UserRole.principal)

    for class_section in (six_a, seven_b):
        response = client.post(
            "/api/timetable/requirements",
            json={"class_section_id": class_section.id, "subject_id": math.id, "weekly_periods": 3},
            headers=headers,
        )
        assert response.status_code == 201
    client.post("/api/timetable/generate", json={"class_section_id": six_a.id}, headers=headers)

    response = client.get("/api/timetable/activity", params={"class_section_id": six_a.id}, headers=headers)
    assert response.status_code == 200
    assert sorted(item["action"] for item in response.json()) == [
        "timetable.generate",
        "timetable.requirement.create",
    ]
    assert {item["user_role"] for item in response.json()} == {"principal"}

    response = client.get("/api/timetable/activity", params={"action": "timetable.requirement"}, headers=headers)
    assert len(response.json()) == 2

    assert client.get("/api/timetable/activity", headers=auth_headers(UserRole.staff)).status_code == 403
