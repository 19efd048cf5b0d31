from app.models.user import UserRole
from app.services.eligibility import eligible_teacher_ids, is_teacher_eligible


def test_eligibility_needs_subject_and_class_assignment(db_session, seed):
    six_a = seed.class_section(6, "A")
    seven_b = seed.class_section(7, "B")
    math = seed.subject("MATH", "Mathematics")
    zara = seed.teacher("Zara Ali", subjects=[math], class_sections=[six_a])
    asha = seed.teacher("Asha Rao", subjects=[math], class_sections=[six_a, seven_b])
    seed.teacher("Ben Okafor", subjects=[math])

    assert eligible_teacher_ids(db_session, six_a.id, math.id) == [asha.id, zara.id]
    assert eligible_teacher_ids(db_session, seven_b.id, math.id) == [asha.id]
    assert is_teacher_eligible(db_session, seven_b.id, math.id, asha.id)
    assert not is_teacher_eligible(db_session, seven_b.id, math.id, zara.id)


def test_replace_teacher_subjects(client, seed, auth_headers):
    teacher = seed.teacher("Asha Rao")
    math = seed.subject("MATH", "Mathematics")
    science = seed.subject("SCI", "Science")
    headers = auth_headers()
    url = f"/api/staff/teachers/{teacher.id}/subjects"

    response = client.put(url, json={"subject_ids": [math.id, science.id, math.id]}, headers=headers)
    assert response.status_code == 200
    assert [item["code"] for item in response.json()["subjects"]] == ["MATH", "SCI"]

    response = client.put(url, json={"subject_ids": [science.id]}, headers=headers)
    assert [item["code"] for item in response.json()["subjects"]] == ["SCI"]

    response = client.get(url, headers=auth_headers(UserRole.staff))
    assert [item["code"] for item in response.json()["subjects"]] == ["SCI"]

    response = client.put(url, json={"subject_ids": ["missing"]}, headers=headers)
    assert response.status_code == 404
    assert [item["code"] for item in client.get(url, headers=headers).json()["subjects"]] == ["SCI"]


def test_replace_teacher_class_sections(client, seed, auth_headers):
    teacher = seed.teacher("Asha Rao")
    six_a = seed.class_section(6, "A")
    seven_b = seed.class_section(7, "B")
    headers = auth_headers(UserRole.principal)
    url = f"/api/staff/teachers/{teacher.id}/class-sections"

    response = client.put(url, json={"class_section_ids": [seven_b.id, six_a.id]}, headers=headers)
    assert response.status_code == 200
    assert [item["grade_number"] for item in response.json()["class_sections"]] == [6, 7]

    response = client.put(url, json={"class_section_ids": []}, headers=headers)
    assert response.json()["class_sections"] == []

    assert client.get("/api/staff/teachers/missing/class-sections", headers=headers).status_code == 404
    assert client.put(url, json={"class_section_ids": []}, headers=auth_headers(UserRole.staff)).status_code == 403
