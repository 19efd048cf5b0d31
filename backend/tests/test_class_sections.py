import pytest

from app.core.exceptions import ResourceNotFoundError, ValidationFailedError
from app.services.class_sections import resolve_class_section


def test_resolves_by_id_and_by_grade_and_letter(db_session, seed):
    class_section = seed.class_section(6, "A")

    assert resolve_class_section(db_session, class_section_id=class_section.id).id == class_section.id
    assert resolve_class_section(db_session, grade=6, section=" a ").id == class_section.id


def test_id_wins_over_grade_and_section(db_session, seed):
    six_a = seed.class_section(6, "A")
    seed.class_section(7, "B")

    resolved = resolve_class_section(db_session, class_section_id=six_a.id, grade=7, section="B")
    assert resolved.id == six_a.id


def test_section_may_carry_the_id(db_session, seed):
    class_section = seed.class_section(9, "D")
    assert resolve_class_section(db_session, section=class_section.id).id == class_section.id


def test_missing_identifiers_are_rejected(db_session):
    with pytest.raises(ValidationFailedError):
        resolve_class_section(db_session)
    with pytest.raises(ValidationFailedError):
        resolve_class_section(db_session, grade=6)


def test_unknown_class_section_is_not_found(db_session, seed):
    seed.class_section(6, "A")
    with pytest.raises(ResourceNotFoundError):
        resolve_class_section(db_session, grade=6, section="Z")
    with pytest.raises(ResourceNotFoundError):
        resolve_class_section(db_session, class_section_id="missing")
