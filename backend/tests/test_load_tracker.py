from datetime import date

from app.models.substitution import TimetableSubstitution
from app.services.load_tracker import (
    TeacherLoadTracker,
    committed_day_load,
    committed_substitution_load,
)


def test_pick_teacher_prefers_least_loaded_and_keeps_order_on_ties():
    tracker = TeacherLoadTracker(4)
    assert tracker.pick_teacher(1, ["t1", "t2"]) == "t1"

    tracker.record_assignment(1, "t1")
    assert tracker.pick_teacher(1, ["t1", "t2"]) == "t2"
    # load on another day does not count
    assert tracker.pick_teacher(2, ["t1", "t2"]) == "t1"


def test_pick_teacher_respects_cap_and_exclusions():
    tracker = TeacherLoadTracker(2)
    tracker.record_assignment(1, "t1")
    tracker.record_assignment(1, "t1")

    assert not tracker.has_capacity(1, "t1")
    assert tracker.pick_teacher(1, ["t1"]) is None
    assert tracker.pick_teacher(1, ["t1", "t2"], exclude={"t2"}) is None
    assert tracker.pick_teacher(1, []) is None
    assert tracker.snapshot() == {1: {"t1": 2}}


def test_cap_is_at_least_one():
    tracker = TeacherLoadTracker(0)
    assert tracker.max_per_teacher_per_day == 1
    assert tracker.pick_teacher(1, ["t1"]) == "t1"


def test_committed_loads_count_slots_across_sections(db_session, seed):
    grade_six = seed.class_section(6, "A")
    grade_seven = seed.class_section(7, "B")
    teacher = seed.teacher("Asha Rao")
    seed.slot(grade_six, 1, 1, teacher=teacher)
    seed.slot(grade_seven, 1, 2, teacher=teacher)
    seed.slot(grade_seven, 2, 2, teacher=teacher)

    assert committed_day_load(db_session, teacher.id, 1) == 2
    assert committed_day_load(db_session, teacher.id, 2) == 1
    assert committed_day_load(db_session, teacher.id, 3) == 0

    db_session.add(
        TimetableSubstitution(
            on_date=date(2026, 10, 19),
            class_section_id=grade_six.id,
            period_no=5,
            substitute_teacher_id=teacher.id,
        )
    )
    db_session.commit()
    assert committed_substitution_load(db_session, teacher.id, date(2026, 10, 19)) == 1
    assert committed_substitution_load(db_session, teacher.id, date(2026, 10, 20)) == 0
