from schoolhub.models.staff_assignment import StaffAssignment
from schoolhub.models.user import UserRole
from schoolhub.services import assignment_service, projection
from schoolhub.services.assignment_service import AssignmentRequest

YEAR = "2024"


def submit(db_session, teacher, *, class_id="5-A", subject="Math", day="Monday", start="08:00", end="08:45"):
    return assignment_service.submit(
        db_session,
        AssignmentRequest(class_id, subject, teacher.id, YEAR, day, start, end),
    )


def test_can_assign_teacher_uses_neighbours_and_store_counts(db_session, make_user):
    teacher = make_user("T1")
    other = make_user("T2")
    submit(db_session, teacher)

    timetable = projection.get(db_session, 5, "A", YEAR)
    assert not projection.can_assign_teacher(db_session, timetable, teacher.id, "Monday", 2)
    assert projection.can_assign_teacher(db_session, timetable, teacher.id, "Monday", 3)
    assert projection.can_assign_teacher(db_session, timetable, other.id, "Monday", 2)
    assert projection.can_assign_teacher(db_session, timetable, teacher.id, "Tuesday", 2)


def test_can_assign_teacher_false_at_daily_limit(db_session, make_user):
    teacher = make_user("T1")
    for start, end in [("08:00", "08:45"), ("09:30", "10:15"), ("11:00", "11:45"), ("12:30", "13:15")]:
        submit(db_session, teacher, start=start, end=end)

    other_class = projection.get_or_create(db_session, 6, "B", YEAR)
    assert not projection.can_assign_teacher(db_session, other_class, teacher.id, "Monday", 8)
    assert projection.teacher_class_count(db_session, teacher.id, "Monday", YEAR) == 4


def test_rebuild_restores_periods_from_the_store(db_session, make_user):
    teacher = make_user("T1")
    submit(db_session, teacher)
    submit(db_session, teacher, day="Tuesday", start="09:30", end="10:15")

    timetable = projection.get(db_session, 5, "A", YEAR)
    timetable.periods.clear()
    db_session.commit()
    assert projection.get(db_session, 5, "A", YEAR).periods == []

    rebuilt = projection.rebuild(db_session, 5, "A", YEAR)
    db_session.commit()

    assert [(item.day, item.period_number) for item in rebuilt.periods] == [("Monday", 1), ("Tuesday", 3)]
    assert projection.ordered_days(rebuilt) == ["Monday", "Tuesday"]


def test_withdraw_leaves_a_period_that_was_since_changed(db_session, make_user):
    teacher = make_user("T1")
    other = make_user("T2")
    assignment = submit(db_session, teacher)

    timetable = projection.get(db_session, 5, "A", YEAR)
    timetable.period_at("Monday", 1).teacher_id = other.id
    db_session.commit()

    stored = db_session.get(StaffAssignment, assignment.id)
    assert projection.withdraw_assignment(db_session, stored) is False
    assert timetable.period_at("Monday", 1).teacher_id == other.id


def test_can_mark_attendance(db_session, make_user):
    admin = make_user("Admin", role=UserRole.admin)
    first = make_user("T1")
    other = make_user("T2")
    timetable = assignment_service.replace_day(
        db_session,
        class_number=5,
        section="A",
        academic_year=YEAR,
        day="Monday",
        periods=[],
        first_period_teacher_id=first.id,
    )

    assert projection.can_mark_attendance(admin, timetable)
    assert projection.can_mark_attendance(first, timetable)
    assert not projection.can_mark_attendance(other, timetable)


def test_calendar_view_and_teacher_timetables(db_session, make_user):
    teacher = make_user("T1")
    submit(db_session, teacher, class_id="5-A")
    submit(db_session, teacher, class_id="6-B", subject="Physics", start="11:00", end="11:45")

    view = projection.calendar_view(db_session, YEAR)
    assert view["days"][0] == "Monday"
    assert len(view["timeSlots"]) == 8
    assert [(item["classNumber"], item["section"]) for item in view["classes"]] == [(5, "A"), (6, "B")]
    cell = view["classes"][1]["schedule"]["Monday"]["11:00-11:45"]
    assert cell == {"subject": "Physics", "teacherId": teacher.id, "teacherName": "T1"}

    timetables = projection.teacher_timetables(db_session, teacher.id, YEAR)
    assert [(item.class_number, item.section) for item in timetables] == [(5, "A"), (6, "B")]
