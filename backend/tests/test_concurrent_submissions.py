import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from schoolhub.core.exceptions import SchedulingConflictError
from schoolhub.core.security import get_password_hash
from schoolhub.db.base import Base
from schoolhub.models.user import User, UserRole
from schoolhub.services import assignment_service, assignment_store
from schoolhub.services.assignment_service import AssignmentRequest
from schoolhub.services.locks import clear_teacher_day_locks, held_lock_count
from schoolhub.services.slot_calendar import SLOTS

YEAR = "2024"


@pytest.fixture()
def file_session_factory(tmp_path):
    # a file database gives each thread its own connection
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    clear_teacher_day_locks()
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    clear_teacher_day_locks()
    engine.dispose()


def create_teacher(factory, name="T1"):
    with factory() as db:
        teacher = User(
            name=name,
            email=f"{name.lower()}@school.example.com",
            hashed_password=get_password_hash("password123"),
            role=UserRole.staff,
        )
        db.add(teacher)
        db.commit()
        return teacher.id


def submit_together(factory, requests):
    barrier = threading.Barrier(len(requests))

    def attempt(request):
        db = factory()
        try:
            barrier.wait()
            assignment_service.submit(db, request)
            return "ok"
        except SchedulingConflictError as exc:
            return exc.code
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=len(requests)) as pool:
        return list(pool.map(attempt, requests))


def monday_request(teacher_id, start, end):
    return AssignmentRequest("5-A", "Math", teacher_id, YEAR, "Monday", start, end)


def stored_monday(factory, teacher_id):
    with factory() as db:
        rows = assignment_store.find_by_teacher_and_day(db, teacher_id, "Monday", YEAR)
        return sorted(row.start_time for row in rows)


@pytest.mark.parametrize("round_number", range(5))
def test_only_one_of_two_adjacent_submissions_wins(file_session_factory, round_number):
    teacher_id = create_teacher(file_session_factory, name=f"T{round_number}")

    results = submit_together(
        file_session_factory,
        [monday_request(teacher_id, "08:00", "08:45"), monday_request(teacher_id, "08:45", "09:30")],
    )

    assert sorted(results) == ["consecutive_period_conflict", "ok"]
    assert len(stored_monday(file_session_factory, teacher_id)) == 1
    assert held_lock_count() == 0


def test_simultaneous_submissions_never_break_the_day_rules(file_session_factory):
    teacher_id = create_teacher(file_session_factory)

    results = submit_together(
        file_session_factory,
        [monday_request(teacher_id, slot.start_time, slot.end_time) for slot in SLOTS],
    )

    stored = stored_monday(file_session_factory, teacher_id)
    assert len(stored) == results.count("ok")
    assert 1 <= len(stored) <= 4
    numbers = sorted(slot.period_number for slot in SLOTS if slot.start_time in stored)
    assert all(following - current > 1 for current, following in zip(numbers, numbers[1:]))
    assert set(results) - {"ok"} <= {"consecutive_period_conflict", "daily_limit_exceeded"}
