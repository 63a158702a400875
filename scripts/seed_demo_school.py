"""Seed demo accounts and a sample Monday for class 5-A.

Assignments go through the assignment service, so the daily-load rules apply and
re-running the script leaves the data unchanged.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py
"""

from __future__ import annotations

import os
from typing import Iterable

from sqlalchemy import select

from schoolhub.api.deps import resolve_academic_year
from schoolhub.core.security import get_password_hash
from schoolhub.db.bootstrap import ensure_runtime_schema
from schoolhub.db.session import SessionLocal
from schoolhub.models.user import User, UserRole
from schoolhub.services import assignment_service
from schoolhub.services.assignment_service import AssignmentRequest

DEFAULT_PASSWORD = os.getenv("DEMO_PASSWORD", "DemoPass123!")
ACADEMIC_YEAR = resolve_academic_year(os.getenv("DEMO_ACADEMIC_YEAR"))
DEMO_CLASS = "5-A"


def _env_email(key: str, default: str) -> str:
    value = os.getenv(key, "").strip()
    return value or default


DEMO_ACCOUNTS = {
    "admin": {
        "name": "Demo Admin",
        "email": _env_email("DEMO_ADMIN_EMAIL", "admin.demo@schoolhub.example.com"),
        "role": UserRole.admin,
        "subject": None,
    },
    "math": {
        "name": "Demo Maths Teacher",
        "email": _env_email("DEMO_MATH_EMAIL", "maths.demo@schoolhub.example.com"),
        "role": UserRole.staff,
        "subject": "Mathematics",
    },
    "english": {
        "name": "Demo English Teacher",
        "email": _env_email("DEMO_ENGLISH_EMAIL", "english.demo@schoolhub.example.com"),
        "role": UserRole.staff,
        "subject": "English",
    },
    "science": {
        "name": "Demo Science Teacher",
        "email": _env_email("DEMO_SCIENCE_EMAIL", "science.demo@schoolhub.example.com"),
        "role": UserRole.staff,
        "subject": "Science",
    },
}

# (account key, start, end); no teacher holds two adjacent periods.
SAMPLE_MONDAY = [
    ("math", "08:00", "08:45"),
    ("english", "08:45", "09:30"),
    ("math", "09:30", "10:15"),
    ("science", "10:15", "11:00"),
    ("english", "11:00", "11:45"),
    ("science", "11:45", "12:30"),
    ("math", "12:30", "13:15"),
]


def _upsert_user(*, name: str, email: str, role: UserRole, subject: str | None) -> User:
    with SessionLocal() as session:
        existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is None:
            existing = User(
                name=name,
                email=email,
                hashed_password=get_password_hash(DEFAULT_PASSWORD),
                role=role,
                subject=subject,
                is_active=True,
            )
            session.add(existing)
        else:
            existing.name = name
            existing.role = role
            existing.subject = subject
            existing.is_active = True
        session.commit()
        session.refresh(existing)
        return existing


def _seed_monday(users: dict[str, User]) -> int:
    admin = users["admin"]
    with SessionLocal() as session:
        actor = session.get(User, admin.id)
        for key, start, end in SAMPLE_MONDAY:
            teacher = users[key]
            assignment_service.submit(
                session,
                AssignmentRequest(
                    class_id=DEMO_CLASS,
                    subject=teacher.subject,
                    teacher_id=teacher.id,
                    academic_year=ACADEMIC_YEAR,
                    day="Monday",
                    start_time=start,
                    end_time=end,
                ),
                actor=actor,
            )
    return len(SAMPLE_MONDAY)


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready:")
    for label, user in items:
        subject = f", subject={user.subject}" if user.subject else ""
        print(f"  - {label}: {user.email} | role={user.role.value}{subject}")
    print(f"\nPassword for all demo accounts: {DEFAULT_PASSWORD}")


def main() -> None:
    ensure_runtime_schema()
    users = {key: _upsert_user(**item) for key, item in DEMO_ACCOUNTS.items()}
    count = _seed_monday(users)
    _print_accounts(users.items())
    print(f"\nSeeded {count} Monday periods for class {DEMO_CLASS} ({ACADEMIC_YEAR}).")


if __name__ == "__main__":
    main()
