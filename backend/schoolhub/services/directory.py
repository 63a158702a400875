from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolhub.models.user import User, UserRole


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def get_staff_member(db: Session, user_id: str | None) -> User | None:
    if not user_id:
        return None
    user = db.get(User, user_id)
    if user is None or user.role != UserRole.staff or not user.is_active:
        return None
    return user


def list_staff(db: Session) -> list[User]:
    statement = select(User).where(User.role == UserRole.staff, User.is_active.is_(True)).order_by(User.name)
    return list(db.execute(statement).scalars())
