from __future__ import annotations

import logging

from sqlalchemy import inspect

import schoolhub.models  # noqa: F401
from schoolhub.core.config import get_settings
from schoolhub.db.base import Base
from schoolhub.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "subject"},
    "staff_assignments": {
        "id",
        "class_number",
        "section",
        "subject",
        "teacher_id",
        "academic_year",
        "day",
        "start_time",
        "end_time",
    },
    "class_timetables": {"id", "class_number", "section", "academic_year", "first_period_teacher_id"},
    "timetable_periods": {"id", "timetable_id", "day", "period_number", "teacher_id"},
}


def find_schema_gaps(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema() -> None:
    if get_settings().auto_create_schema:
        Base.metadata.create_all(bind=engine)

    with engine.connect() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables or missing_columns:
        logger.warning(
            "Database schema is behind the models (missing tables=%s, columns=%s). Run `alembic upgrade head`.",
            missing_tables,
            missing_columns,
        )
