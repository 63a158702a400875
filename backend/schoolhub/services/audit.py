from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from schoolhub.models.activity_log import ActivityLog
from schoolhub.models.user import User

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    actor: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Stage an audit row in the caller's transaction; it commits with the change it describes."""
    record = ActivityLog(
        user_id=actor.id if actor is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
    logger.debug("audit action=%s entity=%s/%s actor=%s", action, entity_type, entity_id, record.user_id)
    return record
