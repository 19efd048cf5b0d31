from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.models.user import User

MAX_ACTIVITY_ROWS = 500


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    class_section_id: str | None = None,
    details: dict | None = None,
) -> None:
    """Stage an activity row; the caller's commit makes it durable with the change it describes."""
    db.add(
        ActivityLog(
            user_id=user.id if user is not None else None,
            user_role=user.role.value if user is not None else None,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            class_section_id=class_section_id,
            details=details or {},
        )
    )


def recent_activity(
    db: Session,
    *,
    class_section_id: str | None = None,
    action_prefix: str | None = None,
    limit: int = 100,
) -> list[ActivityLog]:
    query = select(ActivityLog).order_by(ActivityLog.created_at.desc(), ActivityLog.id)
    if class_section_id:
        query = query.where(ActivityLog.class_section_id == class_section_id)
    if action_prefix:
        query = query.where(ActivityLog.action.startswith(action_prefix))
    return list(db.execute(query.limit(min(max(1, limit), MAX_ACTIVITY_ROWS))).scalars())
