from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, schedule_editors
from app.models.user import User
from app.schemas.activity import ActivityLogOut
from app.services.audit import MAX_ACTIVITY_ROWS, recent_activity

router = APIRouter()


@router.get("/timetable/activity", response_model=list[ActivityLogOut])
def list_timetable_activity(
    class_section_id: str | None = Query(default=None, max_length=36),
    action: str | None = Query(default=None, max_length=100, description="Action prefix, e.g. timetable.slot"),
    limit: int = Query(default=100, ge=1, le=MAX_ACTIVITY_ROWS),
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    return recent_activity(db, class_section_id=class_section_id, action_prefix=action, limit=limit)
