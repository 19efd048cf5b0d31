from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, schedule_editors
from app.models.user import User
from app.schemas.settings import ScheduleSettings, TimetableSettingsUpdate
from app.services.audit import log_activity
from app.services.timetable_settings import (
    apply_settings_update,
    build_schedule_settings,
    get_or_create_settings_record,
)

router = APIRouter()


@router.get("/timetable/settings", response_model=ScheduleSettings)
def get_timetable_settings(
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> ScheduleSettings:
    record = get_or_create_settings_record(db)
    db.commit()
    return build_schedule_settings(record)


@router.put("/timetable/settings", response_model=ScheduleSettings)
def update_timetable_settings(
    payload: TimetableSettingsUpdate,
    current_user: User = Depends(schedule_editors),
    db: Session = Depends(get_db),
) -> ScheduleSettings:
    record = apply_settings_update(db, payload)
    log_activity(
        db,
        user=current_user,
        action="timetable.settings.update",
        entity_type="timetable_settings",
        entity_id=str(record.id),
        details=payload.model_dump(),
    )
    db.commit()
    db.refresh(record)
    return build_schedule_settings(record)
