from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TimetableSettings(Base):
    __tablename__ = "timetable_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    # bit 0 = Monday ... bit 4 = Friday
    working_days_mask: Mapped[int | None] = mapped_column(Integer, nullable=True, default=31)
    periods_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True, default=8)
    period_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True, default=40)
    lunch_after_period: Mapped[int | None] = mapped_column(Integer, nullable=True, default=4)
    max_periods_per_teacher_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True, default="08:30")
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True, default="15:30")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
