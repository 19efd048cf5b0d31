import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SlotSource(str, Enum):
    auto = "auto"
    manual = "manual"


class TimetableSlot(Base):
    __tablename__ = "timetable_slots"
    __table_args__ = (
        UniqueConstraint(
            "class_section_id",
            "day_of_week",
            "period_no",
            name="uq_timetable_slots_cell",
        ),
        Index("ix_timetable_slots_teacher_time", "teacher_id", "day_of_week", "period_no"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("class_sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # ISO weekday, 1 = Monday
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    period_no: Mapped[int] = mapped_column(Integer, nullable=False)
    subject_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("subjects.id"), nullable=True)
    teacher_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("teachers.id"), nullable=True)
    locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    generated_by: Mapped[SlotSource] = mapped_column(
        SAEnum(SlotSource, name="timetable_slot_source"),
        nullable=False,
        default=SlotSource.auto,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
