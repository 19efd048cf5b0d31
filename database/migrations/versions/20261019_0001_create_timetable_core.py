"""create timetable core

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("admin", "principal", "staff", name="user_role")
slot_source_enum = sa.Enum("auto", "manual", name="timetable_slot_source")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "class_sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_name", sa.String(length=100), nullable=False),
        sa.Column("grade_number", sa.Integer(), nullable=False),
        sa.Column("section_name", sa.String(length=5), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("grade_number", "section_name", name="uq_class_sections_grade_section"),
    )
    op.create_index("ix_class_sections_grade_number", "class_sections", ["grade_number"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=True)

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "teacher_subject_eligibility",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("teacher_id", "subject_id", name="uq_teacher_subject_eligibility_pair"),
    )
    op.create_index("ix_teacher_subject_eligibility_teacher_id", "teacher_subject_eligibility", ["teacher_id"])
    op.create_index("ix_teacher_subject_eligibility_subject_id", "teacher_subject_eligibility", ["subject_id"])

    op.create_table(
        "teacher_class_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "class_section_id",
            sa.String(length=36),
            sa.ForeignKey("class_sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("teacher_id", "class_section_id", name="uq_teacher_class_assignments_pair"),
    )
    op.create_index("ix_teacher_class_assignments_teacher_id", "teacher_class_assignments", ["teacher_id"])
    op.create_index(
        "ix_teacher_class_assignments_class_section_id", "teacher_class_assignments", ["class_section_id"]
    )

    op.create_table(
        "timetable_requirements",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "class_section_id",
            sa.String(length=36),
            sa.ForeignKey("class_sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("weekly_periods", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("class_section_id", "subject_id", name="uq_timetable_requirements_section_subject"),
    )
    op.create_index("ix_timetable_requirements_class_section_id", "timetable_requirements", ["class_section_id"])

    op.create_table(
        "timetable_settings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("working_days_mask", sa.Integer(), nullable=True),
        sa.Column("periods_per_day", sa.Integer(), nullable=True),
        sa.Column("period_minutes", sa.Integer(), nullable=True),
        sa.Column("lunch_after_period", sa.Integer(), nullable=True),
        sa.Column("max_periods_per_teacher_per_day", sa.Integer(), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "timetable_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "class_section_id",
            sa.String(length=36),
            sa.ForeignKey("class_sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("period_no", sa.Integer(), nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id"), nullable=True),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("generated_by", slot_source_enum, nullable=False, server_default="auto"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("class_section_id", "day_of_week", "period_no", name="uq_timetable_slots_cell"),
    )
    op.create_index("ix_timetable_slots_class_section_id", "timetable_slots", ["class_section_id"])
    op.create_index(
        "ix_timetable_slots_teacher_time", "timetable_slots", ["teacher_id", "day_of_week", "period_no"]
    )

    op.create_table(
        "timetable_substitutions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("on_date", sa.Date(), nullable=False),
        sa.Column(
            "class_section_id",
            sa.String(length=36),
            sa.ForeignKey("class_sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("period_no", sa.Integer(), nullable=False),
        sa.Column("original_teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=True),
        sa.Column("substitute_teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("approved_by_id", sa.String(length=36), nullable=True),
        sa.Column("approved_by_name", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("on_date", "class_section_id", "period_no", name="uq_timetable_substitutions_cell"),
    )
    op.create_index("ix_timetable_substitutions_on_date", "timetable_substitutions", ["on_date"])
    op.create_index("ix_timetable_substitutions_class_section_id", "timetable_substitutions", ["class_section_id"])
    op.create_index(
        "ix_timetable_substitutions_substitute_teacher_id", "timetable_substitutions", ["substitute_teacher_id"]
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("user_role", sa.String(length=20), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("class_section_id", sa.String(length=36), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_class_section_id", "activity_logs", ["class_section_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_class_section_id", table_name="activity_logs")
    op.drop_index("ix_activity_logs_action", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_timetable_substitutions_substitute_teacher_id", table_name="timetable_substitutions")
    op.drop_index("ix_timetable_substitutions_class_section_id", table_name="timetable_substitutions")
    op.drop_index("ix_timetable_substitutions_on_date", table_name="timetable_substitutions")
    op.drop_table("timetable_substitutions")
    op.drop_index("ix_timetable_slots_teacher_time", table_name="timetable_slots")
    op.drop_index("ix_timetable_slots_class_section_id", table_name="timetable_slots")
    op.drop_table("timetable_slots")
    op.drop_table("timetable_settings")
    op.drop_index("ix_timetable_requirements_class_section_id", table_name="timetable_requirements")
    op.drop_table("timetable_requirements")
    op.drop_index("ix_teacher_class_assignments_class_section_id", table_name="teacher_class_assignments")
    op.drop_index("ix_teacher_class_assignments_teacher_id", table_name="teacher_class_assignments")
    op.drop_table("teacher_class_assignments")
    op.drop_index("ix_teacher_subject_eligibility_subject_id", table_name="teacher_subject_eligibility")
    op.drop_index("ix_teacher_subject_eligibility_teacher_id", table_name="teacher_subject_eligibility")
    op.drop_table("teacher_subject_eligibility")
    op.drop_table("teachers")
    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_class_sections_grade_number", table_name="class_sections")
    op.drop_table("class_sections")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    slot_source_enum.drop(op.get_bind(), checkfirst=True)
    user_role_enum.drop(op.get_bind(), checkfirst=True)
