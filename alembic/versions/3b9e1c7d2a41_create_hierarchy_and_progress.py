"""create hierarchy and progress tables

Revision ID: 3b9e1c7d2a41
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b9e1c7d2a41"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "base_classes",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=500), nullable=False, server_default=""),
    )
    op.create_table(
        "paths",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "base_class_id",
            sa.String(length=64),
            sa.ForeignKey("base_classes.id"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_paths_base_class_id", "paths", ["base_class_id"])

    op.create_table(
        "lessons",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "path_id", sa.String(length=64), sa.ForeignKey("paths.id"), nullable=True
        ),
        sa.Column(
            "base_class_id",
            sa.String(length=64),
            sa.ForeignKey("base_classes.id"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_lessons_path_id", "lessons", ["path_id"])

    op.create_table(
        "assessments",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "path_id", sa.String(length=64), sa.ForeignKey("paths.id"), nullable=True
        ),
        sa.Column(
            "lesson_id",
            sa.String(length=64),
            sa.ForeignKey("lessons.id"),
            nullable=True,
        ),
        sa.Column(
            "base_class_id",
            sa.String(length=64),
            sa.ForeignKey("base_classes.id"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=500), nullable=False, server_default=""),
    )
    op.create_index("ix_assessments_path_id", "assessments", ["path_id"])
    op.create_index("ix_assessments_lesson_id", "assessments", ["lesson_id"])
    op.create_index("ix_assessments_base_class_id", "assessments", ["base_class_id"])

    op.create_table(
        "class_instances",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "base_class_id",
            sa.String(length=64),
            sa.ForeignKey("base_classes.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=500), nullable=False, server_default=""),
    )
    op.create_index(
        "ix_class_instances_base_class_id", "class_instances", ["base_class_id"]
    )

    op.create_table(
        "rosters",
        sa.Column(
            "class_instance_id",
            sa.String(length=64),
            sa.ForeignKey("class_instances.id"),
            primary_key=True,
        ),
        sa.Column("profile_id", sa.String(length=64), primary_key=True),
        sa.Column(
            "role", sa.String(length=32), nullable=False, server_default="student"
        ),
    )

    op.create_table(
        "progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("item_type", sa.String(length=32), nullable=False),
        sa.Column("item_id", sa.String(length=64), nullable=False),
        sa.Column(
            "status",
            sa.String(length=32),
            nullable=False,
            server_default="not_started",
        ),
        sa.Column(
            "progress_percentage", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("last_position", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "user_id", "item_type", "item_id", name="uq_progress_key"
        ),
        sa.CheckConstraint(
            "progress_percentage BETWEEN 0 AND 100", name="ck_progress_percentage"
        ),
    )
    op.create_index("ix_progress_user_id", "progress", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_progress_user_id", table_name="progress")
    op.drop_table("progress")
    op.drop_table("rosters")
    op.drop_index("ix_class_instances_base_class_id", table_name="class_instances")
    op.drop_table("class_instances")
    op.drop_index("ix_assessments_base_class_id", table_name="assessments")
    op.drop_index("ix_assessments_lesson_id", table_name="assessments")
    op.drop_index("ix_assessments_path_id", table_name="assessments")
    op.drop_table("assessments")
    op.drop_index("ix_lessons_path_id", table_name="lessons")
    op.drop_table("lessons")
    op.drop_index("ix_paths_base_class_id", table_name="paths")
    op.drop_table("paths")
    op.drop_table("base_classes")
