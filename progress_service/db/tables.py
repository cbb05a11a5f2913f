"""SQLAlchemy table definitions.

The frozen dataclasses in progress_service/models/ are the domain types;
these rows are the persistence layer and the repos convert between them.

Hierarchy tables (base_classes, paths, lessons, assessments,
class_instances, rosters) are authored elsewhere and only read here.
Identifiers are stored as text so they round-trip as the opaque strings
the engine passes around.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from progress_service.db.engine import Base

# --- Course hierarchy (read-only for this service) ---


class BaseClassRow(Base):
    __tablename__ = "base_classes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, default="")


class PathRow(Base):
    __tablename__ = "paths"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    base_class_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("base_classes.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class LessonRow(Base):
    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    path_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("paths.id"), nullable=True, index=True
    )
    base_class_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("base_classes.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AssessmentRow(Base):
    __tablename__ = "assessments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    path_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("paths.id"), nullable=True, index=True
    )
    lesson_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("lessons.id"), nullable=True, index=True
    )
    base_class_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("base_classes.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")


class ClassInstanceRow(Base):
    __tablename__ = "class_instances"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    base_class_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("base_classes.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False, default="")


class RosterRow(Base):
    __tablename__ = "rosters"

    class_instance_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("class_instances.id"), primary_key=True
    )
    profile_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default="student"
    )  # student|teacher|observer


# --- Progress (owned by this service) ---


class ProgressRow(Base):
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "item_type", "item_id", name="uq_progress_key"),
        CheckConstraint(
            "progress_percentage BETWEEN 0 AND 100", name="ck_progress_percentage"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # lesson|assessment|path|class_instance
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="not_started"
    )  # not_started|in_progress|passed|failed|completed
    progress_percentage: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    last_position: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False)
