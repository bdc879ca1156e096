from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from productivity.db import Base
from productivity.services.workforce import WorkStatus


class Region(Base):
    __tablename__ = "regions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    workers: Mapped[list[Worker]] = relationship(back_populates="region")


class Worker(Base):
    __tablename__ = "workers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    region_id: Mapped[int | None] = mapped_column(
        ForeignKey("regions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    work_status: Mapped[WorkStatus | None] = mapped_column(
        Enum(WorkStatus, name="work_status", values_callable=lambda items: [item.value for item in items]),
        nullable=True,
    )
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))

    region: Mapped[Region | None] = relationship(back_populates="workers")
    changes: Mapped[list[WorkerChangeLog]] = relationship(back_populates="worker")
    target_overrides: Mapped[list[TargetOverride]] = relationship(back_populates="worker")
    daily_summaries: Mapped[list[DailyWorklogSummary]] = relationship(back_populates="worker")


class WorkerChangeLog(Base):
    __tablename__ = "worker_change_logs"
    __table_args__ = (
        Index("ix_worker_change_logs_worker_field_date", "worker_id", "field_name", "effective_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    worker_id: Mapped[int] = mapped_column(ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    field_name: Mapped[str] = mapped_column(String(64), nullable=False)
    # JSON-encoded values, e.g. '"part-time"' or '3'.
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    worker: Mapped[Worker] = relationship(back_populates="changes")


class TargetOverride(Base):
    __tablename__ = "target_overrides"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    worker_id: Mapped[int] = mapped_column(
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_status: Mapped[WorkStatus] = mapped_column(
        Enum(WorkStatus, name="work_status", values_callable=lambda items: [item.value for item in items]),
        nullable=False,
    )
    weekly_hours: Mapped[float] = mapped_column(Float, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    worker: Mapped[Worker] = relationship(back_populates="target_overrides")


class ReportCategory(Base):
    __tablename__ = "report_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    category_type: Mapped[str] = mapped_column(String(64), nullable=False, default="uncategorized")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))


class DailyWorklogSummary(Base):
    __tablename__ = "daily_worklog_summaries"
    __table_args__ = (
        UniqueConstraint("worker_id", "report_date", "category_id", name="uq_daily_summary_worker_day_category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    worker_id: Mapped[int] = mapped_column(ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    report_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("report_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    category_type: Mapped[str] = mapped_column(String(64), nullable=False, default="uncategorized")
    total_duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    entries_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    worker: Mapped[Worker] = relationship(back_populates="daily_summaries")
    category: Mapped[ReportCategory | None] = relationship()
