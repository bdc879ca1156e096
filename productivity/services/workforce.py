from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Any


class WorkStatus(str, enum.Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"


class AttributeField(str, enum.Enum):
    REGION = "region"
    WORK_STATUS = "work_status"


@dataclass(frozen=True)
class WorkerProfile:
    id: int
    full_name: str
    email: str
    work_status: str | None
    region_id: int | None
    hire_date: date | None = None
    end_date: date | None = None
    is_active: bool = True
    job_title: str | None = None

    def current_value(self, field_name: str) -> Any:
        if field_name == AttributeField.REGION.value:
            return self.region_id
        if field_name == AttributeField.WORK_STATUS.value:
            return self.work_status
        raise ValueError(f"Unsupported attribute field: {field_name}")


@dataclass(frozen=True)
class AttributeChangeRecord:
    worker_id: int
    field_name: str
    old_value: Any
    new_value: Any
    effective_date: date
    reason: str | None = None
    id: int = 0


def field_value(field_name: str | AttributeField) -> str:
    if isinstance(field_name, AttributeField):
        return field_name.value
    return field_name


def normalize_work_status(value: Any) -> str:
    if isinstance(value, WorkStatus):
        return value.value
    raw = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
    if not raw:
        return WorkStatus.FULL_TIME.value
    if raw in {"parttime", "part-time"}:
        return WorkStatus.PART_TIME.value
    if raw in {"fulltime", "full-time"}:
        return WorkStatus.FULL_TIME.value
    return raw


def work_status_label(value: Any) -> str:
    return normalize_work_status(value).replace("-", " ").title()


def is_active_for_window(worker: WorkerProfile, start_date: date, end_date: date) -> bool:
    if not worker.is_active:
        return False
    if worker.hire_date is not None and worker.hire_date > start_date:
        return False
    if worker.end_date is not None and worker.end_date < end_date:
        return False
    return True
