from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx

from productivity.errors import ExternalServiceError
from productivity.services.nad_allocation import LeaveTotals
from productivity.settings import get_settings, is_leave_service_enabled

logger = logging.getLogger("productivity.leave_client")

LEAVE_ACTION = "get_nad_by_date_range"


@dataclass(frozen=True)
class LeaveRecord:
    email: str
    nad_count: float
    requests: int = 0


@dataclass(frozen=True)
class LeaveResponse:
    nad_data: tuple[LeaveRecord, ...] = ()
    nad_hour_rate: float | None = None

    def totals_by_email(self, default_hour_rate: float) -> dict[str, LeaveTotals]:
        rate = self.nad_hour_rate if self.nad_hour_rate is not None else default_hour_rate
        totals: dict[str, LeaveTotals] = {}
        for record in self.nad_data:
            key = normalize_email(record.email)
            previous = totals.get(key)
            totals[key] = LeaveTotals(
                nad_count=record.nad_count + (previous.nad_count if previous else 0.0),
                nad_hour_rate=rate,
                requests=record.requests + (previous.requests if previous else 0),
            )
        return totals


EMPTY_LEAVE_RESPONSE = LeaveResponse()

LeaveLookup = Callable[[date, date, list[str]], LeaveResponse]


def normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _as_number(value: Any, *, field_name: str) -> float:
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ExternalServiceError(f"Leave service returned a non-numeric {field_name}: {value!r}") from exc
    if not math.isfinite(number):
        raise ExternalServiceError(f"Leave service returned a non-finite {field_name}: {value!r}")
    return number


def parse_leave_payload(payload: Any) -> LeaveResponse:
    if not isinstance(payload, dict):
        raise ExternalServiceError("Leave service payload must be a JSON object")
    if payload.get("status") is False:
        raise ExternalServiceError(str(payload.get("message") or "Leave service reported a failure"))

    items = payload.get("nad_data", payload.get("data"))
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ExternalServiceError("Leave service payload has no record list")

    records: list[LeaveRecord] = []
    for item in items:
        if not isinstance(item, dict) or not item.get("email"):
            raise ExternalServiceError(f"Malformed leave record: {item!r}")
        records.append(
            LeaveRecord(
                email=str(item["email"]),
                nad_count=_as_number(item.get("nad_count"), field_name="nad_count"),
                requests=int(_as_number(item.get("requests"), field_name="requests")),
            )
        )

    raw_rate = payload.get("nad_hour_rate")
    hour_rate = None if raw_rate is None else _as_number(raw_rate, field_name="nad_hour_rate")
    return LeaveResponse(nad_data=tuple(records), nad_hour_rate=hour_rate)


class LeaveServiceClient:
    """Client of the leave service answering one date-range query for many emails."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _form(self, start_date: date, end_date: date, emails: Iterable[str]) -> dict[str, str]:
        data = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "blab_only": 1,
            "email_list": sorted({normalize_email(email) for email in emails if normalize_email(email)}),
        }
        form = {"action": LEAVE_ACTION, "data": json.dumps(data)}
        if self.token:
            form["token"] = self.token
        return form

    def get_leave(self, start_date: date, end_date: date, emails: list[str]) -> LeaveResponse:
        form = self._form(start_date, end_date, emails)
        # Sent as multipart/form-data, one part per field.
        files = {key: (None, value) for key, value in form.items()}
        try:
            with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = client.post(self.base_url, files=files)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceError(f"Leave service timed out after {self.timeout_seconds}s") from exc
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                f"Leave service answered HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Leave service request failed: {exc}") from exc
        except ValueError as exc:
            raise ExternalServiceError("Leave service returned invalid JSON") from exc

        result = parse_leave_payload(payload)
        logger.info(
            "leave_lookup_complete",
            extra={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "email_count": len(emails),
                "record_count": len(result.nad_data),
            },
        )
        return result

    __call__ = get_leave


def build_leave_lookup() -> LeaveLookup | None:
    if not is_leave_service_enabled():
        return None
    settings = get_settings()
    return LeaveServiceClient(
        (settings.leave_service_url or "").strip(),
        token=settings.leave_service_token,
        timeout_seconds=settings.leave_service_timeout_seconds,
    )
