from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


class ReportError(Exception):
    """Base class for attribution engine failures."""


class DataGapError(ReportError):
    """A worker's attribute history does not cover part of the window."""


class ExternalServiceError(ReportError):
    """The leave service failed, timed out or answered with garbage."""


class ConfigurationMissingError(ReportError):
    """No weekly target is configured for a work status."""


class InvalidWindowError(ReportError):
    """The requested window violates the preconditions of its mode."""


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)
