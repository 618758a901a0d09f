# prescription_service/core/exceptions.py
"""
Application errors.

Services raise these; ``api.exception_handlers`` turns them into the standard
error envelope. ``code`` and ``http_status`` are class defaults that a caller
may override per instance.
"""
from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    code = "UNKNOWN_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        detail: Any = None,
        http_status: Optional[int] = None,
    ) -> None:
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class RecordNotFound(AppError):
    """Lookup miss in the prescription store."""

    code = "RECORD_NOT_FOUND"
    http_status = 404

    def __init__(self, rx_id: str) -> None:
        self.rx_id = rx_id
        super().__init__(f"Prescription {rx_id} not found",
                         detail={"id": rx_id})


class RecordIncomplete(AppError):
    """The record exists but a field with no placeholder policy is missing."""

    code = "RECORD_INCOMPLETE"
    http_status = 422

    def __init__(self, field: str, rx_id: Optional[str] = None) -> None:
        self.field = field
        self.rx_id = rx_id
        super().__init__(
            f"Prescription {rx_id or '?'} cannot be printed: {field} is missing",
            detail={"id": rx_id, "field": field},
        )


class GenerationCollision(AppError):
    """Every id attempt collided with an existing prescription."""

    code = "ID_GENERATION_FAILED"
    http_status = 503

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique prescription id after {attempts} attempts",
            detail={"attempts": attempts},
        )


class RenderFailed(AppError):
    """The layout engine could not place the record on A4 pages."""

    code = "RENDER_FAILED"
    http_status = 422

    def __init__(self, rx_id: Optional[str], reason: str) -> None:
        self.rx_id = rx_id
        super().__init__(
            f"Prescription {rx_id or '?'} could not be laid out: {reason}",
            detail={"id": rx_id},
        )
