from __future__ import annotations

from typing import Any, Optional


class ServiceError(Exception):
    """Base for service-layer failures that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        if status:
            self.status_code = int(status)
        self.payload = payload


class PledgeValidationError(ServiceError):
    status_code = 400


class InvalidTGBResponse(ServiceError):
    def __init__(self, message: str = "Invalid response from external API.", payload: Any = None) -> None:
        super().__init__(message, 500, payload)


class NotConfiguredError(ServiceError):
    status_code = 503


class NotFoundError(ServiceError):
    status_code = 404
