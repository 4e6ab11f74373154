"""Domain error taxonomy and its HTTP translation.

Every business-rule violation raised by a service derives from
``DomainError``.  Each subclass declares a machine-readable ``kind`` and
the HTTP status the REST edge maps it to.  The DRF exception handler
below converts them into the ``drf-standardized-errors`` body::

    {"type": "client_error",
     "errors": [{"code": "order_activated", "detail": "...", "attr": null}]}

Anything that is not a ``DomainError`` or a DRF ``APIException`` is an
unexpected failure and is rendered as a 500 ``server_error``.
"""

from __future__ import annotations

import structlog
from drf_standardized_errors.handler import ExceptionHandler
from rest_framework import status
from rest_framework.exceptions import APIException

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for recoverable business-rule failures."""

    kind: str = "domain_error"
    http_status: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Business rule violated."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(DomainError):
    """A referenced order, product or line item does not exist."""

    kind = "not_found"
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."


class Conflict(DomainError):
    """The request conflicts with the current state of the resource."""

    kind = "conflict"
    http_status = status.HTTP_409_CONFLICT
    default_detail = "Conflict with current state."


class DomainAPIException(APIException):
    """DRF carrier for a ``DomainError`` so the standard formatter applies."""

    def __init__(self, error: DomainError) -> None:
        self.status_code = error.http_status
        super().__init__(detail=error.detail, code=error.kind)


class DomainExceptionHandler(ExceptionHandler):
    """Translate ``DomainError`` instances before standard formatting."""

    def convert_known_exceptions(self, exc: Exception) -> Exception:
        if isinstance(exc, DomainError):
            logger.info(
                "api.domain_error",
                kind=exc.kind,
                status_code=exc.http_status,
                detail=exc.detail,
            )
            return DomainAPIException(exc)
        return super().convert_known_exceptions(exc)
