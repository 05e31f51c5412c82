"""
E-Learning API Exceptions

This module provides the error taxonomy used by every route of the E-Learning
API together with the DRF exception handler that renders them. All failures
leave the API as a single ``{"error": "<message>"}`` body; some carry extra
keys (for example ``attemptId`` on a conflicting exam attempt or
``requiresPayment`` on a paid-course enrollment).

Exceptions:
- Unauthorized: No valid session (401)
- Forbidden: Wrong role or no active enrollment (403)
- NotFound: Missing course, unit, lesson, exam or attempt (404)
- ValidationError: Malformed or out-of-range input (400)
- ConflictError: Duplicate enrollment, attempt already in progress (400)
- InternalError: Unexpected store failure, detail suppressed (500)

Author: DSP Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import set_rollback

logger = logging.getLogger(__name__)


class ElearningAPIException(exceptions.APIException):
    """
    Base class for all E-Learning API errors.

    Attributes:
        message (str): Human-readable error message returned to the client
        extra (Dict[str, Any]): Additional keys merged into the error body

    Example:
        >>> raise ConflictError(
        ...     "You already have an attempt in progress",
        ...     extra={"attemptId": attempt.id},
        ... )
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"
    default_code = "error"

    def __init__(
        self, message: Optional[str] = None, extra: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message or str(self.default_detail)
        self.extra = extra or {}
        super().__init__(detail=self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the exception into the API error body.

        Returns:
            Dictionary with the ``error`` key and any extra keys
        """
        return {"error": self.message, **self.extra}


class Unauthorized(ElearningAPIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
    default_code = "unauthorized"


class Forbidden(ElearningAPIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"
    default_code = "forbidden"


class NotFound(ElearningAPIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"
    default_code = "not_found"


class ValidationError(ElearningAPIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request data"
    default_code = "invalid"


class ConflictError(ElearningAPIException):
    """
    Raised when a request would duplicate state that must stay unique, such
    as a second enrollment in the same course or a second in-progress exam
    attempt. Reported as 400 like the rest of the validation family.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Conflict"
    default_code = "conflict"


class InternalError(ElearningAPIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "internal_error"


def _first_message(detail: Any) -> str:
    """Pick the first human readable message out of a DRF error structure."""
    if isinstance(detail, dict):
        if not detail:
            return "Invalid request data"
        key, value = next(iter(detail.items()))
        message = _first_message(value)
        if key in ("non_field_errors", "detail"):
            return message
        return f"{key}: {message}"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Invalid request data"
    return str(detail)


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """
    DRF exception handler producing ``{"error": ...}`` bodies.

    Args:
        exc: The exception raised inside the view
        context: DRF handler context (view, request, args, kwargs)

    Returns:
        Response carrying the error body and the matching status code
    """
    if isinstance(exc, Http404):
        exc = NotFound(str(exc) or None)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = Forbidden()

    if isinstance(exc, ElearningAPIException):
        set_rollback()
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, exceptions.APIException):
        headers = {}
        if getattr(exc, "auth_header", None):
            headers["WWW-Authenticate"] = exc.auth_header
        if getattr(exc, "wait", None):
            headers["Retry-After"] = "%d" % exc.wait

        body: Dict[str, Any] = {"error": _first_message(exc.detail)}
        if isinstance(exc, exceptions.ValidationError):
            body["details"] = exc.detail

        set_rollback()
        return Response(body, status=exc.status_code, headers=headers)

    view = context.get("view")
    logger.exception(
        "Unhandled error in %s: %s", view.__class__.__name__ if view else "view", exc
    )
    set_rollback()
    return Response(
        InternalError().to_dict(), status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def get_object_or_not_found(queryset, message: str, **lookup):
    """
    ``get_object_or_404`` mit eigener Fehlermeldung.

    Ungültige IDs (z.B. Buchstaben statt Zahlen) werden ebenfalls als 404
    behandelt.
    """
    try:
        obj = queryset.filter(**lookup).first()
    except (TypeError, ValueError):
        obj = None
    if obj is None:
        raise NotFound(message)
    return obj
