from __future__ import annotations

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(APIException):
    """Base for errors raised by the booking and payment services."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = "error"


class InvalidInput(DomainError):
    default_detail = "Invalid input."
    default_code = "invalid_input"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class Conflict(DomainError):
    # Clients already treat these as 400s ("Deposit already paid").
    default_detail = "Request conflicts with the current booking state."
    default_code = "conflict"


class Unauthorized(DomainError):
    default_detail = "Webhook signature verification failed."
    default_code = "unauthorized"


class PaymentRejected(DomainError):
    default_detail = "Payment failed"
    default_code = "payment_rejected"

    def __init__(self, details=None, detail=None):
        super().__init__(detail=detail)
        self.details = [str(item) for item in (details or []) if item]


class InternalError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "internal_error"


def api_exception_handler(exc, context):
    """
    Render domain errors as ``{"error": ..., "details": ...}`` and hide the
    detail of unexpected failures unless DEBUG is on.
    """

    if isinstance(exc, DomainError):
        payload = {"error": str(exc.detail)}
        if isinstance(exc, PaymentRejected) and exc.details:
            payload["details"] = ", ".join(exc.details)
        if isinstance(exc, InternalError) and not settings.DEBUG:
            payload["error"] = InternalError.default_detail
        return Response(payload, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception(
        "Unhandled error in %s",
        view.__class__.__name__ if view is not None else "request",
    )
    payload = {"error": InternalError.default_detail}
    if settings.DEBUG:
        payload["details"] = str(exc)
    return Response(payload, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
