"""Mapping of domain errors to HTTP responses."""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from seminars.domain.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    ErrorCode.COUPON_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PARTICIPANT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.COUPON_IN_USE: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_COUPON_CODE: status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_PROVIDER_ERROR: status.HTTP_502_BAD_GATEWAY,
}

# Scan failures all look the same to the operator.
_GENERIC_SCAN_CODES = {ErrorCode.MALFORMED_PAYLOAD, ErrorCode.EXPIRED_PAYLOAD}


def domain_error_response(exc: DomainError) -> Response:
    code, message = exc.code, exc.message
    if code in _GENERIC_SCAN_CODES:
        code, message = ErrorCode.INVALID_CHECKIN_CODE, "Invalid or expired code"
    return Response(
        {"error": {"code": code.value, "message": message}},
        status=_STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
    )


def exception_handler(exc, context):
    """DRF exception handler that understands domain errors."""
    if isinstance(exc, DomainError):
        logger.info(
            "Request rejected",
            extra={"extra_data": {"code": exc.code.value, "view": type(context.get("view")).__name__}},
        )
        return domain_error_response(exc)
    return drf_exception_handler(exc, context)
