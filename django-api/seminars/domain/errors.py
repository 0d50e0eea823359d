"""Domain error codes for the seminars module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_COUPON = "INVALID_COUPON"
    COUPON_INAPPLICABLE = "COUPON_INAPPLICABLE"
    COUPON_NOT_FOUND = "COUPON_NOT_FOUND"
    COUPON_IN_USE = "COUPON_IN_USE"
    DUPLICATE_COUPON_CODE = "DUPLICATE_COUPON_CODE"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
    EXPIRED_PAYLOAD = "EXPIRED_PAYLOAD"
    INVALID_CHECKIN_CODE = "INVALID_CHECKIN_CODE"
    INVALID_CHECKIN_TRANSITION = "INVALID_CHECKIN_TRANSITION"
    PRICE_MISMATCH = "PRICE_MISMATCH"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_NOT_PENDING = "ORDER_NOT_PENDING"
    ORDER_NOT_PAID = "ORDER_NOT_PAID"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    TICKET_TYPE_NOT_FOUND = "TICKET_TYPE_NOT_FOUND"
    PARTICIPANT_NOT_FOUND = "PARTICIPANT_NOT_FOUND"
    PAYMENT_PROVIDER_ERROR = "PAYMENT_PROVIDER_ERROR"


class InapplicableReason(Enum):
    """Why an otherwise valid coupon does not apply to an order right now."""

    INACTIVE = "INACTIVE"
    NOT_YET_VALID = "NOT_YET_VALID"
    EXPIRED = "EXPIRED"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    USAGE_LIMIT_REACHED = "USAGE_LIMIT_REACHED"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInputError(DomainError):
    """Raised for malformed or out-of-range numeric input."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)


class InvalidCouponError(DomainError):
    """Raised when a coupon definition is internally inconsistent."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_COUPON, message=message)


class CouponInapplicable(DomainError):
    """Coupon exists but does not apply; callers continue without a discount."""

    def __init__(self, reason: InapplicableReason) -> None:
        super().__init__(
            code=ErrorCode.COUPON_INAPPLICABLE,
            message="Coupon cannot be applied to this order",
        )
        self.reason = reason


class CouponNotFoundError(DomainError):
    """Raised when a coupon is not found."""

    def __init__(self, coupon_ref: str) -> None:
        super().__init__(code=ErrorCode.COUPON_NOT_FOUND, message="Coupon not found")
        self.coupon_ref = coupon_ref


class CouponInUseError(DomainError):
    """Raised when deleting a coupon that has already been redeemed."""

    def __init__(self, coupon_id: str) -> None:
        super().__init__(
            code=ErrorCode.COUPON_IN_USE,
            message="A coupon that has been used cannot be deleted",
        )
        self.coupon_id = coupon_id


class DuplicateCouponCodeError(DomainError):
    """Raised when a coupon code is already taken."""

    def __init__(self, code: str) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_COUPON_CODE,
            message="This coupon code is already in use",
        )
        self.coupon_code = code


class MalformedPayload(DomainError):
    """Raised when a scanned code cannot be decoded."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.MALFORMED_PAYLOAD, message="Malformed QR payload")


class ExpiredPayload(DomainError):
    """Raised when a scanned code is older than its validity window."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.EXPIRED_PAYLOAD, message="Expired QR payload")


class InvalidCheckInCodeError(DomainError):
    """Generic scan failure shown to operators."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_CHECKIN_CODE,
            message="Invalid or expired code",
        )


class InvalidCheckInTransitionError(DomainError):
    """Raised when checking in twice or undoing a missing check-in."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_CHECKIN_TRANSITION, message=message)


class PriceMismatchError(DomainError):
    """Raised when a charged amount differs from the server-computed total."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(code=ErrorCode.PRICE_MISMATCH, message="Amount does not match")
        self.expected = expected
        self.actual = actual


class OrderNotFoundError(DomainError):
    """Raised when an order is not found."""

    def __init__(self, order_id: str) -> None:
        super().__init__(code=ErrorCode.ORDER_NOT_FOUND, message="Order not found")
        self.order_id = order_id


class OrderNotPendingError(DomainError):
    """Raised when an order has already been processed."""

    def __init__(self, order_id: str) -> None:
        super().__init__(
            code=ErrorCode.ORDER_NOT_PENDING,
            message="This order has already been processed",
        )
        self.order_id = order_id


class OrderNotPaidError(DomainError):
    """Raised when checking in a participant whose order is unpaid."""

    def __init__(self, order_id: str) -> None:
        super().__init__(
            code=ErrorCode.ORDER_NOT_PAID,
            message="Payment has not been completed for this participant",
        )
        self.order_id = order_id


class SessionNotFoundError(DomainError):
    """Raised when a seminar session is not found."""

    def __init__(self, session_id: str) -> None:
        super().__init__(code=ErrorCode.SESSION_NOT_FOUND, message="Session not found")
        self.session_id = session_id


class TicketTypeNotFoundError(DomainError):
    """Raised when a ticket type is not offered for a session."""

    def __init__(self, ticket_type_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_TYPE_NOT_FOUND,
            message="Ticket type not found",
        )
        self.ticket_type_id = ticket_type_id


class ParticipantNotFoundError(DomainError):
    """Raised when a participant is not found."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(
            code=ErrorCode.PARTICIPANT_NOT_FOUND,
            message="Participant not found",
        )
        self.participant_id = participant_id


class PaymentProviderError(DomainError):
    """Raised when the payment provider rejects or cannot be reached."""

    def __init__(self, status: int | None = None) -> None:
        super().__init__(
            code=ErrorCode.PAYMENT_PROVIDER_ERROR,
            message="Failed to create the payment session",
        )
        self.status = status
