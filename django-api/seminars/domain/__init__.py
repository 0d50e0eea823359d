from seminars.domain.models import (
    AttendanceStatus,
    CheckoutSession,
    Coupon,
    DiscountType,
    LineAmount,
    Order,
    OrderItem,
    OrderStatus,
    Participant,
    PaymentMethod,
    PriceBreakdown,
    QRKind,
    QRPayload,
    Session,
    SessionStatus,
    TicketType,
)
from seminars.domain.value_objects import Money, OrderId, ParticipantId, Quantity, SessionId, TaxRate, TicketTypeId

__all__ = [
    "AttendanceStatus",
    "CheckoutSession",
    "Coupon",
    "DiscountType",
    "LineAmount",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Participant",
    "PaymentMethod",
    "PriceBreakdown",
    "QRKind",
    "QRPayload",
    "Session",
    "SessionStatus",
    "TicketType",
    "Money",
    "OrderId",
    "ParticipantId",
    "Quantity",
    "SessionId",
    "TaxRate",
    "TicketTypeId",
]
