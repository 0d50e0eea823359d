"""Domain models representing persisted and computed state.

These are pure domain objects with no API input rules.
Django ORM models are in seminars/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from seminars.domain.errors import InapplicableReason, InvalidCouponError
from seminars.domain.value_objects import Money, Quantity, TaxRate


class DiscountType(Enum):
    AMOUNT = "AMOUNT"
    PERCENTAGE = "PERCENTAGE"


class SessionStatus(Enum):
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class OrderStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class AttendanceStatus(Enum):
    NOT_CHECKED_IN = "NOT_CHECKED_IN"
    CHECKED_IN = "CHECKED_IN"


class PaymentMethod(Enum):
    CREDIT_CARD = "CREDIT_CARD"
    KONBINI = "KONBINI"
    PAYPAY = "PAYPAY"
    BANK_TRANSFER = "BANK_TRANSFER"


class QRKind(Enum):
    PARTICIPANT = "participant"
    ORDER = "order"


@dataclass(frozen=True)
class OrderItem:
    """One ticket-type selection within an order. Amounts are in yen."""

    ticket_type_id: str
    quantity: int
    unit_price: int
    tax_rate_percent: int

    def __post_init__(self) -> None:
        Quantity(self.quantity)
        Money(self.unit_price)
        TaxRate(self.tax_rate_percent)


@dataclass(frozen=True)
class Coupon:
    """Discount rule identified by a redemption code.

    Construction validates the definition itself; whether the coupon applies
    to a given order at a given time is decided by the pricing engine.
    """

    code: str
    discount_type: DiscountType
    discount_value: int
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = None
    usage_count: int = 0
    min_amount: int | None = None
    is_active: bool = True
    name: str = ""
    id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.code, str) or not self.code.strip():
            raise InvalidCouponError("Coupon code is required")
        object.__setattr__(self, "code", self.code.strip().upper())

        if not isinstance(self.discount_type, DiscountType):
            raise InvalidCouponError("Unknown discount type")
        if not _is_int(self.discount_value) or self.discount_value <= 0:
            raise InvalidCouponError("Discount value must be a positive integer")
        if self.discount_type is DiscountType.PERCENTAGE and self.discount_value > 100:
            raise InvalidCouponError("Percentage discount cannot exceed 100%")
        if self.valid_from >= self.valid_until:
            raise InvalidCouponError("valid_until must be later than valid_from")
        if self.usage_limit is not None and (not _is_int(self.usage_limit) or self.usage_limit <= 0):
            raise InvalidCouponError("Usage limit must be a positive integer")
        if not _is_int(self.usage_count) or self.usage_count < 0:
            raise InvalidCouponError("Usage count cannot be negative")
        if self.min_amount is not None and (not _is_int(self.min_amount) or self.min_amount < 0):
            raise InvalidCouponError("Minimum amount cannot be negative")


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class LineAmount:
    subtotal: int
    tax: int


@dataclass(frozen=True)
class PriceBreakdown:
    """Authoritative price of an order."""

    subtotal: int
    discount: int
    tax: int
    total: int
    coupon_rejection: InapplicableReason | None = None

    def __post_init__(self) -> None:
        for name in ("subtotal", "discount", "tax", "total"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.discount > self.subtotal:
            raise ValueError("Discount cannot exceed subtotal")


@dataclass(frozen=True)
class QRPayload:
    """Decoded content of a check-in code."""

    kind: QRKind
    subject_id: str
    session_id: str
    issued_at_epoch_ms: int


@dataclass(frozen=True)
class TicketType:
    """Domain representation of a TicketType."""

    id: str
    session_id: str
    name: str
    price: int
    tax_rate_percent: int
    max_per_order: int
    stock: int | None = None
    is_active: bool = True


@dataclass(frozen=True)
class Session:
    """Domain representation of a seminar Session."""

    id: str
    seminar_title: str
    starts_at: datetime
    status: SessionStatus
    capacity: int
    ticket_types: tuple[TicketType, ...] = ()


@dataclass(frozen=True)
class Order:
    """Domain representation of an Order."""

    id: str
    order_number: str
    session_id: str
    email: str
    name: str
    status: OrderStatus
    items: tuple[OrderItem, ...]
    subtotal: int
    discount: int
    tax: int
    total: int
    coupon_id: str | None = None
    payment_method: PaymentMethod | None = None
    provider_session_id: str | None = None


@dataclass(frozen=True)
class Participant:
    """Domain representation of a Participant."""

    id: str
    order_id: str
    session_id: str
    name: str
    email: str
    order_status: OrderStatus
    attendance: AttendanceStatus
    checked_in_at: datetime | None = None


@dataclass(frozen=True)
class CheckoutSession:
    """Payment-provider handoff for one pending payment attempt."""

    session_id: str
    session_url: str
