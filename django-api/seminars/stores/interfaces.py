"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from seminars.domain import (
    AttendanceStatus,
    Coupon,
    Order,
    OrderItem,
    Participant,
    PaymentMethod,
    PriceBreakdown,
    Session,
)


class CatalogStore(ABC):
    """Interface for reading seminar sessions and their ticket types."""

    @abstractmethod
    def get_session(self, session_id: str) -> Session | None:
        """Return a session with its ticket types, or None if not found."""
        ...

    @abstractmethod
    def reserved_quantity(self, ticket_type_id: str) -> int:
        """Return how many tickets of a type are held by PENDING or PAID orders."""
        ...

    @abstractmethod
    def registered_emails(self, session_id: str, emails: Sequence[str]) -> set[str]:
        """Return the lower-cased subset of ``emails`` already registered for a session.

        Only participants on PENDING or PAID orders count. Matching ignores case.
        """
        ...


class CouponStore(ABC):
    """Interface for coupon persistence operations."""

    @abstractmethod
    def list_coupons(self) -> list[Coupon]:
        """Return all coupons ordered by created_at descending."""
        ...

    @abstractmethod
    def get_coupon(self, coupon_id: str) -> Coupon | None:
        ...

    @abstractmethod
    def get_coupon_by_code(self, code: str) -> Coupon | None:
        """Return the coupon for an upper-cased code, or None."""
        ...

    @abstractmethod
    def code_exists(self, code: str, exclude_id: str | None = None) -> bool:
        ...

    @abstractmethod
    def create_coupon(self, coupon: Coupon) -> Coupon:
        """Persist a new coupon and return it with its id set."""
        ...

    @abstractmethod
    def update_coupon(self, coupon: Coupon) -> Coupon:
        """Persist every field of an existing coupon except usage_count."""
        ...

    @abstractmethod
    def is_referenced(self, coupon_id: str) -> bool:
        """Return True if any order, whatever its status, was placed with the coupon."""
        ...

    @abstractmethod
    def delete_coupon(self, coupon_id: str) -> None:
        """Delete a coupon. Raises CouponInUseError if orders still reference it."""
        ...

    @abstractmethod
    def try_redeem(self, coupon_id: str) -> bool:
        """Atomically increment usage_count if the coupon is active and below its limit.

        Returns False when the increment did not happen.
        """
        ...


class OrderStore(ABC):
    """Interface for order persistence operations."""

    @abstractmethod
    def create_order(
        self,
        session_id: str,
        email: str,
        name: str,
        items: Sequence[OrderItem],
        breakdown: PriceBreakdown,
        coupon_id: str | None,
        payment_method: PaymentMethod,
        participants: Sequence[tuple[str, str]],
    ) -> Order:
        """Create a PENDING order with its items and (name, email) participants."""
        ...

    @abstractmethod
    def get_order(self, order_id: str) -> Order | None:
        ...

    @abstractmethod
    def attach_provider_session(
        self, order_id: str, provider_session_id: str, payment_method: PaymentMethod
    ) -> None:
        ...

    @abstractmethod
    def mark_paid(self, order_id: str, paid_at: datetime) -> bool:
        """Move a PENDING order to PAID. Returns False if it was not pending."""
        ...


class ParticipantStore(ABC):
    """Interface for participant attendance and the check-in audit trail."""

    @abstractmethod
    def get_participant(self, participant_id: str) -> Participant | None:
        ...

    @abstractmethod
    def first_unchecked_participant(self, order_id: str) -> Participant | None:
        """Return the first participant of an order not yet checked in."""
        ...

    @abstractmethod
    def transition_attendance(
        self,
        participant_id: str,
        from_status: AttendanceStatus,
        to_status: AttendanceStatus,
        operator_id: int | None,
        at: datetime,
    ) -> bool:
        """Conditionally change attendance. Returns False if the current status differs."""
        ...

    @abstractmethod
    def record_check_in_log(
        self,
        participant: Participant,
        action: str,
        operator_id: int | None,
        ip_address: str | None,
        user_agent: str,
    ) -> None:
        ...
