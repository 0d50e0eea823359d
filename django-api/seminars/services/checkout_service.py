"""Checkout service - pricing orchestration and payment handoff.

Totals are always computed on the server from stored prices. A client-asserted
amount is only ever compared against that computation, never trusted.
"""

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from seminars.domain import (
    Coupon,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PriceBreakdown,
    Session,
    SessionStatus,
)
from seminars.domain.errors import (
    CouponInapplicable,
    CouponNotFoundError,
    InapplicableReason,
    InvalidInputError,
    OrderNotFoundError,
    OrderNotPendingError,
    PriceMismatchError,
    SessionNotFoundError,
    TicketTypeNotFoundError,
)
from seminars.domain.models import CheckoutSession
from seminars.domain.pricing import compute_order_total
from seminars.gateways.komoju import PaymentGateway
from seminars.services.coupon_service import CouponService
from seminars.stores.interfaces import CatalogStore, OrderStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TicketSelection:
    ticket_type_id: str
    quantity: int


@dataclass(frozen=True)
class Quote:
    """A priced selection. ``coupon`` is set only if it was applied."""

    session: Session
    items: tuple[OrderItem, ...]
    coupon: Coupon | None
    breakdown: PriceBreakdown


class CheckoutService:
    """Service for quoting, ordering and starting payment."""

    def __init__(
        self,
        catalog: CatalogStore,
        orders: OrderStore,
        coupons: CouponService,
        gateway: PaymentGateway,
    ) -> None:
        self._catalog = catalog
        self._orders = orders
        self._coupons = coupons
        self._gateway = gateway

    def quote(
        self,
        session_id: str,
        selections: Sequence[TicketSelection],
        coupon_code: str | None = None,
        now: datetime | None = None,
    ) -> Quote:
        """Price ticket selections for a session.

        An unknown or inapplicable coupon code is reported on
        ``breakdown.coupon_rejection`` and does not fail the quote.

        Raises:
            SessionNotFoundError: If the session does not exist.
            TicketTypeNotFoundError: If a ticket type is not offered for the session.
            InvalidInputError: If the session is closed or a selection is not allowed.
        """
        now = now or timezone.now()
        session = self._catalog.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.status is not SessionStatus.SCHEDULED:
            raise InvalidInputError("This session is not accepting registrations")
        if session.starts_at <= now:
            raise InvalidInputError("This session has already started")

        items = self._build_items(session, selections)

        coupon = None
        not_found = False
        if coupon_code:
            try:
                coupon = self._coupons.find_by_code(coupon_code)
            except CouponNotFoundError:
                not_found = True

        breakdown = compute_order_total(items, coupon, now)
        if not_found:
            breakdown = dataclasses.replace(breakdown, coupon_rejection=InapplicableReason.NOT_FOUND)
        if breakdown.coupon_rejection is not None:
            logger.info(
                "Coupon not applied",
                extra={"extra_data": {"session_id": session_id, "reason": breakdown.coupon_rejection.value}},
            )
            coupon = None

        return Quote(session=session, items=items, coupon=coupon, breakdown=breakdown)

    def _build_items(
        self, session: Session, selections: Sequence[TicketSelection]
    ) -> tuple[OrderItem, ...]:
        if not selections:
            raise InvalidInputError("Select at least one ticket")

        offered = {t.id: t for t in session.ticket_types}
        seen: set[str] = set()
        items = []
        for selection in selections:
            ticket_type = offered.get(selection.ticket_type_id)
            if ticket_type is None:
                raise TicketTypeNotFoundError(selection.ticket_type_id)
            if selection.ticket_type_id in seen:
                raise InvalidInputError("Each ticket type may only be selected once")
            seen.add(selection.ticket_type_id)

            item = OrderItem(
                ticket_type_id=ticket_type.id,
                quantity=selection.quantity,
                unit_price=ticket_type.price,
                tax_rate_percent=ticket_type.tax_rate_percent,
            )
            if not ticket_type.is_active:
                raise InvalidInputError(f"{ticket_type.name} is not on sale")
            if item.quantity > ticket_type.max_per_order:
                raise InvalidInputError(
                    f"{ticket_type.name} is limited to {ticket_type.max_per_order} per order"
                )
            if ticket_type.stock is not None:
                available = ticket_type.stock - self._catalog.reserved_quantity(ticket_type.id)
                if item.quantity > available:
                    raise InvalidInputError(f"Not enough {ticket_type.name} tickets left")
            items.append(item)
        return tuple(items)

    def create_order(
        self,
        session_id: str,
        email: str,
        name: str,
        selections: Sequence[TicketSelection],
        participants: Sequence[tuple[str, str]],
        payment_method: PaymentMethod,
        coupon_code: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a PENDING order priced by the server.

        ``participants`` holds one (name, email) pair per ticket.

        Raises:
            InvalidInputError: If the participant count differs from the ticket count,
                or for anything ``quote`` rejects.
        """
        quote = self.quote(session_id, selections, coupon_code, now)
        ticket_count = sum(item.quantity for item in quote.items)
        if len(participants) != ticket_count:
            raise InvalidInputError("Number of participants must match number of tickets")
        emails = [email_.lower() for _, email_ in participants]
        if len(set(emails)) != len(emails):
            raise InvalidInputError("Each participant needs a different email address")
        taken = self._catalog.registered_emails(quote.session.id, emails)
        if taken:
            raise InvalidInputError(f"{min(taken)} is already registered for this session")

        order = self._orders.create_order(
            session_id=quote.session.id,
            email=email,
            name=name,
            items=quote.items,
            breakdown=quote.breakdown,
            coupon_id=quote.coupon.id if quote.coupon else None,
            payment_method=payment_method,
            participants=participants,
        )
        logger.info(
            "Order created",
            extra={"extra_data": {"order_id": order.id, "order_number": order.order_number, "total": order.total}},
        )
        return order

    def price_order(self, order: Order, now: datetime | None = None) -> PriceBreakdown:
        """Recompute an order's breakdown from its stored lines and coupon."""
        coupon = self._coupons.get_coupon(order.coupon_id) if order.coupon_id else None
        return compute_order_total(order.items, coupon, now or timezone.now())

    def create_checkout_session(
        self,
        order_id: str,
        asserted_amount: int,
        payment_method: PaymentMethod,
        now: datetime | None = None,
    ) -> CheckoutSession:
        """Verify the amount and hand the order to the payment provider.

        Raises:
            OrderNotFoundError: If the order does not exist.
            OrderNotPendingError: If the order was already processed.
            PriceMismatchError: If the stored total or the asserted amount differs
                from the recomputed total. The provider is not contacted.
            PaymentProviderError: If the provider call fails.
        """
        order = self._orders.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.status is not OrderStatus.PENDING:
            raise OrderNotPendingError(order_id)

        expected = self.price_order(order, now).total
        if expected != order.total or asserted_amount != expected:
            logger.warning(
                "Checkout amount mismatch",
                extra={
                    "extra_data": {
                        "order_id": order_id,
                        "expected": expected,
                        "stored": order.total,
                        "asserted": asserted_amount,
                    }
                },
            )
            raise PriceMismatchError(expected=expected, actual=asserted_amount)

        checkout = self._gateway.create_session(
            amount=expected,
            payment_method=payment_method,
            external_order_num=order.order_number,
            metadata={"order_id": order.id, "session_id": order.session_id},
        )
        self._orders.attach_provider_session(order.id, checkout.session_id, payment_method)
        logger.info(
            "Checkout session created",
            extra={
                "extra_data": {
                    "order_id": order_id,
                    "provider_session_id": checkout.session_id,
                    "payment_method": payment_method.value,
                }
            },
        )
        return checkout

    def complete_order(self, order_id: str, now: datetime | None = None) -> Order:
        """Mark a pending order paid and count its coupon once.

        Raises:
            OrderNotFoundError: If the order does not exist.
            OrderNotPendingError: If the order was not pending.
        """
        order = self._orders.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not self._orders.mark_paid(order_id, now or timezone.now()):
            raise OrderNotPendingError(order_id)

        if order.coupon_id:
            try:
                self._coupons.redeem(order.coupon_id)
            except CouponInapplicable:
                # Payment already went through; the order keeps its discount.
                logger.warning(
                    "Coupon usage limit reached at completion",
                    extra={"extra_data": {"order_id": order_id, "coupon_id": order.coupon_id}},
                )

        logger.info("Order paid", extra={"extra_data": {"order_id": order_id}})
        return dataclasses.replace(order, status=OrderStatus.PAID)
