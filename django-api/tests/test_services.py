"""Unit tests for the coupon, checkout and check-in services.

These test orchestration and domain error mapping against in-memory stores.
Run with: pytest tests/test_services.py -v
"""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from fakes import FakeCatalogStore, FakeCouponStore, FakeGateway, FakeOrderStore, FakeParticipantStore
from seminars.domain import (
    AttendanceStatus,
    Coupon,
    DiscountType,
    Order,
    OrderItem,
    OrderStatus,
    Participant,
    PaymentMethod,
    Session,
    SessionStatus,
    TicketType,
)
from seminars.domain import qr
from seminars.domain.errors import (
    CouponInapplicable,
    CouponInUseError,
    CouponNotFoundError,
    DuplicateCouponCodeError,
    InapplicableReason,
    InvalidCheckInCodeError,
    InvalidCheckInTransitionError,
    InvalidCouponError,
    InvalidInputError,
    OrderNotFoundError,
    OrderNotPaidError,
    OrderNotPendingError,
    ParticipantNotFoundError,
    PriceMismatchError,
    SessionNotFoundError,
    TicketTypeNotFoundError,
)
from seminars.services.checkin_service import CheckInService
from seminars.services.checkout_service import CheckoutService, TicketSelection
from seminars.services.coupon_service import CouponService

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_coupon(**overrides) -> Coupon:
    fields = dict(
        id="c-save",
        code="SAVE500",
        discount_type=DiscountType.AMOUNT,
        discount_value=500,
        valid_from=NOW - timedelta(days=1),
        valid_until=NOW + timedelta(days=1),
        min_amount=1000,
    )
    fields.update(overrides)
    return Coupon(**fields)


def make_session(**overrides) -> Session:
    fields = dict(
        id="s1",
        seminar_title="Python for Finance",
        starts_at=NOW + timedelta(days=7),
        status=SessionStatus.SCHEDULED,
        capacity=50,
        ticket_types=(
            TicketType(id="t1", session_id="s1", name="General", price=1000, tax_rate_percent=10, max_per_order=5),
            TicketType(
                id="t2", session_id="s1", name="Student", price=500, tax_rate_percent=10, max_per_order=5, stock=1
            ),
            TicketType(
                id="t3", session_id="s1", name="Legacy", price=800, tax_rate_percent=10, max_per_order=5, is_active=False
            ),
        ),
    )
    fields.update(overrides)
    return Session(**fields)


@pytest.fixture
def coupon_store():
    return FakeCouponStore(make_coupon())


@pytest.fixture
def order_store():
    return FakeOrderStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def catalog():
    return FakeCatalogStore(make_session())


@pytest.fixture
def checkout(catalog, coupon_store, order_store, gateway):
    return CheckoutService(
        catalog=catalog,
        orders=order_store,
        coupons=CouponService(coupon_store),
        gateway=gateway,
    )


def place_order(checkout, coupon_code=None):
    return checkout.create_order(
        session_id="s1",
        email="buyer@example.com",
        name="Buyer",
        selections=[TicketSelection("t1", 3)],
        participants=[("A", "a@example.com"), ("B", "b@example.com"), ("C", "c@example.com")],
        payment_method=PaymentMethod.CREDIT_CARD,
        coupon_code=coupon_code,
        now=NOW,
    )


class TestCouponService:
    """Tests for CouponService."""

    def test_get_coupon_not_found_raises_error(self, coupon_store):
        with pytest.raises(CouponNotFoundError):
            CouponService(coupon_store).get_coupon("missing")

    def test_create_coupon_resets_usage_count(self):
        service = CouponService(FakeCouponStore())
        created = service.create_coupon(make_coupon(id=None, usage_count=4))
        assert created.id is not None
        assert created.usage_count == 0

    def test_create_duplicate_code_raises_error(self, coupon_store):
        with pytest.raises(DuplicateCouponCodeError):
            CouponService(coupon_store).create_coupon(make_coupon(id=None, code="save500"))

    def test_update_revalidates_merged_coupon(self, coupon_store):
        service = CouponService(coupon_store)
        with pytest.raises(InvalidCouponError):
            service.update_coupon("c-save", {"discount_type": DiscountType.PERCENTAGE, "discount_value": 150})

    def test_update_ignores_usage_count(self, coupon_store):
        updated = CouponService(coupon_store).update_coupon("c-save", {"usage_count": 99, "name": "Summer"})
        assert updated.usage_count == 0
        assert updated.name == "Summer"

    def test_update_to_taken_code_raises_error(self, coupon_store):
        coupon_store.create_coupon(make_coupon(id=None, code="OTHER1"))
        with pytest.raises(DuplicateCouponCodeError):
            CouponService(coupon_store).update_coupon("c-save", {"code": "other1"})

    def test_delete_used_coupon_raises_error(self):
        service = CouponService(FakeCouponStore(make_coupon(usage_count=1)))
        with pytest.raises(CouponInUseError):
            service.delete_coupon("c-save")

    def test_delete_coupon_on_pending_order_raises_error(self, coupon_store):
        coupon_store.referenced.add("c-save")
        with pytest.raises(CouponInUseError):
            CouponService(coupon_store).delete_coupon("c-save")
        assert "c-save" in coupon_store.coupons

    def test_delete_unused_coupon(self, coupon_store):
        CouponService(coupon_store).delete_coupon("c-save")
        assert coupon_store.coupons == {}

    def test_redeem_stops_at_usage_limit(self):
        store = FakeCouponStore(make_coupon(usage_limit=1))
        service = CouponService(store)
        service.redeem("c-save")
        with pytest.raises(CouponInapplicable) as exc_info:
            service.redeem("c-save")
        assert exc_info.value.reason is InapplicableReason.USAGE_LIMIT_REACHED
        assert store.coupons["c-save"].usage_count == 1


class TestCheckoutQuote:
    """Tests for CheckoutService.quote."""

    def test_quote_without_coupon(self, checkout):
        quote = checkout.quote("s1", [TicketSelection("t1", 3)], now=NOW)
        assert quote.breakdown.total == 3300
        assert quote.coupon is None

    def test_quote_with_coupon_code_in_lower_case(self, checkout):
        quote = checkout.quote("s1", [TicketSelection("t1", 3)], coupon_code="save500", now=NOW)
        assert quote.breakdown.total == 2800
        assert quote.coupon.id == "c-save"

    def test_unknown_coupon_is_a_soft_rejection(self, checkout):
        quote = checkout.quote("s1", [TicketSelection("t1", 3)], coupon_code="NOPE1234", now=NOW)
        assert quote.breakdown.total == 3300
        assert quote.breakdown.coupon_rejection is InapplicableReason.NOT_FOUND

    def test_inapplicable_coupon_is_not_attached(self, checkout):
        quote = checkout.quote("s1", [TicketSelection("t2", 1)], coupon_code="SAVE500", now=NOW)
        assert quote.coupon is None
        assert quote.breakdown.coupon_rejection is InapplicableReason.BELOW_MINIMUM

    def test_unknown_session_raises_error(self, checkout):
        with pytest.raises(SessionNotFoundError):
            checkout.quote("missing", [TicketSelection("t1", 1)], now=NOW)

    def test_unknown_ticket_type_raises_error(self, checkout):
        with pytest.raises(TicketTypeNotFoundError):
            checkout.quote("s1", [TicketSelection("tX", 1)], now=NOW)

    @pytest.mark.parametrize(
        "selections",
        [
            [],
            [TicketSelection("t1", 6)],
            [TicketSelection("t2", 2)],
            [TicketSelection("t3", 1)],
            [TicketSelection("t1", 1), TicketSelection("t1", 1)],
            [TicketSelection("t1", 0)],
        ],
    )
    def test_disallowed_selection_raises_error(self, checkout, selections):
        with pytest.raises(InvalidInputError):
            checkout.quote("s1", selections, now=NOW)

    def test_stock_counts_tickets_held_by_other_orders(self, checkout, catalog):
        catalog.reserved["t2"] = 1
        with pytest.raises(InvalidInputError, match="Not enough Student"):
            checkout.quote("s1", [TicketSelection("t2", 1)], now=NOW)

    def test_unlimited_stock_ignores_reservations(self, checkout, catalog):
        catalog.reserved["t1"] = 1000
        quote = checkout.quote("s1", [TicketSelection("t1", 5)], now=NOW)
        assert quote.breakdown.subtotal == 5000

    def test_cancelled_session_raises_error(self, coupon_store, order_store, gateway):
        service = CheckoutService(
            FakeCatalogStore(make_session(status=SessionStatus.CANCELLED)),
            order_store,
            CouponService(coupon_store),
            gateway,
        )
        with pytest.raises(InvalidInputError):
            service.quote("s1", [TicketSelection("t1", 1)], now=NOW)

    def test_started_session_raises_error(self, checkout):
        with pytest.raises(InvalidInputError):
            checkout.quote("s1", [TicketSelection("t1", 1)], now=NOW + timedelta(days=8))


class TestCheckoutOrders:
    """Tests for order creation, checkout sessions and completion."""

    def test_create_order_stores_server_price(self, checkout, order_store):
        order = place_order(checkout, coupon_code="SAVE500")
        assert order.total == 2800
        assert order.coupon_id == "c-save"
        assert len(order_store.participants) == 3

    def test_participant_count_must_match_tickets(self, checkout):
        with pytest.raises(InvalidInputError):
            checkout.create_order(
                session_id="s1",
                email="buyer@example.com",
                name="Buyer",
                selections=[TicketSelection("t1", 2)],
                participants=[("A", "a@example.com")],
                payment_method=PaymentMethod.KONBINI,
                now=NOW,
            )

    def test_participant_emails_must_differ(self, checkout):
        with pytest.raises(InvalidInputError):
            checkout.create_order(
                session_id="s1",
                email="buyer@example.com",
                name="Buyer",
                selections=[TicketSelection("t1", 2)],
                participants=[("A", "a@example.com"), ("B", "A@example.com")],
                payment_method=PaymentMethod.KONBINI,
                now=NOW,
            )

    def test_participant_registered_by_another_order_raises_error(self, checkout, catalog, order_store):
        catalog.registered["s1"] = {"b@example.com"}
        with pytest.raises(InvalidInputError, match="b@example.com is already registered"):
            place_order(checkout)
        assert order_store.orders == {}

    def test_checkout_session_for_matching_amount(self, checkout, order_store, gateway):
        order = place_order(checkout, coupon_code="SAVE500")
        session = checkout.create_checkout_session(order.id, 2800, PaymentMethod.PAYPAY, now=NOW)
        assert session.session_id == "ks_1"
        assert gateway.calls[0]["amount"] == 2800
        assert order_store.orders[order.id].provider_session_id == "ks_1"

    def test_asserted_amount_mismatch_never_contacts_provider(self, checkout, gateway):
        order = place_order(checkout)
        with pytest.raises(PriceMismatchError) as exc_info:
            checkout.create_checkout_session(order.id, 100, PaymentMethod.CREDIT_CARD, now=NOW)
        assert exc_info.value.expected == 3300
        assert gateway.calls == []

    def test_tampered_stored_total_is_rejected(self, checkout, order_store, gateway):
        order = place_order(checkout)
        order_store.orders[order.id] = dataclasses.replace(order, total=1)
        with pytest.raises(PriceMismatchError):
            checkout.create_checkout_session(order.id, 1, PaymentMethod.CREDIT_CARD, now=NOW)
        assert gateway.calls == []

    def test_checkout_unknown_order_raises_error(self, checkout):
        with pytest.raises(OrderNotFoundError):
            checkout.create_checkout_session("missing", 100, PaymentMethod.CREDIT_CARD, now=NOW)

    def test_checkout_paid_order_raises_error(self, checkout):
        order = place_order(checkout)
        checkout.complete_order(order.id, now=NOW)
        with pytest.raises(OrderNotPendingError):
            checkout.create_checkout_session(order.id, 3300, PaymentMethod.CREDIT_CARD, now=NOW)

    def test_complete_order_redeems_coupon_once(self, checkout, coupon_store):
        order = place_order(checkout, coupon_code="SAVE500")
        completed = checkout.complete_order(order.id, now=NOW)
        assert completed.status is OrderStatus.PAID
        assert coupon_store.coupons["c-save"].usage_count == 1
        with pytest.raises(OrderNotPendingError):
            checkout.complete_order(order.id, now=NOW)
        assert coupon_store.coupons["c-save"].usage_count == 1

    def test_complete_order_survives_lost_redemption_race(self, checkout, coupon_store):
        order = place_order(checkout, coupon_code="SAVE500")
        coupon_store.coupons["c-save"] = dataclasses.replace(
            coupon_store.coupons["c-save"], usage_limit=1, usage_count=1
        )
        assert checkout.complete_order(order.id, now=NOW).status is OrderStatus.PAID


def make_participant(**overrides) -> Participant:
    fields = dict(
        id="p1",
        order_id="o1",
        session_id="s1",
        name="Hanako",
        email="hanako@example.com",
        order_status=OrderStatus.PAID,
        attendance=AttendanceStatus.NOT_CHECKED_IN,
    )
    fields.update(overrides)
    return Participant(**fields)


def make_order(**overrides) -> Order:
    fields = dict(
        id="o1",
        order_number="ORD250601AAAAAA",
        session_id="s1",
        email="buyer@example.com",
        name="Buyer",
        status=OrderStatus.PAID,
        items=(OrderItem(ticket_type_id="t1", quantity=1, unit_price=1000, tax_rate_percent=10),),
        subtotal=1000,
        discount=0,
        tax=100,
        total=1100,
    )
    fields.update(overrides)
    return Order(**fields)


class TestCheckInService:
    """Tests for CheckInService."""

    @pytest.fixture
    def participants(self):
        return FakeParticipantStore(
            make_participant(),
            make_participant(id="p2", name="Taro", email="taro@example.com"),
            make_participant(id="p9", order_id="o9", order_status=OrderStatus.PENDING),
        )

    @pytest.fixture
    def service(self, participants):
        return CheckInService(participants, FakeOrderStore(make_order(), make_order(id="o9", status=OrderStatus.PENDING)))

    def test_scan_participant_code_checks_in(self, service, participants):
        code = service.issue_participant_code("p1", now=NOW)
        result = service.scan(code, operator_id=7, now=NOW + timedelta(hours=1))
        assert result.attendance is AttendanceStatus.CHECKED_IN
        assert participants.logs == [("p1", "CHECK_IN", 7)]

    def test_scan_twice_raises_transition_error(self, service, participants):
        code = service.issue_participant_code("p1", now=NOW)
        service.scan(code, operator_id=7, now=NOW)
        with pytest.raises(InvalidCheckInTransitionError):
            service.scan(code, operator_id=7, now=NOW)
        assert len(participants.logs) == 1

    def test_scan_order_code_checks_in_next_participant(self, service):
        code = service.issue_order_code("o1", now=NOW)
        first = service.scan(code, operator_id=7, now=NOW)
        second = service.scan(code, operator_id=7, now=NOW)
        assert {first.id, second.id} == {"p1", "p2"}
        with pytest.raises(InvalidCheckInTransitionError):
            service.scan(code, operator_id=7, now=NOW)

    @pytest.mark.parametrize(
        "code",
        [
            "garbage",
            qr.encode("participant", "p1", "s1", issued_at=NOW - timedelta(hours=25)),
            qr.encode("participant", "unknown", "s1", issued_at=NOW),
            qr.encode("participant", "p1", "other-session", issued_at=NOW),
            qr.encode("order", "unknown", "s1", issued_at=NOW),
        ],
    )
    def test_bad_codes_raise_generic_error(self, service, code):
        with pytest.raises(InvalidCheckInCodeError):
            service.scan(code, operator_id=7, now=NOW)

    def test_scan_for_other_selected_session_raises_error(self, service):
        code = service.issue_participant_code("p1", now=NOW)
        with pytest.raises(InvalidCheckInCodeError):
            service.scan(code, operator_id=7, session_id="s2", now=NOW)

    def test_unpaid_participant_raises_error(self, service):
        code = qr.encode("participant", "p9", "s1", issued_at=NOW)
        with pytest.raises(OrderNotPaidError):
            service.scan(code, operator_id=7, now=NOW)

    def test_unpaid_order_code_raises_error(self, service):
        code = service.issue_order_code("o9", now=NOW)
        with pytest.raises(OrderNotPaidError):
            service.scan(code, operator_id=7, now=NOW)

    def test_undo_check_in(self, service, participants):
        service.check_in("p1", operator_id=7, now=NOW)
        result = service.undo_check_in("p1", operator_id=7, now=NOW)
        assert result.attendance is AttendanceStatus.NOT_CHECKED_IN
        assert result.checked_in_at is None
        assert [action for _, action, _ in participants.logs] == ["CHECK_IN", "UNDO"]

    def test_undo_without_check_in_raises_error(self, service):
        with pytest.raises(InvalidCheckInTransitionError):
            service.undo_check_in("p1", operator_id=7, now=NOW)

    def test_unknown_participant_raises_error(self, service):
        with pytest.raises(ParticipantNotFoundError):
            service.check_in("missing", operator_id=7, now=NOW)

    def test_issue_code_for_unknown_order_raises_error(self, service):
        with pytest.raises(OrderNotFoundError):
            service.issue_order_code("missing", now=NOW)
