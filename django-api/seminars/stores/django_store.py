"""Django ORM implementations of the stores."""

import secrets
import string
import uuid
from collections.abc import Sequence
from datetime import datetime

from django.db import transaction
from django.db.models import F, ProtectedError, Q, Sum
from django.db.models.functions import Lower
from django.utils import timezone

from seminars import models
from seminars.domain import (
    AttendanceStatus,
    Coupon,
    DiscountType,
    Order,
    OrderItem,
    OrderStatus,
    Participant,
    PaymentMethod,
    PriceBreakdown,
    Session,
    SessionStatus,
    TicketType,
)
from seminars.domain.errors import CouponInUseError
from seminars.stores.interfaces import CatalogStore, CouponStore, OrderStore, ParticipantStore

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

# Orders in these states hold their tickets and their participants' seats.
_HOLDING_STATUSES = (models.Order.Status.PENDING, models.Order.Status.PAID)


def _parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def generate_order_number(now: datetime | None = None) -> str:
    """ORD + YYMMDD + six random characters."""
    now = timezone.localtime(now or timezone.now())
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(6))
    return f"ORD{now:%y%m%d}{suffix}"


def _to_coupon(row: models.Coupon) -> Coupon:
    return Coupon(
        id=str(row.id),
        code=row.code,
        name=row.name,
        discount_type=DiscountType(row.discount_type),
        discount_value=row.discount_value,
        usage_limit=row.usage_limit,
        usage_count=row.usage_count,
        valid_from=row.valid_from,
        valid_until=row.valid_until,
        min_amount=row.min_amount,
        is_active=row.is_active,
    )


def _to_ticket_type(row: models.TicketType) -> TicketType:
    return TicketType(
        id=str(row.id),
        session_id=str(row.session_id),
        name=row.name,
        price=row.price,
        tax_rate_percent=row.tax_rate_percent,
        max_per_order=row.max_per_order,
        stock=row.stock,
        is_active=row.is_active,
    )


def _to_order(row: models.Order) -> Order:
    return Order(
        id=str(row.id),
        order_number=row.order_number,
        session_id=str(row.session_id),
        email=row.email,
        name=row.name,
        status=OrderStatus(row.status),
        items=tuple(
            OrderItem(
                ticket_type_id=str(item.ticket_type_id),
                quantity=item.quantity,
                unit_price=item.unit_price,
                tax_rate_percent=item.tax_rate_percent,
            )
            for item in row.items.order_by("id")
        ),
        subtotal=row.subtotal,
        discount=row.discount,
        tax=row.tax,
        total=row.total,
        coupon_id=str(row.coupon_id) if row.coupon_id else None,
        payment_method=PaymentMethod(row.payment_method) if row.payment_method else None,
        provider_session_id=row.provider_session_id,
    )


def _to_participant(row: models.Participant) -> Participant:
    return Participant(
        id=str(row.id),
        order_id=str(row.order_id),
        session_id=str(row.order.session_id),
        name=row.name,
        email=row.email,
        order_status=OrderStatus(row.order.status),
        attendance=AttendanceStatus(row.attendance_status),
        checked_in_at=row.checked_in_at,
    )


class DjangoCatalogStore(CatalogStore):
    def get_session(self, session_id: str) -> Session | None:
        pk = _parse_uuid(session_id)
        if pk is None:
            return None
        row = (
            models.Session.objects.select_related("seminar")
            .prefetch_related("ticket_types")
            .filter(pk=pk)
            .first()
        )
        if row is None:
            return None
        return Session(
            id=str(row.id),
            seminar_title=row.seminar.title,
            starts_at=row.starts_at,
            status=SessionStatus(row.status),
            capacity=row.capacity,
            ticket_types=tuple(_to_ticket_type(t) for t in row.ticket_types.all()),
        )

    def reserved_quantity(self, ticket_type_id: str) -> int:
        pk = _parse_uuid(ticket_type_id)
        if pk is None:
            return 0
        reserved = models.OrderItem.objects.filter(
            ticket_type_id=pk, order__status__in=_HOLDING_STATUSES
        ).aggregate(total=Sum("quantity"))["total"]
        return reserved or 0

    def registered_emails(self, session_id: str, emails: Sequence[str]) -> set[str]:
        pk = _parse_uuid(session_id)
        if pk is None or not emails:
            return set()
        taken = (
            models.Participant.objects.filter(order__session_id=pk, order__status__in=_HOLDING_STATUSES)
            .annotate(email_lower=Lower("email"))
            .filter(email_lower__in={email.lower() for email in emails})
            .values_list("email_lower", flat=True)
        )
        return set(taken)


class DjangoCouponStore(CouponStore):
    """Coupon store using Django ORM."""

    def list_coupons(self) -> list[Coupon]:
        return [_to_coupon(row) for row in models.Coupon.objects.order_by("-created_at")]

    def get_coupon(self, coupon_id: str) -> Coupon | None:
        pk = _parse_uuid(coupon_id)
        if pk is None:
            return None
        row = models.Coupon.objects.filter(pk=pk).first()
        return _to_coupon(row) if row else None

    def get_coupon_by_code(self, code: str) -> Coupon | None:
        row = models.Coupon.objects.filter(code=code.strip().upper()).first()
        return _to_coupon(row) if row else None

    def code_exists(self, code: str, exclude_id: str | None = None) -> bool:
        qs = models.Coupon.objects.filter(code=code)
        if exclude_id is not None:
            qs = qs.exclude(pk=_parse_uuid(exclude_id))
        return qs.exists()

    def create_coupon(self, coupon: Coupon) -> Coupon:
        row = models.Coupon.objects.create(
            code=coupon.code,
            name=coupon.name,
            discount_type=coupon.discount_type.value,
            discount_value=coupon.discount_value,
            usage_limit=coupon.usage_limit,
            usage_count=coupon.usage_count,
            valid_from=coupon.valid_from,
            valid_until=coupon.valid_until,
            min_amount=coupon.min_amount,
            is_active=coupon.is_active,
        )
        return _to_coupon(row)

    def update_coupon(self, coupon: Coupon) -> Coupon:
        pk = _parse_uuid(coupon.id)
        models.Coupon.objects.filter(pk=pk).update(
            code=coupon.code,
            name=coupon.name,
            discount_type=coupon.discount_type.value,
            discount_value=coupon.discount_value,
            usage_limit=coupon.usage_limit,
            valid_from=coupon.valid_from,
            valid_until=coupon.valid_until,
            min_amount=coupon.min_amount,
            is_active=coupon.is_active,
            updated_at=timezone.now(),
        )
        return _to_coupon(models.Coupon.objects.get(pk=pk))

    def is_referenced(self, coupon_id: str) -> bool:
        pk = _parse_uuid(coupon_id)
        if pk is None:
            return False
        return models.Order.objects.filter(coupon_id=pk).exists()

    def delete_coupon(self, coupon_id: str) -> None:
        row = models.Coupon.objects.filter(pk=_parse_uuid(coupon_id)).first()
        if row is None:
            return
        try:
            row.delete()
        except ProtectedError:
            # An order was placed with the coupon after the service checked.
            raise CouponInUseError(coupon_id) from None

    def try_redeem(self, coupon_id: str) -> bool:
        pk = _parse_uuid(coupon_id)
        if pk is None:
            return False
        updated = (
            models.Coupon.objects.filter(pk=pk, is_active=True)
            .filter(Q(usage_limit__isnull=True) | Q(usage_count__lt=F("usage_limit")))
            .update(usage_count=F("usage_count") + 1)
        )
        return updated == 1


class DjangoOrderStore(OrderStore):
    """Order store using Django ORM."""

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
        with transaction.atomic():
            row = models.Order.objects.create(
                order_number=generate_order_number(),
                session_id=_parse_uuid(session_id),
                email=email,
                name=name,
                status=models.Order.Status.PENDING,
                subtotal=breakdown.subtotal,
                discount=breakdown.discount,
                tax=breakdown.tax,
                total=breakdown.total,
                coupon_id=_parse_uuid(coupon_id) if coupon_id else None,
                payment_method=payment_method.value,
            )
            models.OrderItem.objects.bulk_create(
                models.OrderItem(
                    order=row,
                    ticket_type_id=_parse_uuid(item.ticket_type_id),
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    tax_rate_percent=item.tax_rate_percent,
                    subtotal=item.unit_price * item.quantity,
                )
                for item in items
            )
            models.Participant.objects.bulk_create(
                models.Participant(order=row, name=p_name, email=p_email)
                for p_name, p_email in participants
            )
        return _to_order(row)

    def get_order(self, order_id: str) -> Order | None:
        pk = _parse_uuid(order_id)
        if pk is None:
            return None
        row = models.Order.objects.prefetch_related("items").filter(pk=pk).first()
        return _to_order(row) if row else None

    def attach_provider_session(
        self, order_id: str, provider_session_id: str, payment_method: PaymentMethod
    ) -> None:
        models.Order.objects.filter(pk=_parse_uuid(order_id)).update(
            provider_session_id=provider_session_id,
            payment_method=payment_method.value,
            updated_at=timezone.now(),
        )

    def mark_paid(self, order_id: str, paid_at: datetime) -> bool:
        updated = models.Order.objects.filter(
            pk=_parse_uuid(order_id), status=models.Order.Status.PENDING
        ).update(status=models.Order.Status.PAID, paid_at=paid_at, updated_at=paid_at)
        return updated == 1


class DjangoParticipantStore(ParticipantStore):
    """Participant store using Django ORM."""

    def get_participant(self, participant_id: str) -> Participant | None:
        pk = _parse_uuid(participant_id)
        if pk is None:
            return None
        row = models.Participant.objects.select_related("order").filter(pk=pk).first()
        return _to_participant(row) if row else None

    def first_unchecked_participant(self, order_id: str) -> Participant | None:
        pk = _parse_uuid(order_id)
        if pk is None:
            return None
        row = (
            models.Participant.objects.select_related("order")
            .filter(order_id=pk, attendance_status=models.Participant.Attendance.NOT_CHECKED_IN)
            .order_by("created_at", "id")
            .first()
        )
        return _to_participant(row) if row else None

    def transition_attendance(
        self,
        participant_id: str,
        from_status: AttendanceStatus,
        to_status: AttendanceStatus,
        operator_id: int | None,
        at: datetime,
    ) -> bool:
        checked_in = to_status is AttendanceStatus.CHECKED_IN
        updated = models.Participant.objects.filter(
            pk=_parse_uuid(participant_id), attendance_status=from_status.value
        ).update(
            attendance_status=to_status.value,
            checked_in_at=at if checked_in else None,
            checked_in_by_id=operator_id if checked_in else None,
        )
        return updated == 1

    def record_check_in_log(
        self,
        participant: Participant,
        action: str,
        operator_id: int | None,
        ip_address: str | None,
        user_agent: str,
    ) -> None:
        models.CheckInLog.objects.create(
            participant_id=_parse_uuid(participant.id),
            order_id=_parse_uuid(participant.order_id),
            session_id=_parse_uuid(participant.session_id),
            action=action,
            operator_id=operator_id,
            ip_address=ip_address,
            user_agent=user_agent[:500],
        )
