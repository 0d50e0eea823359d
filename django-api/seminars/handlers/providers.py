"""Wiring of services to their Django-backed stores."""

from seminars.gateways.komoju import KomojuGateway, PaymentGateway
from seminars.services.checkin_service import CheckInService
from seminars.services.checkout_service import CheckoutService
from seminars.services.coupon_service import CouponService
from seminars.stores.django_store import (
    DjangoCatalogStore,
    DjangoCouponStore,
    DjangoOrderStore,
    DjangoParticipantStore,
)


def payment_gateway() -> PaymentGateway:
    return KomojuGateway.from_settings()


def coupon_service() -> CouponService:
    return CouponService(DjangoCouponStore())


def checkout_service() -> CheckoutService:
    return CheckoutService(
        catalog=DjangoCatalogStore(),
        orders=DjangoOrderStore(),
        coupons=coupon_service(),
        gateway=payment_gateway(),
    )


def checkin_service() -> CheckInService:
    return CheckInService(participants=DjangoParticipantStore(), orders=DjangoOrderStore())
