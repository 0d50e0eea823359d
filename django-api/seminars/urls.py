from django.urls import path

from seminars.handlers import (
    CheckInScanView,
    CheckInView,
    CheckoutSessionView,
    CouponDetailView,
    CouponListView,
    OrderCreateView,
    ParticipantQRView,
    QuoteView,
)

urlpatterns = [
    path("quote", QuoteView.as_view(), name="quote"),
    path("orders", OrderCreateView.as_view(), name="order-create"),
    path("checkout/session", CheckoutSessionView.as_view(), name="checkout-session"),
    path("admin/coupons", CouponListView.as_view(), name="coupon-list"),
    path("admin/coupons/<str:coupon_id>", CouponDetailView.as_view(), name="coupon-detail"),
    path(
        "admin/participants/<str:participant_id>/qr",
        ParticipantQRView.as_view(),
        name="participant-qr",
    ),
    path("admin/checkin/scan", CheckInScanView.as_view(), name="checkin-scan"),
    path("admin/checkin", CheckInView.as_view(), name="checkin"),
]
