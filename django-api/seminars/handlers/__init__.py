from seminars.handlers.views import (
    CheckInScanView,
    CheckInView,
    CheckoutSessionView,
    CouponDetailView,
    CouponListView,
    OrderCreateView,
    ParticipantQRView,
    QuoteView,
)

__all__ = [
    "CheckInScanView",
    "CheckInView",
    "CheckoutSessionView",
    "CouponDetailView",
    "CouponListView",
    "OrderCreateView",
    "ParticipantQRView",
    "QuoteView",
]
