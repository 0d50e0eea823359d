"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Leave domain error mapping to handlers.errors.exception_handler
- Never contain business logic
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from seminars.domain import Coupon, PaymentMethod
from seminars.handlers import providers
from seminars.handlers.permissions import IsAdmin, IsSuperAdmin
from seminars.handlers.serializers import (
    CheckInRequestSerializer,
    CheckoutSessionRequestSerializer,
    CouponInputSerializer,
    CouponSerializer,
    OrderRequestSerializer,
    OrderSerializer,
    ParticipantSerializer,
    PriceBreakdownSerializer,
    QuoteRequestSerializer,
    ScanRequestSerializer,
)
from seminars.services.checkout_service import TicketSelection


def _selections(data) -> list[TicketSelection]:
    return [TicketSelection(ticket_type_id=t["ticket_type_id"], quantity=t["quantity"]) for t in data["tickets"]]


def _client_meta(request: Request) -> dict:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    ip_address = forwarded.split(",")[0].strip() or request.META.get("REMOTE_ADDR") or None
    return {"ip_address": ip_address, "user_agent": request.META.get("HTTP_USER_AGENT", "")}


class QuoteView(APIView):
    """Handler for POST /api/quote"""

    def post(self, request: Request) -> Response:
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        quote = providers.checkout_service().quote(
            session_id=data["session_id"],
            selections=_selections(data),
            coupon_code=data["coupon_code"] or None,
        )
        return Response(PriceBreakdownSerializer(quote.breakdown).data)


class OrderCreateView(APIView):
    """Handler for POST /api/orders"""

    def post(self, request: Request) -> Response:
        serializer = OrderRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = providers.checkout_service().create_order(
            session_id=data["session_id"],
            email=data["email"],
            name=data["name"],
            selections=_selections(data),
            participants=[(p["name"], p["email"]) for p in data["participants"]],
            payment_method=PaymentMethod(data["payment_method"]),
            coupon_code=data["coupon_code"] or None,
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class CheckoutSessionView(APIView):
    """Handler for POST /api/checkout/session"""

    def post(self, request: Request) -> Response:
        serializer = CheckoutSessionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        checkout = providers.checkout_service().create_checkout_session(
            order_id=data["order_id"],
            asserted_amount=data["amount"],
            payment_method=PaymentMethod(data["payment_method"]),
        )
        return Response({"session_id": checkout.session_id, "session_url": checkout.session_url})


class CouponListView(APIView):
    """Handler for GET/POST /api/admin/coupons"""

    permission_classes = [IsAdmin]

    def get(self, request: Request) -> Response:
        coupons = providers.coupon_service().list_coupons()
        return Response(CouponSerializer(coupons, many=True).data)

    def post(self, request: Request) -> Response:
        serializer = CouponInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        coupon = providers.coupon_service().create_coupon(Coupon(**serializer.validated_data))
        return Response(CouponSerializer(coupon).data, status=status.HTTP_201_CREATED)


class CouponDetailView(APIView):
    """Handler for GET/PUT/DELETE /api/admin/coupons/{coupon_id}"""

    def get_permissions(self):
        if self.request.method == "DELETE":
            return [IsSuperAdmin()]
        return [IsAdmin()]

    def get(self, request: Request, coupon_id: str) -> Response:
        coupon = providers.coupon_service().get_coupon(coupon_id)
        return Response(CouponSerializer(coupon).data)

    def put(self, request: Request, coupon_id: str) -> Response:
        serializer = CouponInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        coupon = providers.coupon_service().update_coupon(coupon_id, dict(serializer.validated_data))
        return Response(CouponSerializer(coupon).data)

    def delete(self, request: Request, coupon_id: str) -> Response:
        providers.coupon_service().delete_coupon(coupon_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ParticipantQRView(APIView):
    """Handler for GET /api/admin/participants/{participant_id}/qr"""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request, participant_id: str) -> Response:
        code = providers.checkin_service().issue_participant_code(participant_id)
        return Response({"code": code})


class CheckInScanView(APIView):
    """Handler for POST /api/admin/checkin/scan"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = ScanRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        participant = providers.checkin_service().scan(
            data["code"],
            operator_id=request.user.pk,
            session_id=data.get("session_id"),
            **_client_meta(request),
        )
        return Response(ParticipantSerializer(participant).data)


class CheckInView(APIView):
    """Handler for POST /api/admin/checkin"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        serializer = CheckInRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = providers.checkin_service()
        if data["action"] == "checkin":
            participant = service.check_in(data["participant_id"], request.user.pk, **_client_meta(request))
        else:
            participant = service.undo_check_in(data["participant_id"], request.user.pk, **_client_meta(request))
        return Response(ParticipantSerializer(participant).data)
