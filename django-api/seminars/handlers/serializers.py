"""Serializers for request validation and domain-model responses.

Request serializers check wire shape only. Business invariants are enforced
by the domain value objects the views build from validated data.
"""

from rest_framework import serializers

from seminars.domain import DiscountType, PaymentMethod

MAX_PER_TICKET = 10
MAX_TICKET_TYPES = 5
MAX_TICKETS = 20


class TicketSelectionSerializer(serializers.Serializer):
    ticket_type_id = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_PER_TICKET)


class QuoteRequestSerializer(serializers.Serializer):
    session_id = serializers.CharField(max_length=64)
    tickets = TicketSelectionSerializer(many=True, allow_empty=False, max_length=MAX_TICKET_TYPES)
    coupon_code = serializers.RegexField(
        r"^[A-Za-z0-9]{4,12}$", required=False, allow_blank=True, default=""
    )

    def validate_tickets(self, value):
        if sum(t["quantity"] for t in value) > MAX_TICKETS:
            raise serializers.ValidationError(f"At most {MAX_TICKETS} tickets per order")
        return value


class ParticipantInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50)
    email = serializers.EmailField(max_length=254)


class OrderRequestSerializer(QuoteRequestSerializer):
    name = serializers.CharField(max_length=50)
    email = serializers.EmailField(max_length=254)
    participants = ParticipantInputSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(choices=[m.value for m in PaymentMethod])


class CheckoutSessionRequestSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=64)
    # KOMOJU cannot charge zero yen, so a zero amount fails here before any price comparison.
    amount = serializers.IntegerField(min_value=1)
    payment_method = serializers.ChoiceField(choices=[m.value for m in PaymentMethod])


class CouponInputSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    discount_type = serializers.ChoiceField(choices=[t.value for t in DiscountType])
    discount_value = serializers.IntegerField(min_value=1)
    usage_limit = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    valid_from = serializers.DateTimeField()
    valid_until = serializers.DateTimeField()
    min_amount = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)
    is_active = serializers.BooleanField(required=False, default=True)

    def to_internal_value(self, data):
        validated = super().to_internal_value(data)
        if "discount_type" in validated:
            validated["discount_type"] = DiscountType(validated["discount_type"])
        return validated


class CouponSerializer(serializers.Serializer):
    """Serializer for the Coupon domain model."""

    id = serializers.CharField()
    code = serializers.CharField()
    name = serializers.CharField()
    discount_type = serializers.CharField(source="discount_type.value")
    discount_value = serializers.IntegerField()
    usage_limit = serializers.IntegerField(allow_null=True)
    usage_count = serializers.IntegerField()
    valid_from = serializers.DateTimeField()
    valid_until = serializers.DateTimeField()
    min_amount = serializers.IntegerField(allow_null=True)
    is_active = serializers.BooleanField()


class PriceBreakdownSerializer(serializers.Serializer):
    """Serializer for the PriceBreakdown domain model."""

    subtotal = serializers.IntegerField()
    discount = serializers.IntegerField()
    tax = serializers.IntegerField()
    total = serializers.IntegerField()
    coupon_rejection = serializers.SerializerMethodField()

    def get_coupon_rejection(self, obj) -> str | None:
        return obj.coupon_rejection.value if obj.coupon_rejection else None


class OrderSerializer(serializers.Serializer):
    """Serializer for the Order domain model."""

    id = serializers.CharField()
    order_number = serializers.CharField()
    session_id = serializers.CharField()
    status = serializers.CharField(source="status.value")
    subtotal = serializers.IntegerField()
    discount = serializers.IntegerField()
    tax = serializers.IntegerField()
    total = serializers.IntegerField()


class ScanRequestSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=2048)
    session_id = serializers.CharField(max_length=64, required=False)


class CheckInRequestSerializer(serializers.Serializer):
    participant_id = serializers.CharField(max_length=64)
    action = serializers.ChoiceField(choices=["checkin", "undo"])


class ParticipantSerializer(serializers.Serializer):
    """Serializer for the Participant domain model."""

    id = serializers.CharField()
    order_id = serializers.CharField()
    session_id = serializers.CharField()
    name = serializers.CharField()
    attendance = serializers.CharField(source="attendance.value")
    checked_in_at = serializers.DateTimeField(allow_null=True)
