from django.contrib import admin

from seminars.models import CheckInLog, Coupon, Order, OrderItem, Participant, Seminar, Session, TicketType


class SessionInline(admin.TabularInline):
    model = Session
    extra = 1


class TicketTypeInline(admin.TabularInline):
    model = TicketType
    extra = 1


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ["ticket_type", "quantity", "unit_price", "tax_rate_percent", "subtotal"]


class ParticipantInline(admin.TabularInline):
    model = Participant
    extra = 0


@admin.register(Seminar)
class SeminarAdmin(admin.ModelAdmin):
    list_display = ["title", "slug", "created_at"]
    search_fields = ["title"]
    prepopulated_fields = {"slug": ["title"]}
    inlines = [SessionInline]


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ["seminar", "starts_at", "ends_at", "capacity", "status"]
    list_filter = ["seminar", "status"]
    inlines = [TicketTypeInline]


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ["code", "discount_type", "discount_value", "usage_count", "usage_limit", "valid_until", "is_active"]
    list_filter = ["discount_type", "is_active"]
    search_fields = ["code", "name"]
    readonly_fields = ["usage_count"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["order_number", "session", "email", "status", "total", "created_at"]
    list_filter = ["status", "payment_method"]
    search_fields = ["order_number", "email"]
    readonly_fields = ["subtotal", "discount", "tax", "total", "coupon"]
    inlines = [OrderItemInline, ParticipantInline]


@admin.register(CheckInLog)
class CheckInLogAdmin(admin.ModelAdmin):
    list_display = ["participant", "action", "operator", "created_at"]
    list_filter = ["action"]
