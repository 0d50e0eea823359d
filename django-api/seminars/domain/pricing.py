"""Order pricing: per-line tax, coupon discounts, order totals.

Every function here is pure. The same inputs (including ``now``) always give
the same result, so a breakdown computed for display can be recomputed later
to verify the amount a payment provider is asked to charge.

Tax is floored per line and computed on pre-discount line amounts; a coupon
reduces the subtotal only.
"""

from collections.abc import Iterable
from datetime import datetime

from seminars.domain.errors import CouponInapplicable, InapplicableReason, InvalidInputError
from seminars.domain.models import Coupon, DiscountType, LineAmount, OrderItem, PriceBreakdown
from seminars.domain.value_objects import Money, Quantity, TaxRate


def compute_line_subtotal(unit_price: int, quantity: int, tax_rate_percent: int) -> LineAmount:
    """Return the subtotal and floored tax of a single order line.

    Raises:
        InvalidInputError: If quantity < 1, unit_price < 0 or the tax rate is
            outside [0, 100].
    """
    Money(unit_price)
    Quantity(quantity)
    TaxRate(tax_rate_percent)

    subtotal = unit_price * quantity
    tax = subtotal * tax_rate_percent // 100
    return LineAmount(subtotal=subtotal, tax=tax)


def check_coupon_applicable(order_subtotal: int, coupon: Coupon, now: datetime) -> None:
    """Raise CouponInapplicable if the coupon cannot be used right now."""
    if not coupon.is_active:
        raise CouponInapplicable(InapplicableReason.INACTIVE)
    if now < coupon.valid_from:
        raise CouponInapplicable(InapplicableReason.NOT_YET_VALID)
    if now >= coupon.valid_until:
        raise CouponInapplicable(InapplicableReason.EXPIRED)
    if coupon.min_amount is not None and order_subtotal < coupon.min_amount:
        raise CouponInapplicable(InapplicableReason.BELOW_MINIMUM)
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise CouponInapplicable(InapplicableReason.USAGE_LIMIT_REACHED)


def apply_coupon(order_subtotal: int, coupon: Coupon, now: datetime) -> int:
    """Return the discount a coupon gives on ``order_subtotal``.

    The discount never exceeds the subtotal.

    Raises:
        InvalidInputError: If order_subtotal is negative.
        CouponInapplicable: If the coupon is inactive, outside its validity
            window, below its minimum amount or used up.
    """
    Money(order_subtotal)
    check_coupon_applicable(order_subtotal, coupon, now)

    if coupon.discount_type is DiscountType.AMOUNT:
        discount = coupon.discount_value
    else:
        discount = order_subtotal * coupon.discount_value // 100
    return min(discount, order_subtotal)


def compute_order_total(
    items: Iterable[OrderItem],
    coupon: Coupon | None,
    now: datetime,
) -> PriceBreakdown:
    """Price an order.

    An inapplicable coupon does not fail the order: the discount falls back
    to zero and the reason is kept on ``coupon_rejection``.

    Raises:
        InvalidInputError: If the order has no items.
    """
    lines = [
        compute_line_subtotal(item.unit_price, item.quantity, item.tax_rate_percent)
        for item in items
    ]
    if not lines:
        raise InvalidInputError("An order needs at least one item")

    subtotal = sum(line.subtotal for line in lines)
    tax = sum(line.tax for line in lines)

    discount = 0
    rejection = None
    if coupon is not None:
        try:
            discount = apply_coupon(subtotal, coupon, now)
        except CouponInapplicable as exc:
            rejection = exc.reason

    total = max(0, subtotal - discount + tax)
    return PriceBreakdown(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=total,
        coupon_rejection=rejection,
    )
