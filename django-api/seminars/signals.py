"""Django signals guarding persistence-level invariants."""

from django.db.models.signals import pre_delete
from django.dispatch import receiver

from seminars.domain.errors import CouponInUseError
from seminars.models import Coupon


@receiver(pre_delete, sender=Coupon)
def protect_used_coupon(sender, instance, **kwargs):
    """Refuse to delete a coupon once an order has redeemed it."""
    if instance.usage_count > 0:
        raise CouponInUseError(str(instance.id))
