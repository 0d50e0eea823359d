"""Coupon administration and redemption."""

import dataclasses
import logging
from typing import Any

from seminars.domain import Coupon
from seminars.domain.errors import (
    CouponInapplicable,
    CouponInUseError,
    CouponNotFoundError,
    DuplicateCouponCodeError,
    InapplicableReason,
)
from seminars.stores.interfaces import CouponStore

logger = logging.getLogger(__name__)

# usage_count only moves through redeem().
_EDITABLE_FIELDS = frozenset(
    {
        "code",
        "name",
        "discount_type",
        "discount_value",
        "usage_limit",
        "valid_from",
        "valid_until",
        "min_amount",
        "is_active",
    }
)


class CouponService:
    """Service for coupon CRUD and usage accounting."""

    def __init__(self, store: CouponStore) -> None:
        self._store = store

    def list_coupons(self) -> list[Coupon]:
        return self._store.list_coupons()

    def get_coupon(self, coupon_id: str) -> Coupon:
        """Return a coupon by id.

        Raises:
            CouponNotFoundError: If the coupon does not exist.
        """
        coupon = self._store.get_coupon(coupon_id)
        if coupon is None:
            raise CouponNotFoundError(coupon_id)
        return coupon

    def create_coupon(self, coupon: Coupon) -> Coupon:
        """Persist a new coupon. Invariants were checked when ``coupon`` was built.

        Raises:
            DuplicateCouponCodeError: If the code is taken.
        """
        if self._store.code_exists(coupon.code):
            raise DuplicateCouponCodeError(coupon.code)
        created = self._store.create_coupon(dataclasses.replace(coupon, usage_count=0))
        logger.info("Coupon created", extra={"extra_data": {"coupon_id": created.id, "code": created.code}})
        return created

    def update_coupon(self, coupon_id: str, changes: dict[str, Any]) -> Coupon:
        """Apply ``changes`` and re-validate the merged coupon.

        Raises:
            CouponNotFoundError: If the coupon does not exist.
            InvalidCouponError: If the merged coupon is inconsistent.
            DuplicateCouponCodeError: If a new code is taken.
        """
        current = self.get_coupon(coupon_id)
        updates = {k: v for k, v in changes.items() if k in _EDITABLE_FIELDS}
        merged = dataclasses.replace(current, **updates)

        if merged.code != current.code and self._store.code_exists(merged.code, exclude_id=coupon_id):
            raise DuplicateCouponCodeError(merged.code)

        updated = self._store.update_coupon(merged)
        logger.info(
            "Coupon updated",
            extra={"extra_data": {"coupon_id": coupon_id, "fields": sorted(updates)}},
        )
        return updated

    def delete_coupon(self, coupon_id: str) -> None:
        """Delete an unused coupon.

        A coupon on a pending order counts as used even though its usage_count
        only moves when the order is paid.

        Raises:
            CouponNotFoundError: If the coupon does not exist.
            CouponInUseError: If the coupon has been redeemed or is on any order.
        """
        coupon = self.get_coupon(coupon_id)
        if coupon.usage_count > 0 or self._store.is_referenced(coupon_id):
            raise CouponInUseError(coupon_id)
        self._store.delete_coupon(coupon_id)
        logger.info("Coupon deleted", extra={"extra_data": {"coupon_id": coupon_id}})

    def find_by_code(self, code: str) -> Coupon:
        coupon = self._store.get_coupon_by_code(code.strip().upper())
        if coupon is None:
            raise CouponNotFoundError(code)
        return coupon

    def redeem(self, coupon_id: str) -> None:
        """Count one completed order against the coupon.

        Raises:
            CouponInapplicable: If the usage limit was reached concurrently.
        """
        if not self._store.try_redeem(coupon_id):
            raise CouponInapplicable(InapplicableReason.USAGE_LIMIT_REACHED)
