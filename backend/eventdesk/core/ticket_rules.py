"""Ticket Rules — tier sale status, promo validation, pricing, purchase requests.

Invariants:
    - Tier sale status is derived, never stored; checked in order:
      inactive -> not_started -> ended -> sold_out -> on_sale
    - quantity None means unlimited inventory
    - Discount never exceeds the subtotal; total = subtotal - discount >= 0
    - Money is Decimal, rounded to cents with ROUND_HALF_UP

Design Decisions:
    - Validators return error descriptors (dict) instead of raising:
      the purchase service decides which exception and status code to use
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from eventdesk.core.clock import ensure_utc
from eventdesk.core.domain_types import DiscountType, TierSaleStatus


CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PriceQuote:
    subtotal: Decimal
    discount: Decimal
    total: Decimal


def tier_sale_status(
    is_active: bool,
    sale_start: datetime | None,
    sale_end: datetime | None,
    quantity: int | None,
    sold_count: int,
    now: datetime,
) -> TierSaleStatus:
    if not is_active:
        return TierSaleStatus.INACTIVE
    start = ensure_utc(sale_start)
    if start is not None and now < start:
        return TierSaleStatus.NOT_STARTED
    end = ensure_utc(sale_end)
    if end is not None and now > end:
        return TierSaleStatus.ENDED
    if quantity is not None and sold_count >= quantity:
        return TierSaleStatus.SOLD_OUT
    return TierSaleStatus.ON_SALE


def tickets_remaining(quantity: int | None, sold_count: int) -> int | None:
    if quantity is None:
        return None
    return max(0, quantity - sold_count)


def validate_purchase_request(
    quantity: int, attendees: list[dict], max_per_order: int,
) -> dict | None:
    if quantity < 1 or quantity > max_per_order:
        return {
            "error_code": "INVALID_QUANTITY",
            "field": "quantity",
            "message": f"Quantity must be between 1 and {max_per_order}",
        }
    if len(attendees) != quantity:
        return {
            "error_code": "ATTENDEE_COUNT_MISMATCH",
            "field": "attendees",
            "message": (
                f"Expected {quantity} attendee entries, got {len(attendees)}"
            ),
        }
    for index, attendee in enumerate(attendees):
        if not (attendee.get("name") or "").strip():
            return {
                "error_code": "ATTENDEE_NAME_REQUIRED",
                "field": f"attendees.{index}.name",
                "message": f"Attendee {index + 1} is missing a name",
            }
        if not (attendee.get("email") or "").strip():
            return {
                "error_code": "ATTENDEE_EMAIL_REQUIRED",
                "field": f"attendees.{index}.email",
                "message": f"Attendee {index + 1} is missing an email",
            }
    return None


def validate_promo_code(
    *,
    is_active: bool,
    valid_from: datetime | None,
    valid_until: datetime | None,
    max_uses: int | None,
    used_count: int,
    restricted_tier_id: UUID | None,
    tier_id: UUID | None,
    now: datetime,
) -> dict | None:
    if not is_active:
        return {"error_code": "PROMO_INACTIVE", "message": "Promo code is not active"}
    start = ensure_utc(valid_from)
    if start is not None and now < start:
        return {"error_code": "PROMO_NOT_STARTED", "message": "Promo code is not valid yet"}
    end = ensure_utc(valid_until)
    if end is not None and now > end:
        return {"error_code": "PROMO_EXPIRED", "message": "Promo code has expired"}
    if max_uses is not None and used_count >= max_uses:
        return {
            "error_code": "PROMO_EXHAUSTED",
            "message": "Promo code has reached its usage limit",
        }
    if restricted_tier_id is not None and restricted_tier_id != tier_id:
        return {
            "error_code": "PROMO_TIER_MISMATCH",
            "message": "Promo code does not apply to this ticket tier",
        }
    return None


def calculate_discount(
    discount_type: DiscountType,
    discount_value: Decimal,
    subtotal: Decimal,
    quantity: int,
    max_quantity: int | None,
) -> Decimal:
    """Percentage of subtotal, or fixed amount per ticket up to max_quantity."""
    if discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * Decimal(discount_value) / Decimal(100)
    else:
        applicable = min(quantity, max_quantity) if max_quantity else quantity
        discount = Decimal(discount_value) * applicable
    discount = min(discount, subtotal)
    return discount.quantize(CENTS, rounding=ROUND_HALF_UP)


def quote_price(
    unit_price: Decimal,
    quantity: int,
    discount_type: DiscountType | None = None,
    discount_value: Decimal | None = None,
    max_quantity: int | None = None,
) -> PriceQuote:
    subtotal = (Decimal(unit_price) * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)
    discount = Decimal("0.00")
    if discount_type is not None and discount_value is not None:
        discount = calculate_discount(
            discount_type, discount_value, subtotal, quantity, max_quantity,
        )
    return PriceQuote(subtotal=subtotal, discount=discount, total=subtotal - discount)


def normalize_promo_code(code: str) -> str:
    return code.strip().upper()
