"""Ticket Rules — verifies tier sale status, promo checks, pricing, purchase input.

Tests:
    - Sale status precedence: inactive > not_started > ended > sold_out > on_sale
    - Promo validation order and tier restriction
    - Discounts capped at the subtotal, fixed discounts capped by max_quantity
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from eventdesk.core.domain_types import DiscountType, TierSaleStatus
from eventdesk.core.ticket_rules import (
    calculate_discount, normalize_promo_code, quote_price, tickets_remaining,
    tier_sale_status, validate_promo_code, validate_purchase_request,
)

NOW = datetime(2026, 4, 10, 12, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


# ─── Sale status ─────────────────────────────────────────────────

def test_inactive_wins_over_everything():
    assert tier_sale_status(False, NOW + HOUR, None, 10, 10, NOW) == TierSaleStatus.INACTIVE


def test_not_started_before_window():
    assert tier_sale_status(True, NOW + HOUR, None, 10, 0, NOW) == TierSaleStatus.NOT_STARTED


def test_ended_after_window():
    assert tier_sale_status(True, None, NOW - HOUR, 10, 10, NOW) == TierSaleStatus.ENDED


def test_sold_out_and_on_sale():
    assert tier_sale_status(True, None, None, 10, 10, NOW) == TierSaleStatus.SOLD_OUT
    assert tier_sale_status(True, None, None, 10, 9, NOW) == TierSaleStatus.ON_SALE
    assert tier_sale_status(True, None, None, None, 500, NOW) == TierSaleStatus.ON_SALE


def test_tickets_remaining():
    assert tickets_remaining(None, 3) is None
    assert tickets_remaining(5, 3) == 2
    assert tickets_remaining(5, 8) == 0


# ─── Purchase request ────────────────────────────────────────────

def _attendees(n):
    return [{"name": f"A{i}", "email": f"a{i}@example.com"} for i in range(n)]


@pytest.mark.parametrize("quantity", [0, 11])
def test_quantity_bounds(quantity):
    error = validate_purchase_request(quantity, _attendees(max(quantity, 0)), 10)
    assert error["error_code"] == "INVALID_QUANTITY"


def test_attendee_count_must_match():
    error = validate_purchase_request(2, _attendees(1), 10)
    assert error["error_code"] == "ATTENDEE_COUNT_MISMATCH"


def test_attendee_fields_required():
    attendees = _attendees(2)
    attendees[1]["name"] = "  "
    error = validate_purchase_request(2, attendees, 10)
    assert error["error_code"] == "ATTENDEE_NAME_REQUIRED"
    assert error["field"] == "attendees.1.name"

    attendees = _attendees(1)
    attendees[0]["email"] = None
    error = validate_purchase_request(1, attendees, 10)
    assert error["error_code"] == "ATTENDEE_EMAIL_REQUIRED"


def test_valid_purchase_request():
    assert validate_purchase_request(3, _attendees(3), 10) is None


# ─── Promo validation ────────────────────────────────────────────

def _promo(**overrides):
    params = dict(
        is_active=True, valid_from=None, valid_until=None, max_uses=None,
        used_count=0, restricted_tier_id=None, tier_id=uuid4(), now=NOW,
    )
    params.update(overrides)
    return validate_promo_code(**params)


def test_promo_valid_by_default():
    assert _promo() is None


@pytest.mark.parametrize("overrides,code", [
    ({"is_active": False}, "PROMO_INACTIVE"),
    ({"valid_from": NOW + HOUR}, "PROMO_NOT_STARTED"),
    ({"valid_until": NOW - HOUR}, "PROMO_EXPIRED"),
    ({"max_uses": 3, "used_count": 3}, "PROMO_EXHAUSTED"),
    ({"restricted_tier_id": uuid4()}, "PROMO_TIER_MISMATCH"),
])
def test_promo_rejections(overrides, code):
    assert _promo(**overrides)["error_code"] == code


def test_promo_restricted_to_matching_tier():
    tier = uuid4()
    assert _promo(restricted_tier_id=tier, tier_id=tier) is None


def test_normalize_promo_code():
    assert normalize_promo_code("  early20 ") == "EARLY20"


# ─── Pricing ─────────────────────────────────────────────────────

def test_quote_without_promo():
    quote = quote_price(Decimal("25.00"), 3)
    assert quote.subtotal == Decimal("75.00")
    assert quote.discount == Decimal("0.00")
    assert quote.total == Decimal("75.00")


def test_percentage_discount():
    quote = quote_price(Decimal("19.99"), 2, DiscountType.PERCENTAGE, Decimal("15"))
    assert quote.subtotal == Decimal("39.98")
    assert quote.discount == Decimal("6.00")
    assert quote.total == Decimal("33.98")


def test_fixed_discount_capped_by_max_quantity():
    discount = calculate_discount(
        DiscountType.FIXED, Decimal("5"), Decimal("100.00"), 4, 2,
    )
    assert discount == Decimal("10.00")


def test_discount_never_exceeds_subtotal():
    quote = quote_price(Decimal("10.00"), 1, DiscountType.FIXED, Decimal("50"))
    assert quote.discount == Decimal("10.00")
    assert quote.total == Decimal("0.00")
