"""Ticketing Schemas — tiers, promo codes, purchases, registrations, check-in.

Invariants:
    - Money fields are Decimal with 2 decimal places, never negative
    - Attendee name/email presence is checked in core/ticket_rules.py so the
      error names the offending attendee index
    - Promo codes are normalized to upper case
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from eventdesk.core.domain_types import (
    DiscountType, RegistrationStatus, TierSaleStatus,
)


# ─── Tiers ───────────────────────────────────────────────────────

class TierCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = Field(None, max_length=2000)
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    currency: str = Field("INR", min_length=3, max_length=3)
    quantity: int | None = Field(None, ge=1)
    sale_start: datetime | None = None
    sale_end: datetime | None = None
    is_active: bool = True
    sort_order: int = 0

    @model_validator(mode="after")
    def check_sale_window(self):
        if self.sale_start and self.sale_end and self.sale_end <= self.sale_start:
            raise ValueError("sale_end must be after sale_start")
        return self


class TierUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = Field(None, max_length=2000)
    price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    quantity: int | None = Field(None, ge=1)
    sale_start: datetime | None = None
    sale_end: datetime | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class TierResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    name: str
    description: str | None
    price: Decimal
    currency: str
    quantity: int | None
    sold_count: int
    sale_start: datetime | None
    sale_end: datetime | None
    is_active: bool
    sort_order: int
    sale_status: TierSaleStatus
    remaining: int | None


# ─── Promo codes ─────────────────────────────────────────────────

class PromoCreate(BaseModel):
    code: str = Field(min_length=2, max_length=40)
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    max_uses: int | None = Field(None, ge=1)
    max_quantity: int | None = Field(None, ge=1)
    ticket_tier_id: UUID | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("code cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def check_percentage(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class PromoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    max_uses: int | None
    used_count: int
    max_quantity: int | None
    ticket_tier_id: UUID | None
    valid_from: datetime | None
    valid_until: datetime | None
    is_active: bool


class PromoValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=40)
    tier_id: UUID
    quantity: int = Field(1, ge=1)


class PromoValidateResponse(BaseModel):
    valid: bool
    promo_code_id: UUID | None = None
    error_code: str | None = None
    message: str | None = None
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal


# ─── Purchases & registrations ───────────────────────────────────

class AttendeeInput(BaseModel):
    name: str = Field("", max_length=200)
    email: str = Field("", max_length=320)
    phone: str | None = Field(None, max_length=40)


class PurchaseRequest(BaseModel):
    tier_id: UUID | None = None
    quantity: int = 1
    attendees: list[AttendeeInput] = Field(default_factory=list)
    promo_code: str | None = Field(None, max_length=40)
    form_responses: dict = Field(default_factory=dict)


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    user_id: UUID | None
    ticket_tier_id: UUID | None
    promo_code_id: UUID | None
    status: RegistrationStatus
    quantity: int
    subtotal: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    attendees: list
    form_responses: dict
    created_at: datetime


class PurchaseResponse(BaseModel):
    registration: RegistrationResponse
    waitlist_position: int | None = None


class CheckInRequest(BaseModel):
    method: str = Field("manual", pattern=r"^(manual|qr)$")


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    registration_id: UUID
    checked_in_by: UUID
    check_in_method: str
    checked_in_at: datetime
