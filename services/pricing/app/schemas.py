from __future__ import annotations

from datetime import date
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from services.pricing.app.models import Category, PaymentMethod


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SearchRequest(StrictModel):
    check_in: date
    check_out: date | None = None
    guests: Annotated[int, Field(ge=1, le=50)]
    payment_method: PaymentMethod = PaymentMethod.PIX
    includes_breakfast: bool = False
    # Set after the user has seen the minimum-stay warning and chosen to continue.
    confirm_min_stay: bool = False

    @model_validator(mode="after")
    def _dates(self):
        if self.check_out is not None and self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class AccommodationOut(StrictModel):
    accommodation_id: UUID
    name: str
    room_number: str
    category: Category
    capacity: int
    description: str
    image_url: str | None = None


class PaymentOptionOut(StrictModel):
    payment_method: PaymentMethod
    price_per_night: float
    total_price: float | None


class SearchResultOut(StrictModel):
    accommodation: AccommodationOut
    price_per_night: float
    total_price: float | None
    nights: int | None
    is_min_stay_violation: bool
    minimum_stay: int
    includes_breakfast: bool
    payment_method: PaymentMethod
    payment_options: list[PaymentOptionOut]
    # When true, price_per_night is an average over nights priced under different periods.
    spans_multiple_periods: bool


class SearchResponse(StrictModel):
    status: Literal["ok", "min_stay_confirmation_required"]
    results: list[SearchResultOut]
    has_min_stay_violations: bool
    max_min_stay: int
    counts: dict[str, int]


class QuoteRequest(StrictModel):
    accommodation_id: UUID
    check_in: date
    check_out: date
    guests: Annotated[int, Field(ge=1, le=50)]
    payment_method: PaymentMethod = PaymentMethod.PIX

    @model_validator(mode="after")
    def _dates(self):
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class QuoteResponse(StrictModel):
    accommodation_id: UUID
    payment_method: PaymentMethod
    price_per_night: float
    total_price: float
    nights: int
    is_min_stay_violation: bool
    minimum_stay: int
    spans_multiple_periods: bool


class PeriodOut(StrictModel):
    period_id: UUID
    name: str
    start_date: date
    end_date: date
    is_holiday: bool
    minimum_stay: int
