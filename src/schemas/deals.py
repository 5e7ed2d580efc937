from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, model_validator

from src.shared.base import BaseSchema

DealType = Literal["Staff", "Contract", "Service"]
DealCurrency = Literal["GBP", "USD", "EUR", "SAR", "AED"]
DealStatus = Literal[
    "Draft",
    "Submitted",
    "Under Review",
    "Approved",
    "Rejected",
    "Revision Required",
    "Voided",
]


class DealCreateRequest(BaseSchema):
    deal_type: DealType
    client: str = Field(min_length=1)
    location: str = Field(min_length=1)
    currency: DealCurrency = "GBP"
    value_original_currency: float = Field(gt=0)
    as_draft: bool = False

    bd_user_id: Optional[str] = None
    bd_percent: Optional[float] = Field(default=None, ge=0, le=100)
    dt_user_id: Optional[str] = None
    dt_percent: Optional[float] = Field(default=None, ge=0, le=100)
    user_360_id: Optional[str] = None
    percent_360: Optional[float] = Field(default=None, ge=0, le=100)

    placement_id: Optional[str] = None
    worker_name: Optional[str] = None
    gp_daily: Optional[float] = Field(default=None, ge=0)
    duration_days: Optional[int] = Field(default=None, ge=0)
    service_name: Optional[str] = None
    service_description: Optional[str] = None

    is_renewal: bool = False
    renewal_count: Optional[int] = Field(default=None, ge=0)
    estimated_days: Optional[int] = Field(default=None, ge=0)
    total_estimated_opportunity_gbp: Optional[float] = Field(default=None, ge=0)
    reason_for_backdate: Optional[str] = None

    @model_validator(mode="after")
    def _type_specific_fields(self) -> "DealCreateRequest":
        if self.deal_type == "Service" and not self.service_name:
            raise ValueError("serviceName is required for Service deals")
        return self

    def has_split(self) -> bool:
        return any((self.bd_user_id, self.dt_user_id, self.user_360_id))


class DealCommentRequest(BaseSchema):
    comment: str = Field(min_length=1)


class DealVoidRequest(BaseSchema):
    reason: str = Field(min_length=1)


class Deal(BaseSchema):
    id: str
    deal_type: str
    client: str
    location: str
    currency: str
    value_original_currency: float
    value_converted_gbp: Optional[float] = None
    status: Optional[DealStatus] = None
    submitted_by_user_id: str
    submitted_by_name: Optional[str] = None
    approved_by_user_id: Optional[str] = None
    bd_user_id: Optional[str] = None
    bd_percent: Optional[float] = None
    dt_user_id: Optional[str] = None
    dt_percent: Optional[float] = None
    user_360_id: Optional[str] = None
    percent_360: Optional[float] = None
    submitted_month: Optional[int] = None
    submitted_year: Optional[int] = None
    is_renewal: Optional[bool] = None
    renewal_count: Optional[int] = None
    placement_id: Optional[str] = None
    worker_name: Optional[str] = None
    gp_daily: Optional[float] = None
    duration_days: Optional[int] = None
    service_name: Optional[str] = None
    service_description: Optional[str] = None
    estimated_days: Optional[int] = None
    total_estimated_opportunity_gbp: Optional[float] = None
    revision_comment: Optional[str] = None
    void_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
