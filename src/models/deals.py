from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from src.shared.base import BaseRecord


class DealRecord(BaseRecord):
    id: str
    deal_type: str
    client: str
    location: str
    currency: str = "GBP"
    value_original_currency: float = 0.0
    value_converted_gbp: Optional[float] = None
    status: Optional[str] = None
    submitted_by_user_id: str
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
    voided_by_user_id: Optional[str] = None
    reason_for_backdate: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectionAdjustmentRecord(BaseRecord):
    deal_id: str
    year: int
    value_this_year_gbp: Optional[float] = None
    expected_mobilisation_date: Optional[date] = None
