from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import Field

from src.shared.base import BaseSchema


class ProjectionDeal(BaseSchema):
    deal_id: str
    deal_type: str
    client: str
    value_converted_gbp: float
    value_this_year_gbp: Optional[float] = None
    expected_mobilisation_date: Optional[date] = None


class ProjectionTotals(BaseSchema):
    services: float
    staff: float
    contracts: float
    billings: float
    total: float


class ProjectionsResponse(BaseSchema):
    year: int
    totals: ProjectionTotals
    services: List[ProjectionDeal]
    staff: List[ProjectionDeal]
    contracts: List[ProjectionDeal]


class ProjectionAdjustmentRequest(BaseSchema):
    year: int = Field(ge=2000, le=2100)
    value_this_year_gbp: Optional[float] = Field(default=None, ge=0)
    expected_mobilisation_date: Optional[date] = None
