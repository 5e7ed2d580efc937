from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from src.shared.base import BaseSchema


class ProcessBillingUploadRequest(BaseSchema):
    upload_id: str = Field(min_length=1)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)


class ProcessBillingUploadResult(BaseSchema):
    success: bool = True
    records_processed: int
    message: str


class BillingUploadCreateRequest(BaseSchema):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    file_name: str = Field(min_length=1)
    rows: Optional[List[Dict[str, Any]]] = None
    csv_text: Optional[str] = None
    is_correction: bool = False
    correction_reason: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self) -> "BillingUploadCreateRequest":
        if self.rows is None and not self.csv_text:
            raise ValueError("Either rows or csvText is required")
        if self.rows is not None and self.csv_text:
            raise ValueError("Provide rows or csvText, not both")
        return self


class BillingUpload(BaseSchema):
    id: str
    month: int
    year: int
    file_name: Optional[str] = None
    uploaded_by_user_id: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    is_correction: bool = False
    correction_reason: Optional[str] = None
    replaced_upload_id: Optional[str] = None
    row_count: Optional[int] = None


class BillingTargetRequest(BaseSchema):
    target_gp: float = Field(ge=0)


class BillingTarget(BaseSchema):
    year: int
    target_gp: float
    set_by_user_id: Optional[str] = None


class BillingTotals(BaseSchema):
    total_revenue: float
    total_gp: float
    total_np: float
    target_gp: float
    remaining: float


class TeamBillingStats(BaseSchema):
    team_id: Optional[str] = None
    team_name: str
    revenue: float
    gp: float
    np: float
    percentage: float


class PersonBilling(BaseSchema):
    user_id: str
    name: str
    role_type: str
    team_name: str
    revenue: float
    gp: float
    np: float


class RoleBillingLeaderboard(BaseSchema):
    role: str
    members: List[PersonBilling]


class BillingSummary(BaseSchema):
    year: int
    month: Optional[int] = None
    totals: BillingTotals
    teams: List[TeamBillingStats]
    roles: List[RoleBillingLeaderboard]
