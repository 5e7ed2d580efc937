from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from src.shared.base import BaseRecord


class BillingUploadRecord(BaseRecord):
    id: str
    month: int
    year: int
    uploaded_by_user_id: Optional[str] = None
    file_name: Optional[str] = None
    file_data: Any = None
    is_correction: bool = False
    correction_reason: Optional[str] = None
    replaced_upload_id: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class BillingRecordRecord(BaseRecord):
    id: Optional[str] = None
    user_id: str
    month: int
    year: int
    revenue_gbp: Decimal = Decimal("0")
    gp_gbp: Decimal = Decimal("0")
    np_gbp: Decimal = Decimal("0")
    upload_id: Optional[str] = None


class BillingTargetRecord(BaseRecord):
    id: Optional[str] = None
    year: int
    target_gp: Decimal = Decimal("0")
    set_by_user_id: Optional[str] = None


class IndividualTargetRecord(BaseRecord):
    id: Optional[str] = None
    user_id: str
    year: int
    month: int
    target_gp: Decimal = Decimal("0")
