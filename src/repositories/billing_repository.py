from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.core.supabase import SupabaseClient
from src.models.billing import (
    BillingRecordRecord,
    BillingTargetRecord,
    BillingUploadRecord,
    IndividualTargetRecord,
)

MAX_QUERY_ROWS = 5000
UPLOAD_SUMMARY_COLUMNS = (
    "id,month,year,uploaded_by_user_id,file_name,is_correction,correction_reason,"
    "replaced_upload_id,uploaded_at"
)


class BillingRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def get_upload(self, upload_id: str) -> Optional[BillingUploadRecord]:
        rows, _ = self.client.select(
            table="billing_uploads",
            select=f"{UPLOAD_SUMMARY_COLUMNS},file_data",
            filters=[("id", f"eq.{upload_id}")],
            limit=1,
        )
        return BillingUploadRecord.model_validate(rows[0]) if rows else None

    def list_uploads(self, year: int) -> List[BillingUploadRecord]:
        rows, _ = self.client.select(
            table="billing_uploads",
            select=UPLOAD_SUMMARY_COLUMNS,
            filters=[("year", f"eq.{year}")],
            order="month.asc,uploaded_at.asc",
            limit=MAX_QUERY_ROWS,
        )
        return [BillingUploadRecord.model_validate(row) for row in rows]

    def list_upload_ids(self, month: int, year: int) -> List[str]:
        rows, _ = self.client.select(
            table="billing_uploads",
            select="id",
            filters=[("month", f"eq.{month}"), ("year", f"eq.{year}")],
            limit=MAX_QUERY_ROWS,
        )
        return [str(row["id"]) for row in rows]

    def find_original_upload(self, month: int, year: int) -> Optional[BillingUploadRecord]:
        rows, _ = self.client.select(
            table="billing_uploads",
            select=UPLOAD_SUMMARY_COLUMNS,
            filters=[
                ("month", f"eq.{month}"),
                ("year", f"eq.{year}"),
                ("is_correction", "is.false"),
            ],
            order="uploaded_at.asc",
            limit=1,
        )
        return BillingUploadRecord.model_validate(rows[0]) if rows else None

    def create_upload(self, payload: Dict[str, Any]) -> BillingUploadRecord:
        rows = self.client.insert(table="billing_uploads", payload=payload)
        return BillingUploadRecord.model_validate(rows[0])

    def delete_records_for_uploads(self, upload_ids: Sequence[str]) -> int:
        if not upload_ids:
            return 0
        id_filter = ",".join(upload_ids)
        deleted = self.client.delete(
            table="billing_records",
            filters=[("upload_id", f"in.({id_filter})")],
        )
        return len(deleted)

    def insert_records(self, records: List[Dict[str, Any]]) -> List[BillingRecordRecord]:
        if not records:
            return []
        rows = self.client.insert(table="billing_records", payload=records)
        return [BillingRecordRecord.model_validate(row) for row in rows]

    def list_records(self, year: int, month: Optional[int] = None) -> List[BillingRecordRecord]:
        filters: List[Tuple[str, str]] = [("year", f"eq.{year}")]
        if month is not None:
            filters.append(("month", f"eq.{month}"))
        rows, _ = self.client.select(
            table="billing_records",
            select="id,user_id,month,year,revenue_gbp,gp_gbp,np_gbp,upload_id",
            filters=filters,
            limit=MAX_QUERY_ROWS,
        )
        return [BillingRecordRecord.model_validate(row) for row in rows]

    def get_billing_target(self, year: int) -> Optional[BillingTargetRecord]:
        rows, _ = self.client.select(
            table="billing_targets",
            select="id,year,target_gp,set_by_user_id",
            filters=[("year", f"eq.{year}")],
            limit=1,
        )
        return BillingTargetRecord.model_validate(rows[0]) if rows else None

    def upsert_billing_target(self, payload: Dict[str, Any]) -> BillingTargetRecord:
        rows = self.client.insert(
            table="billing_targets",
            payload=payload,
            upsert=True,
            on_conflict="year",
        )
        return BillingTargetRecord.model_validate(rows[0])


class TargetsRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_individual_targets(
        self, year: int, user_id: Optional[str] = None
    ) -> List[IndividualTargetRecord]:
        filters: List[Tuple[str, str]] = [("year", f"eq.{year}")]
        if user_id:
            filters.append(("user_id", f"eq.{user_id}"))
        rows, _ = self.client.select(
            table="individual_targets",
            select="id,user_id,year,month,target_gp",
            filters=filters,
            order="month.asc",
            limit=MAX_QUERY_ROWS,
        )
        return [IndividualTargetRecord.model_validate(row) for row in rows]

    def upsert_individual_targets(self, rows: List[Dict[str, Any]]) -> List[IndividualTargetRecord]:
        saved = self.client.insert(
            table="individual_targets",
            payload=rows,
            upsert=True,
            on_conflict="user_id,year,month",
        )
        return [IndividualTargetRecord.model_validate(row) for row in saved]
