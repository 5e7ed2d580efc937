from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import get_billing_service
from src.core.errors import BadRequestError, NotFoundError
from src.schemas.billing import (
    BillingSummary,
    BillingTotals,
    BillingUpload,
    BillingUploadCreateRequest,
    ProcessBillingUploadRequest,
    ProcessBillingUploadResult,
)

MANAGER = {"Authorization": "Bearer manager-token"}


class FakeBillingService:
    processed: List[tuple] = []

    def process_upload(
        self, request: ProcessBillingUploadRequest, caller_id: Optional[str] = None
    ) -> ProcessBillingUploadResult:
        if request.upload_id == "missing":
            raise NotFoundError("Billing upload not found")
        if request.upload_id == "empty":
            raise BadRequestError("Invalid or empty CSV data")
        self.processed.append((request.upload_id, request.month, request.year, caller_id))
        return ProcessBillingUploadResult(
            success=True, records_processed=2, message="Successfully processed 2 billing records"
        )

    def create_upload(self, request: BillingUploadCreateRequest, caller_id: str) -> BillingUpload:
        return BillingUpload(
            id="upload-1",
            month=request.month,
            year=request.year,
            file_name=request.file_name,
            uploaded_by_user_id=caller_id,
            row_count=len(request.rows or []),
        )

    def get_summary(self, year: int, month: Optional[int] = None) -> BillingSummary:
        return BillingSummary(
            year=year,
            month=month,
            totals=BillingTotals(total_revenue=10, total_gp=5, total_np=2, target_gp=20, remaining=15),
            teams=[],
            roles=[],
        )


def make_client(app: FastAPI) -> TestClient:
    FakeBillingService.processed = []
    app.dependency_overrides[get_billing_service] = FakeBillingService
    return TestClient(app, raise_server_exceptions=False)


def test_process_upload_returns_record_count(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/billing/process-upload",
        json={"uploadId": "X", "month": 3, "year": 2025},
        headers=MANAGER,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "recordsProcessed": 2,
        "message": "Successfully processed 2 billing records",
    }
    assert FakeBillingService.processed == [("X", 3, 2025, "user-manager")]


def test_process_upload_requires_manager_role(app: FastAPI) -> None:
    client = make_client(app)
    response = client.post(
        "/api/v1/billing/process-upload",
        json={"uploadId": "X", "month": 3, "year": 2025},
        headers={"Authorization": "Bearer bd-token"},
    )
    assert response.status_code == 403
    assert FakeBillingService.processed == []


def test_process_upload_error_envelopes(app: FastAPI) -> None:
    client = make_client(app)
    missing = client.post(
        "/api/v1/billing/process-upload", json={"uploadId": "missing", "month": 3, "year": 2025}, headers=MANAGER
    )
    empty = client.post(
        "/api/v1/billing/process-upload", json={"uploadId": "empty", "month": 3, "year": 2025}, headers=MANAGER
    )
    bad_month = client.post(
        "/api/v1/billing/process-upload", json={"uploadId": "X", "month": 13, "year": 2025}, headers=MANAGER
    )

    assert missing.status_code == 404
    assert empty.status_code == 400
    assert empty.json()["error"]["message"] == "Invalid or empty CSV data"
    assert bad_month.status_code == 400
    assert bad_month.json()["error"]["code"] == "validation_error"


def test_create_upload_requires_exactly_one_source(app: FastAPI) -> None:
    client = make_client(app)
    ok = client.post(
        "/api/v1/billing/uploads",
        json={"month": 3, "year": 2025, "fileName": "march.csv", "rows": [{"Name": "John Smith", "GP": "1"}]},
        headers=MANAGER,
    )
    neither = client.post(
        "/api/v1/billing/uploads",
        json={"month": 3, "year": 2025, "fileName": "march.csv"},
        headers=MANAGER,
    )

    assert ok.status_code == 200
    assert ok.json()["data"]["rowCount"] == 1
    assert ok.json()["data"]["uploadedByUserId"] == "user-manager"
    assert neither.status_code == 400


def test_summary_is_enveloped(app: FastAPI) -> None:
    client = make_client(app)
    response = client.get("/api/v1/billing/summary?year=2025&month=3", headers=MANAGER)

    assert response.status_code == 200
    payload = response.json()
    assert payload["data"]["totals"]["remaining"] == 15
    assert payload["meta"]["timeWindow"] == "2025-03"
    assert payload["meta"]["currency"] == "GBP"
