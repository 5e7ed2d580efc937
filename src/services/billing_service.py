from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional

from src.analytics.billing_reconciliation import (
    aggregate_billing_rows,
    build_billing_records,
    parse_csv_rows,
    validate_file_data,
)
from src.core.errors import BadRequestError, NotFoundError
from src.models.billing import BillingUploadRecord
from src.models.profiles import ProfileRecord
from src.repositories.billing_repository import BillingRepository
from src.repositories.profiles_repository import ProfilesRepository
from src.schemas.billing import (
    BillingSummary,
    BillingTarget,
    BillingTotals,
    BillingUpload,
    BillingUploadCreateRequest,
    PersonBilling,
    ProcessBillingUploadRequest,
    ProcessBillingUploadResult,
    RoleBillingLeaderboard,
    TeamBillingStats,
)
from src.services.exchange_rate_service import ExchangeRateService

logger = logging.getLogger(__name__)

BILLING_ROLE_GROUPS = ("BD", "DT", "360", "Manager", "CEO")
NO_TEAM = "No Team"


def _to_upload_schema(record: BillingUploadRecord) -> BillingUpload:
    # Listings select summary columns only, so the row count is unknown there.
    row_count = len(record.file_data) if isinstance(record.file_data, list) else None
    return BillingUpload(
        id=record.id,
        month=record.month,
        year=record.year,
        file_name=record.file_name,
        uploaded_by_user_id=record.uploaded_by_user_id,
        uploaded_at=record.uploaded_at,
        is_correction=record.is_correction,
        correction_reason=record.correction_reason,
        replaced_upload_id=record.replaced_upload_id,
        row_count=row_count,
    )


class BillingService:
    def __init__(
        self,
        repository: BillingRepository,
        profiles_repository: ProfilesRepository,
        exchange_rates: ExchangeRateService,
    ) -> None:
        self.repository = repository
        self.profiles_repository = profiles_repository
        self.exchange_rates = exchange_rates

    def process_upload(
        self, request: ProcessBillingUploadRequest, caller_id: Optional[str] = None
    ) -> ProcessBillingUploadResult:
        logger.info(
            "Processing upload %s for %s/%s by %s", request.upload_id, request.month, request.year, caller_id
        )
        upload = self.repository.get_upload(request.upload_id)
        if upload is None:
            raise NotFoundError("Billing upload not found")
        rows = validate_file_data(upload.file_data)

        profiles = self.profiles_repository.list_profiles(active_only=True)
        logger.info("Found %s profiles to match against", len(profiles))

        # Everything that can fail (columns, amounts, rates) happens before the first write.
        aggregation = aggregate_billing_rows(
            rows,
            profiles,
            rate_for=self.exchange_rates.run_lookup(),
            base_currency=self.exchange_rates.base_currency,
        )
        logger.info(
            "Aggregated data for %s people (%s of %s named rows matched)",
            len(aggregation.totals),
            aggregation.rows_matched,
            aggregation.rows_read,
        )
        records = build_billing_records(aggregation.totals, upload.id, request.month, request.year)

        replaced_ids = [upload.id]
        if upload.is_correction:
            # A correction replaces the whole month, including earlier corrections.
            replaced_ids = self.repository.list_upload_ids(upload.month, upload.year)
            if upload.id not in replaced_ids:
                replaced_ids.append(upload.id)
        self.repository.delete_records_for_uploads(replaced_ids)
        self.repository.insert_records(records)
        logger.info("Inserted %s billing records", len(records))

        return ProcessBillingUploadResult(
            success=True,
            records_processed=len(records),
            message=f"Successfully processed {len(records)} billing records",
        )

    def create_upload(self, request: BillingUploadCreateRequest, caller_id: str) -> BillingUpload:
        if request.is_correction and not (request.correction_reason or "").strip():
            raise BadRequestError("A correction reason is required for corrected uploads")
        rows = request.rows if request.rows is not None else parse_csv_rows(request.csv_text or "")
        validate_file_data(rows)

        original = (
            self.repository.find_original_upload(request.month, request.year) if request.is_correction else None
        )
        created = self.repository.create_upload(
            {
                "month": request.month,
                "year": request.year,
                "uploaded_by_user_id": caller_id,
                "file_name": request.file_name,
                "file_data": rows,
                "is_correction": request.is_correction,
                "correction_reason": request.correction_reason if request.is_correction else None,
                "replaced_upload_id": original.id if original else None,
            }
        )
        logger.info("Stored billing upload %s (%s rows) for %s/%s", created.id, len(rows), request.month, request.year)
        return _to_upload_schema(created)

    def list_uploads(self, year: int) -> List[BillingUpload]:
        return [_to_upload_schema(record) for record in self.repository.list_uploads(year)]

    def set_target(self, year: int, target_gp: float, caller_id: str) -> BillingTarget:
        saved = self.repository.upsert_billing_target(
            {"year": year, "target_gp": target_gp, "set_by_user_id": caller_id}
        )
        return BillingTarget(year=saved.year, target_gp=float(saved.target_gp), set_by_user_id=saved.set_by_user_id)

    def get_summary(self, year: int, month: Optional[int] = None) -> BillingSummary:
        records = self.repository.list_records(year, month)
        profiles: Dict[str, ProfileRecord] = {
            profile.id: profile for profile in self.profiles_repository.list_profiles(active_only=False)
        }
        target = self.repository.get_billing_target(year)
        target_gp = float(target.target_gp) if target else 0.0

        per_person: Dict[str, List[Decimal]] = defaultdict(lambda: [Decimal("0")] * 3)
        for record in records:
            revenue, gp, np = per_person[record.user_id]
            per_person[record.user_id] = [revenue + record.revenue_gbp, gp + record.gp_gbp, np + record.np_gbp]

        total_revenue = float(sum((values[0] for values in per_person.values()), Decimal("0")))
        total_gp = float(sum((values[1] for values in per_person.values()), Decimal("0")))
        total_np = float(sum((values[2] for values in per_person.values()), Decimal("0")))

        people: List[PersonBilling] = []
        team_totals: Dict[Optional[str], Dict[str, object]] = {}
        for user_id, (revenue, gp, np) in per_person.items():
            profile = profiles.get(user_id)
            team_id = profile.team_id if profile else None
            team_name = (profile.team_name if profile else None) or NO_TEAM
            people.append(
                PersonBilling(
                    user_id=user_id,
                    name=profile.name if profile else "Unknown",
                    role_type=profile.display_role if profile else "Unknown",
                    team_name=team_name,
                    revenue=float(revenue),
                    gp=float(gp),
                    np=float(np),
                )
            )
            bucket = team_totals.setdefault(
                team_id, {"team_name": team_name, "revenue": 0.0, "gp": 0.0, "np": 0.0}
            )
            bucket["revenue"] = float(bucket["revenue"]) + float(revenue)
            bucket["gp"] = float(bucket["gp"]) + float(gp)
            bucket["np"] = float(bucket["np"]) + float(np)

        teams = sorted(
            (
                TeamBillingStats(
                    team_id=team_id,
                    team_name=str(values["team_name"]),
                    revenue=float(values["revenue"]),
                    gp=float(values["gp"]),
                    np=float(values["np"]),
                    percentage=(float(values["gp"]) / total_gp * 100) if total_gp else 0.0,
                )
                for team_id, values in team_totals.items()
            ),
            key=lambda item: -item.gp,
        )

        roles: List[RoleBillingLeaderboard] = []
        for role in BILLING_ROLE_GROUPS:
            members = sorted((person for person in people if person.role_type == role), key=lambda item: -item.gp)
            if members:
                roles.append(RoleBillingLeaderboard(role=role, members=members))

        return BillingSummary(
            year=year,
            month=month,
            totals=BillingTotals(
                total_revenue=total_revenue,
                total_gp=total_gp,
                total_np=total_np,
                target_gp=target_gp,
                remaining=target_gp - total_gp,
            ),
            teams=teams,
            roles=roles,
        )
