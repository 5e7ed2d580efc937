from __future__ import annotations

import logging
from typing import Dict

from src.core.errors import NotFoundError
from src.repositories.billing_repository import TargetsRepository
from src.repositories.profiles_repository import ProfilesRepository
from src.schemas.targets import IndividualTargets, IndividualTargetsRequest

logger = logging.getLogger(__name__)


def _as_targets(user_id: str, year: int, months: Dict[int, float]) -> IndividualTargets:
    full_year = {month: round(months.get(month, 0.0), 2) for month in range(1, 13)}
    quarters = [
        round(sum(full_year[month] for month in range(start, start + 3)), 2) for start in (1, 4, 7, 10)
    ]
    return IndividualTargets(
        user_id=user_id,
        year=year,
        months=full_year,
        quarters=quarters,
        total=round(sum(full_year.values()), 2),
    )


class TargetsService:
    def __init__(self, repository: TargetsRepository, profiles_repository: ProfilesRepository) -> None:
        self.repository = repository
        self.profiles_repository = profiles_repository

    def get_targets(self, user_id: str, year: int) -> IndividualTargets:
        months = {
            record.month: float(record.target_gp)
            for record in self.repository.list_individual_targets(year, user_id=user_id)
        }
        return _as_targets(user_id, year, months)

    def save_targets(self, user_id: str, year: int, request: IndividualTargetsRequest) -> IndividualTargets:
        """Upsert all twelve months; months left out of the request are saved as 0."""
        if self.profiles_repository.get_profile(user_id) is None:
            raise NotFoundError("User not found")
        rows = [
            {"user_id": user_id, "year": year, "month": month, "target_gp": request.months.get(month, 0.0)}
            for month in range(1, 13)
        ]
        saved = self.repository.upsert_individual_targets(rows)
        logger.info("Saved %s monthly targets for %s in %s", len(saved), user_id, year)
        return _as_targets(user_id, year, {record.month: float(record.target_gp) for record in saved})
