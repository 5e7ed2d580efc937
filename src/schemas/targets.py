from __future__ import annotations

from typing import Dict, List

from pydantic import Field, field_validator

from src.shared.base import BaseSchema


class IndividualTargetsRequest(BaseSchema):
    months: Dict[int, float] = Field(default_factory=dict)

    @field_validator("months")
    @classmethod
    def _valid_months(cls, value: Dict[int, float]) -> Dict[int, float]:
        for month, target in value.items():
            if not 1 <= month <= 12:
                raise ValueError("Month keys must be between 1 and 12")
            if target < 0:
                raise ValueError("Targets cannot be negative")
        return value


class IndividualTargets(BaseSchema):
    user_id: str
    year: int
    months: Dict[int, float]
    quarters: List[float]
    total: float
