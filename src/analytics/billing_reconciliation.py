from __future__ import annotations

import csv
import io
import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from src.core.errors import BadRequestError
from src.models.profiles import ProfileRecord

logger = logging.getLogger(__name__)

NAME_ALIASES = ("name", "employee", "person", "worker", "salesperson")
REVENUE_ALIASES = ("revenue", "rev")
GP_ALIASES = ("gp", "grossprofit", "gross")
NP_ALIASES = ("np", "netprofit", "net")
CURRENCY_ALIASES = ("currency", "curr", "ccy")

DEFAULT_CURRENCY = "GBP"
ZERO = Decimal("0")

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_AMOUNT_NOISE = re.compile(r"[,\s£$€]")
_NAME_SPLIT = re.compile(r"[\s.]+")

RateLookup = Callable[[str], Decimal]


@dataclass(frozen=True)
class BillingColumns:
    name: str
    revenue: Optional[str] = None
    gp: Optional[str] = None
    np: Optional[str] = None
    currency: Optional[str] = None


@dataclass
class PersonTotals:
    revenue_gbp: Decimal = ZERO
    gp_gbp: Decimal = ZERO
    np_gbp: Decimal = ZERO


@dataclass
class BillingAggregation:
    totals: Dict[str, PersonTotals] = field(default_factory=dict)
    rows_read: int = 0
    rows_matched: int = 0
    unmatched_names: List[str] = field(default_factory=list)


def normalize_column_name(name: str) -> str:
    return _NON_ALNUM.sub("", str(name).strip().lower())


def collect_headers(rows: Iterable[Mapping[str, Any]]) -> List[str]:
    """Header keys in first-seen order across all rows."""
    seen: Dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            seen.setdefault(key, None)
    return list(seen)


def _find_column(headers: Sequence[str], aliases: Sequence[str]) -> Optional[str]:
    normalized = [normalize_column_name(header) for header in headers]
    for alias in aliases:
        wanted = normalize_column_name(alias)
        for header, candidate in zip(headers, normalized):
            if candidate == wanted:
                return header
    return None


def resolve_columns(headers: Sequence[str]) -> BillingColumns:
    name_column = _find_column(headers, NAME_ALIASES)
    if name_column is None:
        raise BadRequestError(
            "Could not find name column in CSV. Looking for: " + ", ".join(NAME_ALIASES)
        )
    return BillingColumns(
        name=name_column,
        revenue=_find_column(headers, REVENUE_ALIASES),
        gp=_find_column(headers, GP_ALIASES),
        np=_find_column(headers, NP_ALIASES),
        currency=_find_column(headers, CURRENCY_ALIASES),
    )


def parse_amount(value: object) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    raw = str(value)
    if "," in raw and "." in raw and raw.rfind(",") > raw.rfind("."):
        # "1.234,50" style decimal comma; dropping the comma would shift the value.
        logger.warning("Amount %r uses a decimal comma, treated as zero", value)
        return ZERO
    text = _AMOUNT_NOISE.sub("", raw)
    if not text:
        return ZERO
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    try:
        amount = Decimal(text)
    except InvalidOperation:
        logger.warning("Unparseable amount %r treated as zero", value)
        return ZERO
    if not amount.is_finite():
        return ZERO
    return -amount if negative else amount


def _normalize_name(value: str) -> str:
    return " ".join(value.lower().split())


def _initials_match(left: str, right: str) -> bool:
    # "J Smith" / "J. Smith" against "John Smith": same token count, at least one token
    # abbreviated to its initial, everything else identical.
    left_tokens = [token for token in _NAME_SPLIT.split(left) if token]
    right_tokens = [token for token in _NAME_SPLIT.split(right) if token]
    if len(left_tokens) < 2 or len(left_tokens) != len(right_tokens):
        return False
    abbreviated = False
    for left_token, right_token in zip(left_tokens, right_tokens):
        if left_token == right_token:
            continue
        if len(left_token) == 1 and right_token.startswith(left_token):
            abbreviated = True
            continue
        if len(right_token) == 1 and left_token.startswith(right_token):
            abbreviated = True
            continue
        return False
    return abbreviated


def names_match(row_name: str, profile_name: str) -> bool:
    row_value = _normalize_name(row_name)
    profile_value = _normalize_name(profile_name)
    if not row_value or not profile_value:
        return False
    if row_value in profile_value or profile_value in row_value:
        return True
    return _initials_match(row_value, profile_value)


def match_profile(row_name: str, profiles: Sequence[ProfileRecord]) -> Optional[ProfileRecord]:
    """First profile whose name matches wins; ambiguous names are not disambiguated."""
    for profile in profiles:
        if names_match(row_name, profile.name):
            return profile
    return None


def _cell(row: Mapping[str, Any], column: Optional[str]) -> Any:
    if column is None:
        return None
    return row.get(column)


def _row_currency(row: Mapping[str, Any], column: Optional[str]) -> str:
    raw = _cell(row, column)
    text = str(raw).strip().upper() if raw is not None else ""
    return text or DEFAULT_CURRENCY


def validate_file_data(file_data: object) -> List[Mapping[str, Any]]:
    if not isinstance(file_data, list) or not file_data:
        raise BadRequestError("Invalid or empty CSV data")
    rows = [row for row in file_data if isinstance(row, Mapping)]
    if not rows:
        raise BadRequestError("Invalid or empty CSV data")
    return rows


def aggregate_billing_rows(
    rows: Sequence[Mapping[str, Any]],
    profiles: Sequence[ProfileRecord],
    rate_for: RateLookup,
    base_currency: str = DEFAULT_CURRENCY,
) -> BillingAggregation:
    """Match rows to profiles, convert figures to the base currency and sum per person.

    ``rate_for`` is only consulted for non-base currencies and any error it raises
    propagates, so a failed lookup aborts the whole aggregation.
    """
    columns = resolve_columns(collect_headers(rows))
    logger.info(
        "Billing columns resolved: name=%s revenue=%s gp=%s np=%s currency=%s",
        columns.name,
        columns.revenue,
        columns.gp,
        columns.np,
        columns.currency,
    )

    result = BillingAggregation()
    totals: Dict[str, PersonTotals] = defaultdict(PersonTotals)
    for row in rows:
        name_value = str(_cell(row, columns.name) or "").strip()
        if not name_value:
            continue
        result.rows_read += 1

        profile = match_profile(name_value, profiles)
        if profile is None:
            logger.info("No profile match for: %s", name_value)
            result.unmatched_names.append(name_value)
            continue

        currency = _row_currency(row, columns.currency)
        rate = Decimal("1") if currency == base_currency else rate_for(currency)

        bucket = totals[profile.id]
        bucket.revenue_gbp += parse_amount(_cell(row, columns.revenue)) * rate
        bucket.gp_gbp += parse_amount(_cell(row, columns.gp)) * rate
        bucket.np_gbp += parse_amount(_cell(row, columns.np)) * rate
        result.rows_matched += 1

    result.totals = dict(totals)
    return result


def build_billing_records(
    totals: Mapping[str, PersonTotals],
    upload_id: str,
    month: int,
    year: int,
) -> List[Dict[str, Any]]:
    return [
        {
            "user_id": user_id,
            "month": month,
            "year": year,
            "revenue_gbp": float(person.revenue_gbp),
            "gp_gbp": float(person.gp_gbp),
            "np_gbp": float(person.np_gbp),
            "upload_id": upload_id,
        }
        for user_id, person in totals.items()
    ]


def parse_csv_rows(text: str) -> List[Dict[str, str]]:
    """Header-keyed rows from CSV text; blank lines and all-empty rows are dropped."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows: List[Dict[str, str]] = []
    for raw in reader:
        row = {str(key).strip(): (value or "").strip() for key, value in raw.items() if key is not None}
        if any(row.values()):
            rows.append(row)
    return rows
