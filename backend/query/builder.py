"""Translate flat dashboard filter parameters into a typed predicate."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from pydantic import ValidationError

from backend.query.predicates import MATCH_ALL, ExactMatch, Predicate, Range, SubstringAny, and_
from shared.models import TransactionFilters
from shared.text_utils import parse_iso_datetime


_EXACT_FILTER_FIELDS: tuple[str, ...] = ("category", "status", "user_id")


class QueryValidationError(ValueError):
    """Raised when filter parameters cannot be turned into a predicate."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


def _clean(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


def _parse_date_bound(value: str, field_name: str, *, end_of_day: bool) -> datetime:
    try:
        parsed, date_only = parse_iso_datetime(value)
    except (ValueError, OverflowError) as exc:
        raise QueryValidationError(
            f"Invalid {field_name} format. Expected YYYY-MM-DD or an ISO date-time",
            field=field_name,
        ) from exc
    if end_of_day and date_only:
        if parsed.date() == date.max:
            return datetime.max.replace(tzinfo=timezone.utc)
        return parsed + timedelta(days=1) - timedelta(microseconds=1)
    return parsed


def _parse_amount_bound(value: str, field_name: str) -> Decimal:
    try:
        amount = Decimal(value.strip())
    except InvalidOperation as exc:
        raise QueryValidationError(f"Invalid {field_name}: expected a number", field=field_name) from exc
    if not amount.is_finite():
        raise QueryValidationError(f"Invalid {field_name}: expected a finite number", field=field_name)
    return amount


def build_predicate(filters: TransactionFilters) -> Predicate:
    """Return the AND of every supplied filter, with ``search`` as an OR group.

    No supplied filter yields ``MATCH_ALL``. Raises ``QueryValidationError``
    for malformed date or amount bounds.
    """

    clauses: list[Predicate] = []

    for field in _EXACT_FILTER_FIELDS:
        value = _clean(getattr(filters, field))
        if value is not None:
            clauses.append(ExactMatch(field=field, value=value))

    start_date = _clean(filters.start_date)
    end_date = _clean(filters.end_date)
    if start_date is not None or end_date is not None:
        clauses.append(
            Range(
                field="date",
                lower=_parse_date_bound(start_date, "startDate", end_of_day=False) if start_date else None,
                upper=_parse_date_bound(end_date, "endDate", end_of_day=True) if end_date else None,
            )
        )

    min_amount = _clean(filters.min_amount)
    max_amount = _clean(filters.max_amount)
    if min_amount is not None or max_amount is not None:
        clauses.append(
            Range(
                field="amount",
                lower=_parse_amount_bound(min_amount, "minAmount") if min_amount else None,
                upper=_parse_amount_bound(max_amount, "maxAmount") if max_amount else None,
            )
        )

    search = (filters.search or "").strip()
    if search:
        clauses.append(SubstringAny(term=search))

    if not clauses:
        return MATCH_ALL
    return and_(*clauses)


def build_predicate_from_params(params: Mapping[str, object]) -> Predicate:
    """Build a predicate from an untyped parameter mapping; unknown keys are ignored."""

    try:
        filters = TransactionFilters.model_validate(dict(params))
    except ValidationError as exc:
        raise QueryValidationError(f"Invalid filters: {exc.error_count()} invalid value(s)") from exc
    return build_predicate(filters)
