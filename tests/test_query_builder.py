"""Tests for turning dashboard filter parameters into predicates."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from backend.query import (
    MATCH_ALL,
    Conjunction,
    ExactMatch,
    QueryValidationError,
    Range,
    SubstringAny,
    build_predicate,
    build_predicate_from_params,
)
from shared.models import TransactionFilters
from tests.fakes import larger_transactions, make_transaction, sample_transactions


def _matching_ids(filters: TransactionFilters, transactions=None) -> list[int]:
    predicate = build_predicate(filters)
    rows = transactions if transactions is not None else sample_transactions()
    return [row.id for row in rows if predicate.matches(row)]


def test_no_filters_yields_match_all() -> None:
    predicate = build_predicate(TransactionFilters())

    assert predicate == MATCH_ALL
    assert all(predicate.matches(row) for row in sample_transactions())


def test_blank_values_are_treated_as_omitted() -> None:
    predicate = build_predicate(
        TransactionFilters(category="", status="  ", search="   ", startDate="", minAmount="")
    )

    assert predicate == MATCH_ALL


def test_filters_are_composed_into_a_single_conjunction() -> None:
    predicate = build_predicate(
        TransactionFilters(
            category="Expense",
            user_id="u2",
            startDate="2024-02-01",
            maxAmount="60",
            search="pend",
        )
    )

    assert isinstance(predicate, Conjunction)
    assert ExactMatch(field="category", value="Expense") in predicate.clauses
    assert ExactMatch(field="user_id", value="u2") in predicate.clauses
    assert Range(field="amount", lower=None, upper=Decimal("60")) in predicate.clauses
    assert SubstringAny(term="pend") in predicate.clauses
    date_range = next(clause for clause in predicate.clauses if isinstance(clause, Range) and clause.field == "date")
    assert date_range.lower == datetime(2024, 2, 1, tzinfo=timezone.utc)
    assert date_range.upper is None


def test_exact_filters_and_ranges_are_anded() -> None:
    assert _matching_ids(TransactionFilters(category="Expense")) == [2]
    assert _matching_ids(TransactionFilters(category="Expense", status="Paid")) == []
    assert _matching_ids(TransactionFilters(minAmount="60")) == [1]
    assert _matching_ids(TransactionFilters(minAmount="50", maxAmount="50")) == [2]


def test_date_bounds_are_inclusive_and_may_be_given_alone() -> None:
    assert _matching_ids(TransactionFilters(startDate="2024-02-10")) == [2]
    assert _matching_ids(TransactionFilters(endDate="2024-01-15")) == [1]
    assert _matching_ids(TransactionFilters(startDate="2024-01-15", endDate="2024-02-10")) == [1, 2]


def test_date_only_end_bound_covers_the_whole_day() -> None:
    late_evening = make_transaction(9, date="2024-01-15T23:59:30Z")

    assert _matching_ids(TransactionFilters(endDate="2024-01-15"), [late_evening]) == [9]
    assert _matching_ids(TransactionFilters(endDate="2024-01-15T12:00:00Z"), [late_evening]) == []


def test_malformed_date_is_rejected() -> None:
    with pytest.raises(QueryValidationError) as error:
        build_predicate(TransactionFilters(startDate="15/01/2024"))

    assert error.value.field == "startDate"
    assert "startDate" in str(error.value)


def test_last_representable_day_is_a_valid_end_bound() -> None:
    predicate = build_predicate(TransactionFilters(endDate="9999-12-31"))

    assert predicate == Conjunction((Range(field="date", lower=None, upper=datetime.max.replace(tzinfo=timezone.utc)),))
    assert _matching_ids(TransactionFilters(endDate="9999-12-31")) == [1, 2]


@pytest.mark.parametrize(
    ("field", "raw_value"),
    [("startDate", "0001-01-01T00:00:00+01:00"), ("endDate", "9999-12-31T23:00:00-05:00")],
)
def test_dates_outside_the_utc_range_are_rejected(field: str, raw_value: str) -> None:
    with pytest.raises(QueryValidationError) as error:
        build_predicate(TransactionFilters.model_validate({field: raw_value}))

    assert error.value.field == field


@pytest.mark.parametrize("raw_value", ["abc", "NaN", "Infinity"])
def test_malformed_amount_is_rejected(raw_value: str) -> None:
    with pytest.raises(QueryValidationError) as error:
        build_predicate(TransactionFilters(maxAmount=raw_value))

    assert error.value.field == "maxAmount"


def test_numeric_amount_bounds_from_json_bodies_are_accepted() -> None:
    filters = TransactionFilters.model_validate({"minAmount": 60, "maxAmount": 150.5})

    assert _matching_ids(filters) == [1]


def test_search_is_case_insensitive_over_text_fields() -> None:
    assert _matching_ids(TransactionFilters(search="REVENUE")) == [1]
    assert _matching_ids(TransactionFilters(search="pending")) == [2]
    assert _matching_ids(TransactionFilters(search="profile of u2")) == [2]


def test_search_matches_id_amount_and_date_text() -> None:
    transactions = [
        make_transaction(41, date="2023-11-05", amount="100.50", user_id="alpha"),
        make_transaction(7, date="2024-06-30", amount="12", user_id="beta"),
    ]

    assert _matching_ids(TransactionFilters(search="41"), transactions) == [41]
    assert _matching_ids(TransactionFilters(search="100.5"), transactions) == [41]
    assert _matching_ids(TransactionFilters(search="2024-06"), transactions) == [7]


def test_search_uses_fixed_amount_text_without_trailing_zeros() -> None:
    transactions = [make_transaction(1, amount="100.00", user_id="x", user_profile="x")]

    assert _matching_ids(TransactionFilters(search="100"), transactions) == [1]
    assert _matching_ids(TransactionFilters(search="100.0"), transactions) == []


def test_search_for_exact_user_id_always_returns_that_transaction() -> None:
    transactions = larger_transactions()

    for transaction in transactions:
        exact_ids = _matching_ids(TransactionFilters(user_id=transaction.user_id), transactions)
        search_ids = _matching_ids(TransactionFilters(search=transaction.user_id), transactions)
        assert transaction.id in search_ids
        assert set(exact_ids) <= set(search_ids)


def test_search_is_trimmed() -> None:
    assert build_predicate(TransactionFilters(search="  u1  ")) == Conjunction((SubstringAny(term="u1"),))


def test_unknown_parameters_are_ignored() -> None:
    predicate = build_predicate_from_params({"category": "Expense", "colour": "blue", "page": 3})

    assert predicate == Conjunction((ExactMatch(field="category", value="Expense"),))


def test_untyped_parameters_with_invalid_shapes_are_rejected() -> None:
    with pytest.raises(QueryValidationError):
        build_predicate_from_params({"category": ["Revenue", "Expense"]})
