"""Tests for CSV export of filtered transactions."""

from __future__ import annotations

import pytest

from backend.query import MATCH_ALL, QueryValidationError, build_predicate
from backend.repositories.transactions_repository import InMemoryTransactionsRepository
from backend.services.export import export_transactions_csv, validate_export_columns
from shared.models import DEFAULT_EXPORT_COLUMNS, TransactionFilters
from tests.fakes import larger_transactions, make_transaction, sample_transactions


def test_export_selected_columns_newest_first() -> None:
    repository = InMemoryTransactionsRepository(sample_transactions())

    assert export_transactions_csv(repository, MATCH_ALL, ["id", "amount"]) == "id,amount\n2,50\n1,100\n"


def test_export_default_columns_render_dates_as_calendar_days() -> None:
    repository = InMemoryTransactionsRepository([make_transaction(3, date="2024-05-06T23:30:00+00:00", amount="12.50")])

    csv_text = export_transactions_csv(repository, MATCH_ALL, list(DEFAULT_EXPORT_COLUMNS))

    assert csv_text == "id,date,amount,category,status,user_id\n3,2024-05-06,12.5,Revenue,Paid,u1\n"


def test_export_respects_filters_and_includes_every_match() -> None:
    repository = InMemoryTransactionsRepository(larger_transactions())

    csv_text = export_transactions_csv(
        repository,
        build_predicate(TransactionFilters(category="Expense")),
        ["id"],
    )

    assert csv_text.splitlines() == ["id", "2", "5", "7", "4"]


def test_export_with_no_match_returns_header_only() -> None:
    repository = InMemoryTransactionsRepository(sample_transactions())

    csv_text = export_transactions_csv(repository, build_predicate(TransactionFilters(user_id="nobody")), ["id", "status"])

    assert csv_text == "id,status\n"


def test_export_quotes_values_containing_separators() -> None:
    repository = InMemoryTransactionsRepository([make_transaction(1, user_profile='Doe, "JD"')])

    csv_text = export_transactions_csv(repository, MATCH_ALL, ["user_profile"])

    assert csv_text == 'user_profile\n"Doe, ""JD"""\n'


def test_empty_column_list_is_rejected() -> None:
    with pytest.raises(QueryValidationError, match="At least one column") as error:
        validate_export_columns([])

    assert error.value.field == "columns"


def test_unknown_columns_are_rejected() -> None:
    with pytest.raises(QueryValidationError, match="Unknown export columns: password"):
        validate_export_columns(["id", "password"])
