"""CSV export of filtered transactions."""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence

from backend.query.builder import QueryValidationError
from backend.query.predicates import Predicate, field_text
from backend.repositories.transactions_repository import TransactionsRepository
from shared.models import TRANSACTION_FIELDS, SortField, SortOrder, Transaction


def validate_export_columns(columns: Sequence[str]) -> list[str]:
    """Return the columns unchanged, or raise when empty or not transaction fields."""

    if not columns:
        raise QueryValidationError("At least one column is required for export", field="columns")
    unknown = [column for column in columns if column not in TRANSACTION_FIELDS]
    if unknown:
        raise QueryValidationError(f"Unknown export columns: {', '.join(unknown)}", field="columns")
    return list(columns)


def render_csv(transactions: Sequence[Transaction], columns: Sequence[str]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for transaction in transactions:
        writer.writerow([field_text(transaction, column) for column in columns])
    return buffer.getvalue()


def export_transactions_csv(
    repository: TransactionsRepository,
    predicate: Predicate,
    columns: Sequence[str],
) -> str:
    """Return matching transactions as CSV, newest first, dates as ``YYYY-MM-DD``."""

    selected_columns = validate_export_columns(columns)
    total = repository.count_transactions(predicate)
    if total == 0:
        return render_csv([], selected_columns)

    transactions, _ = repository.list_transactions(
        predicate,
        sort_field=SortField.DATE,
        sort_order=SortOrder.DESC,
        page=1,
        page_size=total,
    )
    return render_csv(transactions, selected_columns)
