"""Transactions repository adapters.

Both adapters execute the typed predicates built by ``backend.query``.
Sorting is a total order: the requested field, then ``id`` ascending.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal
import logging
from typing import Protocol

from backend.db.supabase_client import SupabaseClient
from backend.query.predicates import ExactMatch, Predicate, Range, SubstringAny, iter_clauses
from shared.models import DISTINCT_VALUE_FIELDS, SortField, SortOrder, Transaction
from shared.text_utils import format_amount_text


logger = logging.getLogger(__name__)


GROUP_KEYS: frozenset[str] = frozenset({"category", "status", "user_id", "year", "month"})

GroupRow = tuple[tuple[object, ...], Decimal, int]


class TransactionsRepository(Protocol):
    def list_transactions(
        self,
        predicate: Predicate,
        *,
        sort_field: SortField = SortField.DATE,
        sort_order: SortOrder = SortOrder.DESC,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Transaction], int]:
        """Return one page of matching transactions plus the unpaginated match count."""

    def count_transactions(self, predicate: Predicate) -> int:
        """Return how many transactions match the predicate."""

    def distinct_values(self, field: str) -> set[str]:
        """Return distinct values of `category`, `status` or `user_id` over the whole collection."""

    def group_transactions(self, predicate: Predicate, group_keys: Sequence[str]) -> list[GroupRow]:
        """Return (key, sum(amount), count) per group, sorted ascending by key."""


def _sort_value(transaction: Transaction, sort_field: SortField) -> object:
    value = getattr(transaction, sort_field.value)
    if sort_field in {SortField.CATEGORY, SortField.STATUS}:
        return value.value
    return value


def sort_transactions(
    rows: Iterable[Transaction],
    sort_field: SortField,
    sort_order: SortOrder,
) -> list[Transaction]:
    """Sort on the requested field; ties keep ``id`` ascending in both directions."""

    ordered = sorted(rows, key=lambda row: row.id)
    ordered.sort(key=lambda row: _sort_value(row, sort_field), reverse=sort_order == SortOrder.DESC)
    return ordered


def paginate(rows: Sequence[Transaction], page: int, page_size: int) -> list[Transaction]:
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be >= 1")
    start = (page - 1) * page_size
    return list(rows[start : start + page_size])


def _validate_group_keys(group_keys: Sequence[str]) -> None:
    if not group_keys:
        raise ValueError("At least one group key is required")
    unknown = [key for key in group_keys if key not in GROUP_KEYS]
    if unknown:
        raise ValueError(f"Unsupported group keys: {', '.join(unknown)}")


def _group_value(transaction: Transaction, key: str) -> object:
    if key == "year":
        return transaction.date.year
    if key == "month":
        return transaction.date.month
    value = getattr(transaction, key)
    return getattr(value, "value", value)


def group_rows(rows: Iterable[Transaction], group_keys: Sequence[str]) -> list[GroupRow]:
    _validate_group_keys(group_keys)
    totals: dict[tuple[object, ...], tuple[Decimal, int]] = {}
    for row in rows:
        key = tuple(_group_value(row, group_key) for group_key in group_keys)
        total, count = totals.get(key, (Decimal("0"), 0))
        totals[key] = (total + row.amount, count + 1)
    return [(key, total, count) for key, (total, count) in sorted(totals.items())]


def _validate_distinct_field(field: str) -> None:
    if field not in DISTINCT_VALUE_FIELDS:
        raise ValueError(f"Distinct values are not available for field: {field}")


class InMemoryTransactionsRepository:
    """Read-only snapshot of transactions, replaced wholesale by ``load_transactions``."""

    def __init__(self, transactions: Iterable[Transaction] | None = None) -> None:
        self._rows: tuple[Transaction, ...] = ()
        if transactions is not None:
            self.load_transactions(transactions)

    def load_transactions(self, transactions: Iterable[Transaction]) -> int:
        """Bulk-load the collection, replacing any previous content."""

        rows = tuple(transactions)
        seen_ids: set[int] = set()
        for row in rows:
            if row.id in seen_ids:
                raise ValueError(f"Duplicate transaction id: {row.id}")
            seen_ids.add(row.id)

        self._rows = rows
        logger.info("transactions_store_loaded count=%s", len(rows))
        return len(rows)

    def _filter_rows(self, predicate: Predicate) -> list[Transaction]:
        return [row for row in self._rows if predicate.matches(row)]

    def list_transactions(
        self,
        predicate: Predicate,
        *,
        sort_field: SortField = SortField.DATE,
        sort_order: SortOrder = SortOrder.DESC,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Transaction], int]:
        rows = sort_transactions(self._filter_rows(predicate), sort_field, sort_order)
        return paginate(rows, page, page_size), len(rows)

    def count_transactions(self, predicate: Predicate) -> int:
        return sum(1 for row in self._rows if predicate.matches(row))

    def distinct_values(self, field: str) -> set[str]:
        _validate_distinct_field(field)
        return {str(_group_value(row, field)) for row in self._rows}

    def group_transactions(self, predicate: Predicate, group_keys: Sequence[str]) -> list[GroupRow]:
        return group_rows(self._filter_rows(predicate), group_keys)


class SupabaseTransactionsRepository:
    """PostgREST repository; exact/range clauses run server-side, search runs in process."""

    _SELECT = "id,date,amount,category,status,user_id,user_profile"
    # Supabase caps responses at 1000 rows (PostgREST max-rows).
    DEFAULT_BATCH_SIZE = 1000

    def __init__(
        self,
        client: SupabaseClient,
        *,
        table: str = "transactions",
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._client = client
        self._table = table
        self._batch_size = batch_size

    def _fetch_all_rows(self, query: list[tuple[str, str | int]]) -> list[dict[str, object]]:
        """Read every row for ``query`` in limit/offset batches until a short batch."""

        collected: list[dict[str, object]] = []
        offset = 0
        while True:
            batch_query = [*query, ("limit", self._batch_size), ("offset", offset)]
            rows, _ = self._client.get_rows(table=self._table, query=batch_query, with_count=False)
            collected.extend(rows)
            if len(rows) < self._batch_size:
                return collected
            offset += self._batch_size

    @staticmethod
    def _format_bound(value: datetime | Decimal) -> str:
        if isinstance(value, datetime):
            return value.isoformat()
        return format_amount_text(value)

    def _build_query(self, predicate: Predicate) -> tuple[list[tuple[str, str | int]], list[SubstringAny]]:
        query: list[tuple[str, str | int]] = []
        residual: list[SubstringAny] = []

        for clause in iter_clauses(predicate):
            if isinstance(clause, ExactMatch):
                query.append((clause.field, f"eq.{clause.value}"))
            elif isinstance(clause, Range):
                if clause.lower is not None:
                    query.append((clause.field, f"gte.{self._format_bound(clause.lower)}"))
                if clause.upper is not None:
                    query.append((clause.field, f"lte.{self._format_bound(clause.upper)}"))
            else:
                residual.append(clause)

        return query, residual

    @staticmethod
    def _order(sort_field: SortField, sort_order: SortOrder) -> str:
        if sort_field == SortField.ID:
            return f"id.{sort_order.value}"
        return f"{sort_field.value}.{sort_order.value},id.asc"

    @staticmethod
    def _parse_row(row: dict[str, object]) -> Transaction:
        if row.get("id") is None:
            raise ValueError("Missing required field 'id' in transactions row")

        raw_amount = row.get("amount")
        return Transaction.model_validate(
            {
                "id": row.get("id"),
                "date": row.get("date"),
                "amount": Decimal(str(raw_amount)) if raw_amount is not None else None,
                "category": row.get("category"),
                "status": row.get("status"),
                "user_id": row.get("user_id"),
                "user_profile": row.get("user_profile"),
            }
        )

    def _fetch_matching(
        self,
        predicate: Predicate,
        *,
        order: str | None = None,
    ) -> list[Transaction]:
        base_query, residual = self._build_query(predicate)
        # Batches need a total order to neither skip nor repeat rows.
        query = [*base_query, ("select", self._SELECT), ("order", order or "id.asc")]
        items = [self._parse_row(row) for row in self._fetch_all_rows(query)]
        return [item for item in items if all(clause.matches(item) for clause in residual)]

    def list_transactions(
        self,
        predicate: Predicate,
        *,
        sort_field: SortField = SortField.DATE,
        sort_order: SortOrder = SortOrder.DESC,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Transaction], int]:
        order = self._order(sort_field, sort_order)
        base_query, residual = self._build_query(predicate)

        # Pages larger than one batch would be truncated by the server row cap.
        if residual or page_size > self._batch_size:
            matching = self._fetch_matching(predicate, order=order)
            return paginate(matching, page, page_size), len(matching)

        query = [
            *base_query,
            ("select", self._SELECT),
            ("order", order),
            ("limit", page_size),
            ("offset", (page - 1) * page_size),
        ]
        rows, total = self._client.get_rows(table=self._table, query=query, with_count=True)
        items = [self._parse_row(row) for row in rows]
        if total is None:
            total = self.count_transactions(predicate)
        return items, total

    def count_transactions(self, predicate: Predicate) -> int:
        base_query, residual = self._build_query(predicate)
        if not residual:
            query = [*base_query, ("select", "id"), ("limit", 1)]
            _, total = self._client.get_rows(table=self._table, query=query, with_count=True)
            if total is not None:
                return total
        return len(self._fetch_matching(predicate))

    def distinct_values(self, field: str) -> set[str]:
        _validate_distinct_field(field)
        rows = self._fetch_all_rows([("select", field), ("order", "id.asc")])
        return {str(row[field]) for row in rows if row.get(field) is not None}

    def group_transactions(self, predicate: Predicate, group_keys: Sequence[str]) -> list[GroupRow]:
        _validate_group_keys(group_keys)
        return group_rows(self._fetch_matching(predicate), group_keys)
