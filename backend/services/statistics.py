"""Dashboard statistics over a filtered subset of transactions."""

from __future__ import annotations

from decimal import Decimal

from backend.query.predicates import Predicate
from backend.repositories.transactions_repository import GroupRow, TransactionsRepository
from shared.models import (
    BreakdownItem,
    MonthlyTrendItem,
    MonthlyTrendKey,
    StatsSummary,
    TransactionCategory,
    TransactionStatsResult,
    TransactionStatus,
)


def _ordered_breakdown(groups: list[GroupRow], order: list[str]) -> list[BreakdownItem]:
    by_key = {str(key[0]): (total, count) for key, total, count in groups}
    known = [value for value in order if value in by_key]
    extra = sorted(value for value in by_key if value not in order)
    return [
        BreakdownItem(key=value, total=by_key[value][0], count=by_key[value][1])
        for value in [*known, *extra]
    ]


def compute_statistics(repository: TransactionsRepository, predicate: Predicate) -> TransactionStatsResult:
    """Return summary totals, category/status breakdowns and monthly trends.

    An empty match yields zero totals and empty lists.
    """

    category_groups = repository.group_transactions(predicate, ["category"])
    status_groups = repository.group_transactions(predicate, ["status"])
    monthly_groups = repository.group_transactions(predicate, ["year", "month", "category"])

    category_breakdown = _ordered_breakdown(category_groups, [category.value for category in TransactionCategory])
    status_breakdown = _ordered_breakdown(status_groups, [status.value for status in TransactionStatus])

    totals = {item.key: (item.total, item.count) for item in category_breakdown}
    revenue_total, revenue_count = totals.get(TransactionCategory.REVENUE.value, (Decimal("0"), 0))
    expense_total, expense_count = totals.get(TransactionCategory.EXPENSE.value, (Decimal("0"), 0))

    monthly_trends = [
        MonthlyTrendItem(
            key=MonthlyTrendKey(year=int(year), month=int(month), category=TransactionCategory(category)),
            total=total,
        )
        for (year, month, category), total, _count in monthly_groups
    ]

    return TransactionStatsResult(
        summary=StatsSummary(
            total_revenue=revenue_total,
            total_expenses=expense_total,
            net_profit=revenue_total - expense_total,
            total_transactions=revenue_count + expense_count,
        ),
        category_breakdown=category_breakdown,
        status_breakdown=status_breakdown,
        monthly_trends=monthly_trends,
    )
