"""Transaction service: the contract boundary used by the HTTP layer.

Each operation returns its typed result, or a ``ServiceError`` payload for
invalid input and store outages.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math

from backend.db.supabase_client import StoreUnavailableError
from backend.query.builder import QueryValidationError, build_predicate
from backend.reporting import BreakdownRow, DashboardReportData, MonthlyRow, generate_dashboard_report_pdf
from backend.repositories.transactions_repository import TransactionsRepository
from backend.services.export import export_transactions_csv
from backend.services.statistics import compute_statistics
from shared.models import (
    ErrorCode,
    ExportRequest,
    FilterOptionsResult,
    PaginationInfo,
    ServiceError,
    TransactionCategory,
    TransactionFilters,
    TransactionListRequest,
    TransactionListResult,
    TransactionStatsResult,
)


logger = logging.getLogger(__name__)


def _validation_error(exc: QueryValidationError) -> ServiceError:
    details = {"field": exc.field} if exc.field else None
    return ServiceError(code=ErrorCode.VALIDATION_ERROR, message=str(exc), details=details)


def _store_unavailable(operation: str) -> ServiceError:
    logger.exception("transactions_store_unavailable operation=%s", operation)
    return ServiceError(code=ErrorCode.BACKEND_UNAVAILABLE, message="Transaction store is unavailable")


def describe_filters(filters: TransactionFilters) -> str:
    """Return a short human-readable summary of the active filters."""

    active = filters.model_dump(by_alias=True, exclude_none=True)
    parts = [f"{name}={value}" for name, value in active.items() if str(value).strip()]
    return ", ".join(parts) or "none"


def build_report_data(stats: TransactionStatsResult, filters_label: str) -> DashboardReportData:
    months: dict[tuple[int, int], MonthlyRow] = {}
    for trend in stats.monthly_trends:
        period = (trend.key.year, trend.key.month)
        row = months.setdefault(period, MonthlyRow(label=f"{period[0]:04d}-{period[1]:02d}"))
        if trend.key.category == TransactionCategory.REVENUE:
            row.revenue += trend.total
        else:
            row.expenses += trend.total

    return DashboardReportData(
        filters_label=filters_label,
        total_revenue=stats.summary.total_revenue,
        total_expenses=stats.summary.total_expenses,
        net_profit=stats.summary.net_profit,
        transaction_count=stats.summary.total_transactions,
        categories=[BreakdownRow(name=item.key, amount=item.total, count=item.count) for item in stats.category_breakdown],
        statuses=[BreakdownRow(name=item.key, amount=item.total, count=item.count) for item in stats.status_breakdown],
        months=[months[period] for period in sorted(months)],
    )


@dataclass(slots=True)
class TransactionService:
    transactions_repository: TransactionsRepository

    def list_transactions(self, request: TransactionListRequest) -> TransactionListResult | ServiceError:
        try:
            predicate = build_predicate(request.filters)
            items, total = self.transactions_repository.list_transactions(
                predicate,
                sort_field=request.sort_by,
                sort_order=request.sort_order,
                page=request.page,
                page_size=request.limit,
            )
        except QueryValidationError as exc:
            return _validation_error(exc)
        except StoreUnavailableError:
            return _store_unavailable("list")

        return TransactionListResult(
            transactions=items,
            pagination=PaginationInfo(
                current_page=request.page,
                total_pages=math.ceil(total / request.limit),
                total_items=total,
                items_per_page=request.limit,
            ),
        )

    def get_statistics(self, filters: TransactionFilters) -> TransactionStatsResult | ServiceError:
        try:
            return compute_statistics(self.transactions_repository, build_predicate(filters))
        except QueryValidationError as exc:
            return _validation_error(exc)
        except StoreUnavailableError:
            return _store_unavailable("stats")

    def get_filter_options(self) -> FilterOptionsResult | ServiceError:
        try:
            categories = self.transactions_repository.distinct_values("category")
            statuses = self.transactions_repository.distinct_values("status")
            user_ids = self.transactions_repository.distinct_values("user_id")
        except StoreUnavailableError:
            return _store_unavailable("filters")

        return FilterOptionsResult(
            categories=sorted(categories),
            statuses=sorted(statuses),
            user_ids=sorted(user_ids),
        )

    def export_csv(self, request: ExportRequest) -> str | ServiceError:
        try:
            return export_transactions_csv(
                self.transactions_repository,
                build_predicate(request.filters),
                request.columns,
            )
        except QueryValidationError as exc:
            return _validation_error(exc)
        except StoreUnavailableError:
            return _store_unavailable("export")

    def build_dashboard_report(self, filters: TransactionFilters) -> bytes | ServiceError:
        stats = self.get_statistics(filters)
        if isinstance(stats, ServiceError):
            return stats
        return generate_dashboard_report_pdf(build_report_data(stats, describe_filters(filters)))
