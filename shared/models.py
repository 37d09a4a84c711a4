"""Pydantic contracts shared across the store, services and HTTP layer."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel


JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ErrorCode(str, Enum):
    """Stable error codes returned at the service boundary."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    BACKEND_ERROR = "BACKEND_ERROR"


class ServiceError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: ErrorCode
    message: str
    details: dict[str, object] | None = None


class TransactionCategory(str, Enum):
    REVENUE = "Revenue"
    EXPENSE = "Expense"


class TransactionStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"


TRANSACTION_FIELDS: tuple[str, ...] = (
    "id",
    "date",
    "amount",
    "category",
    "status",
    "user_id",
    "user_profile",
)
DEFAULT_EXPORT_COLUMNS: tuple[str, ...] = ("id", "date", "amount", "category", "status", "user_id")
DISTINCT_VALUE_FIELDS: frozenset[str] = frozenset({"category", "status", "user_id"})


class Transaction(BaseModel):
    """A single financial transaction; category, not sign, gives the amount its meaning."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: int
    date: datetime
    amount: JsonDecimal
    category: TransactionCategory
    status: TransactionStatus
    user_id: str
    user_profile: str

    @field_validator("date")
    @classmethod
    def normalize_date_to_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortField(str, Enum):
    ID = "id"
    DATE = "date"
    AMOUNT = "amount"
    CATEGORY = "category"
    STATUS = "status"
    USER_ID = "user_id"
    USER_PROFILE = "user_profile"


class TransactionFilters(BaseModel):
    """Raw filter parameters as sent by the dashboard; parsed by the query builder."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: str | None = None
    status: str | None = None
    user_id: str | None = None
    search: str | None = None
    start_date: str | None = Field(default=None, alias="startDate")
    end_date: str | None = Field(default=None, alias="endDate")
    min_amount: str | None = Field(default=None, alias="minAmount")
    max_amount: str | None = Field(default=None, alias="maxAmount")

    @field_validator(
        "category",
        "status",
        "user_id",
        "search",
        "start_date",
        "end_date",
        "min_amount",
        "max_amount",
        mode="before",
    )
    @classmethod
    def coerce_scalar_to_text(cls, value: object) -> object:
        # JSON bodies may carry numbers for amount bounds.
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return value


class TransactionListRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    filters: TransactionFilters = Field(default_factory=TransactionFilters)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)
    sort_by: SortField = SortField.DATE
    sort_order: SortOrder = SortOrder.DESC


class PaginationInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class TransactionListResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transactions: list[Transaction]
    pagination: PaginationInfo


class StatsSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_revenue: JsonDecimal
    total_expenses: JsonDecimal
    net_profit: JsonDecimal
    total_transactions: int


class BreakdownItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(alias="_id")
    total: JsonDecimal
    count: int


class MonthlyTrendKey(BaseModel):
    model_config = ConfigDict(extra="forbid")

    year: int
    month: int
    category: TransactionCategory


class MonthlyTrendItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: MonthlyTrendKey = Field(alias="_id")
    total: JsonDecimal


class TransactionStatsResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    summary: StatsSummary
    category_breakdown: list[BreakdownItem]
    status_breakdown: list[BreakdownItem]
    monthly_trends: list[MonthlyTrendItem]


class FilterOptionsResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    categories: list[str]
    statuses: list[str]
    user_ids: list[str]


class ExportRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    columns: list[str] = Field(default_factory=lambda: list(DEFAULT_EXPORT_COLUMNS))
    filters: TransactionFilters = Field(default_factory=TransactionFilters)


class AuthenticatedUser(BaseModel):
    """Acting identity returned by token verification."""

    model_config = ConfigDict(extra="forbid")

    id: str
    email: str | None = None
