"""FastAPI entrypoint for the transactions dashboard HTTP endpoints."""

from __future__ import annotations

import logging
from datetime import date
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response

from backend.auth.token_auth import UnauthorizedError, get_user_from_token
from backend.factory import build_transaction_service
from backend.services.transaction_service import TransactionService
from shared import config as _config
from shared.models import (
    AuthenticatedUser,
    ErrorCode,
    ExportRequest,
    ServiceError,
    SortField,
    SortOrder,
    TransactionFilters,
    TransactionListRequest,
)


logger = logging.getLogger(__name__)


_STATUS_BY_ERROR_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.BACKEND_UNAVAILABLE: 503,
    ErrorCode.BACKEND_ERROR: 500,
}


@lru_cache(maxsize=1)
def get_transaction_service() -> TransactionService:
    """Create and cache the transaction service once per process."""

    return build_transaction_service()


def _extract_token(x_auth_token: str | None, authorization: str | None) -> str:
    if x_auth_token and x_auth_token.strip():
        return x_auth_token.strip()
    if not authorization:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    prefix = "Bearer "
    if not authorization.startswith(prefix):
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    token = authorization[len(prefix) :].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token


def _resolve_authenticated_user(
    x_auth_token: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> AuthenticatedUser:
    """Resolve the acting identity from `x-auth-token` or a bearer header."""

    token = _extract_token(x_auth_token, authorization)
    try:
        return get_user_from_token(token)
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail="Token is not valid") from exc


def _filters_from_query(
    category: str | None = None,
    status: str | None = None,
    user_id: str | None = None,
    search: str | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    min_amount: str | None = Query(default=None, alias="minAmount"),
    max_amount: str | None = Query(default=None, alias="maxAmount"),
) -> TransactionFilters:
    return TransactionFilters(
        category=category,
        status=status,
        user_id=user_id,
        search=search,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
    )


def _raise_for_service_error(result: object) -> None:
    if isinstance(result, ServiceError):
        raise HTTPException(status_code=_STATUS_BY_ERROR_CODE.get(result.code, 500), detail=result.message)


app = FastAPI(title="Transactions Dashboard API")

ALLOW_ORIGINS = _config.cors_allow_origins()


@app.middleware("http")
async def log_http_requests(request: Request, call_next):
    """Log incoming requests, HTTP status codes and unexpected errors."""

    logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise

    logger.info(
        "http_response_sent method=%s path=%s status_code=%s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info("cors_allow_origins=%s", ALLOW_ORIGINS)


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for unhandled exceptions."""

    logger.exception(
        "unhandled_exception method=%s path=%s exception_type=%s message=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/api/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""

    return {"status": "OK", "message": "Server is running"}


@app.get("/api/transactions")
def list_transactions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    sort_by: SortField = Query(default=SortField.DATE, alias="sortBy"),
    sort_order: SortOrder = Query(default=SortOrder.DESC, alias="sortOrder"),
    filters: TransactionFilters = Depends(_filters_from_query),
    user: AuthenticatedUser = Depends(_resolve_authenticated_user),
) -> Any:
    """Return one page of filtered, sorted transactions with pagination metadata."""

    logger.info("transactions_list_requested user_id=%s page=%s limit=%s", user.id, page, limit)
    result = get_transaction_service().list_transactions(
        TransactionListRequest(filters=filters, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    )
    _raise_for_service_error(result)
    return jsonable_encoder(result)


@app.get("/api/transactions/stats")
def get_transaction_stats(
    filters: TransactionFilters = Depends(_filters_from_query),
    user: AuthenticatedUser = Depends(_resolve_authenticated_user),
) -> Any:
    """Return dashboard statistics for the filtered transactions."""

    logger.info("transactions_stats_requested user_id=%s", user.id)
    result = get_transaction_service().get_statistics(filters)
    _raise_for_service_error(result)
    return jsonable_encoder(result)


@app.get("/api/transactions/stats/report.pdf")
def get_transaction_stats_report(
    filters: TransactionFilters = Depends(_filters_from_query),
    user: AuthenticatedUser = Depends(_resolve_authenticated_user),
) -> Response:
    logger.info("transactions_report_requested user_id=%s", user.id)
    result = get_transaction_service().build_dashboard_report(filters)
    _raise_for_service_error(result)
    return Response(
        content=result,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="dashboard-report-{date.today().isoformat()}.pdf"'},
    )


@app.get("/api/transactions/filters")
def get_filter_options(user: AuthenticatedUser = Depends(_resolve_authenticated_user)) -> Any:
    """Return distinct categories, statuses and user ids across all transactions."""

    result = get_transaction_service().get_filter_options()
    _raise_for_service_error(result)
    return jsonable_encoder(result)


@app.post("/api/transactions/export")
def export_transactions(
    payload: ExportRequest,
    user: AuthenticatedUser = Depends(_resolve_authenticated_user),
) -> Response:
    """Return filtered transactions as a CSV download."""

    logger.info("transactions_export_requested user_id=%s columns=%s", user.id, len(payload.columns))
    result = get_transaction_service().export_csv(payload)
    _raise_for_service_error(result)
    return Response(
        content=result,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=transactions-{date.today().isoformat()}.csv"},
    )
