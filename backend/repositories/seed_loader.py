"""Bulk-load transactions from a JSON seed file."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from shared.models import Transaction


logger = logging.getLogger(__name__)


class TransactionIngestionError(ValueError):
    """Raised when seed data contains a record that is not a valid transaction."""


def parse_seed_records(records: Any) -> list[Transaction]:
    """Validate raw seed records; category/status outside their enums are rejected here."""

    if not isinstance(records, list):
        raise TransactionIngestionError("Seed data must be a JSON array of transactions")

    transactions: list[Transaction] = []
    seen_ids: set[int] = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise TransactionIngestionError(f"Seed record #{index} is not an object")
        try:
            transaction = Transaction.model_validate(
                {
                    "id": record.get("id"),
                    "date": record.get("date"),
                    "amount": record.get("amount"),
                    "category": record.get("category"),
                    "status": record.get("status"),
                    "user_id": record.get("user_id"),
                    "user_profile": record.get("user_profile"),
                }
            )
        except ValidationError as exc:
            fields = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
            raise TransactionIngestionError(
                f"Seed record #{index} is invalid: {', '.join(fields) or 'unknown field'}"
            ) from exc

        if transaction.id in seen_ids:
            raise TransactionIngestionError(f"Seed record #{index} duplicates transaction id {transaction.id}")
        seen_ids.add(transaction.id)
        transactions.append(transaction)

    return transactions


def load_seed_file(path: str | Path) -> list[Transaction]:
    """Read and validate a seed file; amounts are parsed as exact decimals."""

    seed_path = Path(path)
    with seed_path.open("r", encoding="utf-8") as handle:
        records = json.load(handle, parse_float=Decimal)

    transactions = parse_seed_records(records)
    logger.info("transactions_seed_parsed path=%s count=%s", seed_path, len(transactions))
    return transactions
