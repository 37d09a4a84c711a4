"""Composition root for backend services."""

from __future__ import annotations

import logging
from pathlib import Path

from backend.db.supabase_client import SupabaseClient, SupabaseSettings
from backend.repositories.seed_loader import load_seed_file
from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    SupabaseTransactionsRepository,
    TransactionsRepository,
)
from backend.services.transaction_service import TransactionService
from shared import config


logger = logging.getLogger(__name__)


def build_transactions_repository() -> TransactionsRepository:
    """Return the Supabase repository when configured, else a seeded in-memory store.

    The in-memory store is fully bulk-loaded before it is returned.
    """

    supabase_url = config.supabase_url()
    supabase_key = config.supabase_service_role_key()
    if supabase_url and supabase_key:
        client = SupabaseClient(settings=SupabaseSettings(url=supabase_url, service_role_key=supabase_key))
        logger.info("transactions_repository=supabase table=%s", config.supabase_transactions_table())
        return SupabaseTransactionsRepository(client=client, table=config.supabase_transactions_table())

    repository = InMemoryTransactionsRepository()
    seed_path = Path(config.transactions_seed_path())
    if seed_path.is_file():
        repository.load_transactions(load_seed_file(seed_path))
    else:
        logger.warning("transactions_seed_missing path=%s; starting with an empty store", seed_path)
    return repository


def build_transaction_service() -> TransactionService:
    return TransactionService(transactions_repository=build_transactions_repository())
