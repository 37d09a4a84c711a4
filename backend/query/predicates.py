"""Typed predicates evaluated against transactions.

A predicate is one of four node kinds: an exact match on a field, an
inclusive range on a field, a case-insensitive substring test over several
fields (OR), or a conjunction of other predicates (AND). Storage adapters
either evaluate ``matches`` in process or translate the nodes to their own
query language.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterator

from shared.models import Transaction
from shared.text_utils import format_amount_text, format_date_text


SEARCH_FIELDS: tuple[str, ...] = ("id", "user_id", "category", "status", "user_profile", "amount", "date")


def field_text(transaction: Transaction, field: str) -> str:
    """Return the fixed text form of a transaction field used by search."""

    value = getattr(transaction, field)
    if field == "amount":
        return format_amount_text(value)
    if field == "date":
        return format_date_text(value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True, slots=True)
class ExactMatch:
    field: str
    value: str

    def matches(self, transaction: Transaction) -> bool:
        actual = getattr(transaction, self.field)
        if isinstance(actual, Enum):
            actual = actual.value
        return actual == self.value


@dataclass(frozen=True, slots=True)
class Range:
    """Inclusive bounds; either side may be open."""

    field: str
    lower: datetime | Decimal | None = None
    upper: datetime | Decimal | None = None

    def matches(self, transaction: Transaction) -> bool:
        actual = getattr(transaction, self.field)
        if self.lower is not None and actual < self.lower:
            return False
        if self.upper is not None and actual > self.upper:
            return False
        return True


@dataclass(frozen=True, slots=True)
class SubstringAny:
    term: str
    fields: tuple[str, ...] = SEARCH_FIELDS

    def matches(self, transaction: Transaction) -> bool:
        needle = self.term.casefold()
        return any(needle in field_text(transaction, field).casefold() for field in self.fields)


@dataclass(frozen=True, slots=True)
class Conjunction:
    clauses: tuple["Predicate", ...] = ()

    def matches(self, transaction: Transaction) -> bool:
        return all(clause.matches(transaction) for clause in self.clauses)


Predicate = ExactMatch | Range | SubstringAny | Conjunction

MATCH_ALL = Conjunction(())


def and_(*predicates: Predicate) -> Conjunction:
    """Combine predicates with AND, flattening nested conjunctions."""

    return Conjunction(tuple(iter_clauses(Conjunction(tuple(predicates)))))


def iter_clauses(predicate: Predicate) -> Iterator[ExactMatch | Range | SubstringAny]:
    """Yield the leaf clauses of a predicate, descending into conjunctions."""

    if isinstance(predicate, Conjunction):
        for clause in predicate.clauses:
            yield from iter_clauses(clause)
        return
    yield predicate
