"""Filter parameters to predicate translation."""

from backend.query.builder import QueryValidationError, build_predicate, build_predicate_from_params
from backend.query.predicates import (
    MATCH_ALL,
    SEARCH_FIELDS,
    Conjunction,
    ExactMatch,
    Predicate,
    Range,
    SubstringAny,
    and_,
    iter_clauses,
)

__all__ = [
    "MATCH_ALL",
    "SEARCH_FIELDS",
    "Conjunction",
    "ExactMatch",
    "Predicate",
    "QueryValidationError",
    "Range",
    "SubstringAny",
    "and_",
    "build_predicate",
    "build_predicate_from_params",
    "iter_clauses",
]
