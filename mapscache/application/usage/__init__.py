"""Usage module: daily ledger, cost tables, field masks and session tokens."""

from .ledger import UsageLedger
from .costs import build_cost_table, optimized_fields, resolve_category
from .sessions import AutocompleteSessions

__all__ = [
    "UsageLedger",
    "AutocompleteSessions",
    "build_cost_table",
    "optimized_fields",
    "resolve_category",
]
