"""Ledger package: transaction store and party aggregation."""

from bizledger.ledger.parties import (
    aggregate_parties,
    party_transactions,
    search_parties,
)
from bizledger.ledger.store import (
    LedgerStore,
    calculate_balance,
    distinct_party_names,
)

__all__ = [
    "LedgerStore",
    "aggregate_parties",
    "calculate_balance",
    "distinct_party_names",
    "party_transactions",
    "search_parties",
]
