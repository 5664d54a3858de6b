"""Query execution package."""

from bizledger.queries.executor import LedgerQuery, QueryExecutionError, QueryExecutor

__all__ = ["LedgerQuery", "QueryExecutionError", "QueryExecutor"]
