"""
Data Models Package

This package contains all Pydantic models used in BizLedger.
Everything stored, derived or logged conforms to these schemas.
"""

from bizledger.models.ledger import (
    DailyTotals,
    DueTotals,
    FinancialSummary,
    Goal,
    GoalCompletion,
    GoalInput,
    GoalStatus,
    PartySummary,
    Transaction,
    TransactionEdit,
    TransactionInput,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from bizledger.models.session import (
    BackupPayload,
    ImportSummary,
    Session,
    UserProfile,
)
from bizledger.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "DailyTotals",
    "DueTotals",
    "FinancialSummary",
    "Goal",
    "GoalCompletion",
    "GoalInput",
    "GoalStatus",
    "PartySummary",
    "Transaction",
    "TransactionEdit",
    "TransactionInput",
    "TransactionType",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Session and backup
    "BackupPayload",
    "ImportSummary",
    "Session",
    "UserProfile",
    # Activity models
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
]
