"""
Activity Models for BizLedger

Every state change in the ledger produces one structured activity event.
Events are written to the local structured log only.

DESIGN DECISION: Activity events are NOT persisted. The ledger keeps no
audit trail; these exist so operators can follow what happened in the logs.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ActivityEventType(str, Enum):
    """Types of events we log."""
    # Transactions
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_SETTLED = "transaction_settled"
    TRANSACTION_DELETED = "transaction_deleted"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_PROGRESS_ADDED = "goal_progress_added"
    GOAL_COMPLETED = "goal_completed"
    GOAL_DELETED = "goal_deleted"

    # Backup
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    IMPORT_REJECTED = "import_rejected"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    STORAGE_ERROR = "storage_error"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """A single activity event."""

    event_type: ActivityEventType
    severity: ActivitySeverity = ActivitySeverity.INFO
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    user_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'backup')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class ActivityEventBuilder:
    """
    Helper class to build activity events with common patterns.

    Usage:
        event = ActivityEventBuilder.transaction_recorded(user_id, tx_id, "INCOME", amount, False)
        event = ActivityEventBuilder.goal_completed(user_id, goal_id, title, "contribution")
    """

    @staticmethod
    def transaction_recorded(
        user_id: str,
        transaction_id: str,
        transaction_type: str,
        amount: Decimal,
        is_due: bool,
    ) -> ActivityEvent:
        kind = "due " if is_due else ""
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_RECORDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Recorded {kind}{transaction_type.lower()} of {amount}",
            details={
                "type": transaction_type,
                "amount": str(amount),
                "is_due": is_due,
            },
        )

    @staticmethod
    def transaction_updated(user_id: str, transaction_id: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction updated",
        )

    @staticmethod
    def transaction_settled(
        user_id: str,
        transaction_id: str,
        party_name: Optional[str],
        amount: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_SETTLED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Due settled with {party_name or 'unknown party'}",
            details={
                "party_name": party_name,
                "amount": str(amount),
            },
        )

    @staticmethod
    def transaction_deleted(
        user_id: str,
        transaction_id: str,
        existed: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted" if existed else "Delete of unknown transaction ignored",
            details={"existed": existed},
        )

    @staticmethod
    def goal_created(
        user_id: str,
        goal_id: str,
        title: str,
        target_amount: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.GOAL_CREATED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal created: {title}",
            details={"target_amount": str(target_amount)},
        )

    @staticmethod
    def goal_progress_added(
        user_id: str,
        goal_id: str,
        amount: Decimal,
        current_amount: Decimal,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.GOAL_PROGRESS_ADDED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Added {amount} toward goal",
            details={
                "amount": str(amount),
                "current_amount": str(current_amount),
            },
        )

    @staticmethod
    def goal_completed(
        user_id: str,
        goal_id: str,
        title: str,
        trigger: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.GOAL_COMPLETED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal reached: {title}",
            details={"trigger": trigger},
        )

    @staticmethod
    def goal_deleted(user_id: str, goal_id: str, existed: bool) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.GOAL_DELETED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description="Goal deleted" if existed else "Delete of unknown goal ignored",
            details={"existed": existed},
        )

    @staticmethod
    def data_exported(
        user_id: str,
        transaction_count: int,
        goal_count: int,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DATA_EXPORTED,
            user_id=user_id,
            entity_type="backup",
            description=f"Exported {transaction_count} transactions and {goal_count} goals",
            details={
                "transaction_count": transaction_count,
                "goal_count": goal_count,
            },
        )

    @staticmethod
    def data_imported(
        user_id: str,
        transaction_count: int,
        goal_count: int,
        goals_replaced: bool,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.DATA_IMPORTED,
            severity=ActivitySeverity.WARNING,
            user_id=user_id,
            entity_type="backup",
            description=f"Imported {transaction_count} transactions (full replace)",
            details={
                "transaction_count": transaction_count,
                "goal_count": goal_count,
                "goals_replaced": goals_replaced,
            },
        )

    @staticmethod
    def import_rejected(user_id: str, reason: str) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.IMPORT_REJECTED,
            severity=ActivitySeverity.WARNING,
            user_id=user_id,
            entity_type="backup",
            description="Backup rejected",
            error_message=reason,
        )

    @staticmethod
    def validation_failed(
        user_id: Optional[str],
        subject: str,
        issues: list[dict],
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.VALIDATION_FAILED,
            severity=ActivitySeverity.WARNING,
            user_id=user_id,
            entity_type=subject,
            description=f"{subject.capitalize()} validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def storage_error(
        user_id: Optional[str],
        operation: str,
        error_message: str,
    ) -> ActivityEvent:
        return ActivityEvent(
            event_type=ActivityEventType.STORAGE_ERROR,
            severity=ActivitySeverity.ERROR,
            user_id=user_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
