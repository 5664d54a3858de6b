"""
Activity Logger

DESIGN DECISION: Every state change in the ledger is logged as one
structured event. This provides:
1. Debugging capability
2. A record of what the flows did, for operators
3. Visibility into rejected input and storage failures

The activity logger:
- Writes to the local structured log only (the ledger keeps no audit trail)
- Is synchronous, like the rest of the core
"""

from decimal import Decimal
from typing import Optional

import structlog

from bizledger.models.activity import ActivityEvent, ActivityEventBuilder
from bizledger.models.ledger import (
    Goal,
    GoalCompletion,
    Transaction,
    ValidationResult,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ActivityLogger:
    """
    Central activity logging service.

    Every method builds an ActivityEvent and hands it to log().
    """

    def __init__(self, logger_name: str = "bizledger"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: ActivityEvent) -> None:
        """Log an activity event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("activity_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("activity_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("activity_event", **log_dict)
        else:
            self._logger.info("activity_event", **log_dict)

    def log_transaction_recorded(self, transaction: Transaction) -> None:
        self.log(ActivityEventBuilder.transaction_recorded(
            user_id=transaction.user_id,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=transaction.amount,
            is_due=transaction.is_due,
        ))

    def log_transaction_updated(self, transaction: Transaction) -> None:
        self.log(ActivityEventBuilder.transaction_updated(
            user_id=transaction.user_id,
            transaction_id=transaction.id,
        ))

    def log_transaction_settled(self, transaction: Transaction) -> None:
        self.log(ActivityEventBuilder.transaction_settled(
            user_id=transaction.user_id,
            transaction_id=transaction.id,
            party_name=transaction.party_name,
            amount=transaction.amount,
        ))

    def log_transaction_deleted(
        self,
        user_id: str,
        transaction_id: str,
        existed: bool,
    ) -> None:
        self.log(ActivityEventBuilder.transaction_deleted(
            user_id=user_id,
            transaction_id=transaction_id,
            existed=existed,
        ))

    def log_goal_created(self, goal: Goal) -> None:
        self.log(ActivityEventBuilder.goal_created(
            user_id=goal.user_id,
            goal_id=goal.id,
            title=goal.title,
            target_amount=goal.target_amount,
        ))

    def log_goal_progress(self, goal: Goal, amount: Decimal) -> None:
        self.log(ActivityEventBuilder.goal_progress_added(
            user_id=goal.user_id,
            goal_id=goal.id,
            amount=amount,
            current_amount=goal.current_amount,
        ))

    def log_goal_completed(self, user_id: str, completion: GoalCompletion) -> None:
        self.log(ActivityEventBuilder.goal_completed(
            user_id=user_id,
            goal_id=completion.goal_id,
            title=completion.title,
            trigger=completion.trigger,
        ))

    def log_goal_deleted(self, user_id: str, goal_id: str, existed: bool) -> None:
        self.log(ActivityEventBuilder.goal_deleted(
            user_id=user_id,
            goal_id=goal_id,
            existed=existed,
        ))

    def log_data_exported(
        self,
        user_id: str,
        transaction_count: int,
        goal_count: int,
    ) -> None:
        self.log(ActivityEventBuilder.data_exported(
            user_id=user_id,
            transaction_count=transaction_count,
            goal_count=goal_count,
        ))

    def log_data_imported(
        self,
        user_id: str,
        transaction_count: int,
        goal_count: int,
        goals_replaced: bool,
    ) -> None:
        self.log(ActivityEventBuilder.data_imported(
            user_id=user_id,
            transaction_count=transaction_count,
            goal_count=goal_count,
            goals_replaced=goals_replaced,
        ))

    def log_import_rejected(self, user_id: str, reason: str) -> None:
        self.log(ActivityEventBuilder.import_rejected(user_id=user_id, reason=reason))

    def log_validation_failed(
        self,
        user_id: Optional[str],
        result: ValidationResult,
    ) -> None:
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in result.issues
            if i.severity == "error"
        ]
        self.log(ActivityEventBuilder.validation_failed(
            user_id=user_id,
            subject=result.subject,
            issues=issues,
        ))

    def log_storage_error(
        self,
        user_id: Optional[str],
        operation: str,
        error: Exception,
    ) -> None:
        self.log(ActivityEventBuilder.storage_error(
            user_id=user_id,
            operation=operation,
            error_message=str(error),
        ))
