"""
Goal Tracker

Savings goals with a one-way ACTIVE -> COMPLETED lifecycle.

A goal completes in one of two places:
1. add_progress() when a contribution crosses the target
2. reconcile() when a stored ACTIVE goal is found already at/over target
   (e.g. after an import)

Either way the completion is reported exactly once: the new status is
written back, so the next load finds nothing to report.
"""

from decimal import Decimal
from typing import Iterable, Optional

from bizledger.models.ledger import Goal, GoalCompletion, GoalInput, GoalStatus
from bizledger.services.storage import GoalStorageInterface, NotFoundError
from bizledger.validation import LedgerValidator


def _completion(goal: Goal, trigger: str) -> GoalCompletion:
    return GoalCompletion(
        goal_id=goal.id,
        title=goal.title,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        trigger=trigger,
    )


def reconcile(goals: Iterable[Goal]) -> tuple[list[Goal], list[GoalCompletion]]:
    """
    Complete every ACTIVE goal that has reached its target.

    Pure: returns the corrected goals (same order) and one event per goal
    that changed. Already COMPLETED goals never produce an event.
    """
    corrected = []
    events = []
    for goal in goals:
        if goal.status == GoalStatus.ACTIVE and goal.is_target_reached:
            goal = goal.model_copy(update={"status": GoalStatus.COMPLETED})
            events.append(_completion(goal, "reconciliation"))
        corrected.append(goal)
    return corrected, events


class GoalTracker:
    """
    Create, fund and delete savings goals.

    Goal input is validated by the caller; contributions are checked here.
    """

    def __init__(
        self,
        storage: GoalStorageInterface,
        validator: Optional[LedgerValidator] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()

    def create(self, user_id: str, data: GoalInput) -> Goal:
        """New goals start ACTIVE with nothing saved."""
        goal = Goal(
            **data.model_dump(include=set(GoalInput.model_fields)),
            user_id=user_id,
            current_amount=Decimal("0"),
            status=GoalStatus.ACTIVE,
        )
        return self._storage.save_goal(goal)

    def get(self, user_id: str, goal_id: str) -> Optional[Goal]:
        return self._storage.get_goal(user_id, goal_id)

    def add_progress(
        self,
        user_id: str,
        goal_id: str,
        amount: Decimal,
    ) -> tuple[Goal, Optional[GoalCompletion]]:
        """
        Add a contribution and recompute the status.

        Returns:
            (updated_goal, completion) where completion is set only when
            this contribution moved the goal from ACTIVE to COMPLETED

        Raises:
            ValidationError: If amount is not positive
            NotFoundError: If the goal does not exist
        """
        self._validator.ensure_valid(self._validator.validate_contribution(amount))
        amount = Decimal(str(amount))

        goal = self._storage.get_goal(user_id, goal_id)
        if goal is None:
            raise NotFoundError(f"Goal not found: {goal_id}")

        was_active = goal.status == GoalStatus.ACTIVE
        current = goal.current_amount + amount
        status = GoalStatus.COMPLETED if current >= goal.target_amount else goal.status

        updated = goal.model_copy(update={
            "current_amount": current,
            "status": status,
        })
        self._storage.update_goal(updated)

        completion = None
        if was_active and status == GoalStatus.COMPLETED:
            completion = _completion(updated, "contribution")
        return updated, completion

    def reconcile(self, user_id: str) -> tuple[list[Goal], list[GoalCompletion]]:
        """
        Load goals and complete any that already reached their target.

        Writes back only when something changed, so a second call returns
        no events.
        """
        goals, events = reconcile(self._storage.list_goals(user_id))
        if events:
            self._storage.replace_goals(user_id, goals)
        return goals, events

    def delete(self, user_id: str, goal_id: str) -> bool:
        return self._storage.delete_goal(user_id, goal_id)

    def replace_all(self, user_id: str, goals: list[Goal]) -> None:
        self._storage.replace_goals(user_id, goals)

    # Defined last: the name shadows the builtin inside the class body
    def list(self, user_id: str) -> list[Goal]:
        """Stored goals, without reconciliation."""
        return self._storage.list_goals(user_id)
