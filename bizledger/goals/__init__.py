"""Savings goals package."""

from bizledger.goals.tracker import GoalTracker, reconcile

__all__ = ["GoalTracker", "reconcile"]
