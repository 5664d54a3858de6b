"""Activity logging package."""

from bizledger.activity.logger import ActivityLogger

__all__ = ["ActivityLogger"]
