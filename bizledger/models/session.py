"""
Session and Backup Models

DESIGN DECISION: The logged-in user is an explicit Session object that
callers pass into every flow. There is no module-level "current user".
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from bizledger.models.ledger import Goal, LedgerModel, Transaction


class UserProfile(LedgerModel):
    """
    The business owner's profile.

    Registration and login live outside this package; the profile only
    travels with sessions and backups.
    """

    id: str
    name: str = ""
    business_name: str = ""
    business_category: str = ""
    mobile: str = ""
    email: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    profile_image: Optional[str] = Field(
        default=None,
        description="Base64 encoded image"
    )


class Session(BaseModel):
    """The authenticated context every operation runs in."""

    model_config = ConfigDict(frozen=True)

    user: UserProfile

    @property
    def user_id(self) -> str:
        """Partition key for every collection."""
        return self.user.id


class BackupPayload(LedgerModel):
    """
    Full export of one user's data.

    Serialized with camelCase keys:
    {user, transactions, goals, exportDate, version}
    """

    user: Optional[UserProfile] = None
    transactions: list[Transaction] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    export_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    version: str = "1.1"


class ImportSummary(BaseModel):
    """What an import replaced."""

    user_id: str
    transaction_count: int = Field(ge=0)
    goal_count: int = Field(ge=0)
    goals_replaced: bool
    source_version: Optional[str] = None
