"""
Core Data Models for BizLedger

These models define the schemas for everything the ledger stores or derives.
They are designed to:
1. Enforce type safety at runtime
2. Be serializable to the same camelCase JSON the browser app stored
3. Keep business rules OUT of the persisted shape

DESIGN DECISION: Persisted models only check types. Business rules
(positive amounts, required party for dues, ...) live in the validator,
which runs at the boundary before anything reaches a store. That way a
stored or imported record is never rejected for a rule it was saved under.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


def money_to_json(value: Decimal) -> Union[float, str]:
    """
    Plain JSON number when a float holds the amount exactly, else a string.

    Both forms parse back to the same Decimal.
    """
    as_float = float(value)
    if value.is_finite() and Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


# Decimal in memory, JSON number (or exact string) on the wire
Money = Annotated[
    Decimal,
    PlainSerializer(money_to_json, return_type=Union[float, str], when_used="json"),
]


def new_id() -> str:
    """Generate a record identifier."""
    return str(uuid4())


def now_millis() -> int:
    """Current instant as epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def as_utc_datetime(value: Any) -> Any:
    """
    Coerce ISO 8601 strings, dates and datetimes to aware UTC datetimes.

    Naive values are taken as UTC; values with an offset are converted.

    Anything else is passed through for pydantic to reject.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
    return value


class LedgerModel(BaseModel):
    """Base for all persisted records: camelCase aliases, stripped strings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of cash movement."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class GoalStatus(str, Enum):
    """
    Savings goal lifecycle.

    ACTIVE -> COMPLETED only. There is no way back.
    """
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionEdit(LedgerModel):
    """
    The fields a user may change on an existing transaction.

    Type, date, id and timestamp are fixed once a transaction exists.
    """

    amount: Money = Field(
        ...,
        description="Amount in currency units"
    )
    category: str = Field(
        default="",
        description="Source of income or purpose of expense"
    )
    note: Optional[str] = None
    is_due: bool = Field(
        default=False,
        description="Credit extended rather than cash settled"
    )
    party_name: Optional[str] = Field(
        default=None,
        description="Counterparty; required when is_due"
    )
    due_date: Optional[date] = Field(
        default=None,
        description="Expected settlement date for a due"
    )

    @field_validator("note", "party_name", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> Any:
        """Forms send "" when no due date was picked; full timestamps keep their date."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if "T" in v:
                return as_utc_datetime(v).date()
        if isinstance(v, datetime):
            return v.date()
        return v


class TransactionInput(TransactionEdit):
    """Everything the caller supplies when recording a new transaction."""

    type: TransactionType
    date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the transaction happened (caller controlled)"
    )

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return as_utc_datetime(v)


class Transaction(TransactionInput):
    """
    A recorded transaction.

    `timestamp` is the creation instant and the canonical recency key;
    `date` is independent of it and drives period filtering.
    """

    id: str = Field(
        default_factory=new_id,
        description="Unique transaction ID"
    )
    user_id: str = Field(
        ...,
        description="Owning user"
    )
    timestamp: int = Field(
        default_factory=now_millis,
        description="Creation instant, epoch milliseconds"
    )
    is_settled: bool = Field(
        default=False,
        description="A due that has since been paid"
    )

    @property
    def is_outstanding_due(self) -> bool:
        """Credit still open: no cash has moved yet."""
        return self.is_due and not self.is_settled

    @property
    def signed_amount(self) -> Decimal:
        """+amount for income, -amount for expense."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount


# =============================================================================
# GOALS
# =============================================================================

class GoalInput(LedgerModel):
    """What the user supplies when creating a savings goal."""

    title: str = Field(
        default="",
        description="What the user is saving for"
    )
    target_amount: Money = Field(
        ...,
        description="Amount to reach; fixed at creation"
    )
    deadline: Optional[date] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def blank_deadline(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Goal(GoalInput):
    """A savings goal and its progress."""

    id: str = Field(default_factory=new_id)
    user_id: str
    current_amount: Money = Field(
        default=Decimal("0"),
        description="Total contributed so far"
    )
    status: GoalStatus = GoalStatus.ACTIVE

    @property
    def is_target_reached(self) -> bool:
        return self.current_amount >= self.target_amount

    @property
    def progress_percent(self) -> Decimal:
        """Progress toward the target, capped at 100."""
        if self.target_amount <= 0:
            return Decimal("100")
        return min(self.current_amount / self.target_amount * 100, Decimal("100"))

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))


class GoalCompletion(BaseModel):
    """
    Emitted exactly once when a goal crosses its target.

    The UI uses this for the one-time celebration.
    """

    goal_id: str
    title: str
    target_amount: Decimal
    current_amount: Decimal
    trigger: Literal["contribution", "reconciliation"]
    completed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


# =============================================================================
# DERIVED VIEWS (never persisted)
# =============================================================================

class PartySummary(BaseModel):
    """
    Net position with one counterparty.

    Positive net_balance: the business is owed money.
    Negative net_balance: the business owes money.
    """

    name: str
    total_receivable: Decimal = Decimal("0")
    total_payable: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    last_transaction_date: datetime


class FinancialSummary(BaseModel):
    """Income/expense totals for a period plus cash on hand."""

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)


class DueTotals(BaseModel):
    """Outstanding (unsettled) credit in both directions."""

    receivable: Decimal = Decimal("0")
    payable: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.receivable - self.payable


class DailyTotals(BaseModel):
    """Income and expense recorded on one calendar day."""

    day: date
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (business rules that block)
    Stage 2: Semantic validation (suspicious values, warnings only)
    """

    subject: str = Field(
        ...,
        description="What was validated (transaction, goal, contribution)"
    )
    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
