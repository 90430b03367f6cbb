"""
Ledger Data Models for HaMoney

DebtEntry and Payment are the persisted records. NetEntry, Balance,
ParticipantDebts and MonthlyStatistics are derived views: they are
recomputed on demand and never stored as a source of truth.

DESIGN DECISION: The ledger is append-only. An entry changes exactly once,
from PENDING to PAID. Nothing is deleted except by an explicit clear.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


MAX_DESCRIPTION_LENGTH = 500


class DebtStatus(str, Enum):
    """
    Lifecycle of a debt entry.

    PAID is terminal. There is no un-settle.
    """
    PENDING = "pending"
    PAID = "paid"


class NetPosition(str, Enum):
    """Which side of the ledger a participant is on overall."""
    CREDITOR = "creditor"
    DEBTOR = "debtor"
    SETTLED = "settled"


class DebtEntry(BaseModel):
    """
    One participant owing another for one allocation.

    Created by DebtLedger.record() from a committed Allocation.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique debt ID"
    )
    allocation_id: Optional[UUID] = Field(
        default=None,
        description="Allocation this debt was recorded from"
    )

    debtor_id: str = Field(..., min_length=1)
    debtor_name: str = ""
    creditor_id: str = Field(..., min_length=1)
    creditor_name: str = ""

    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount owed"
    )
    description: str = Field(
        default="",
        max_length=MAX_DESCRIPTION_LENGTH,
    )

    status: DebtStatus = DebtStatus.PENDING
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    due_date: Optional[date] = None
    paid_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_parties(self) -> "DebtEntry":
        """Nobody owes themselves, and only paid entries carry a paid time."""
        if self.debtor_id == self.creditor_id:
            raise ValueError("Debtor and creditor must be different participants")

        if self.status == DebtStatus.PAID and self.paid_at is None:
            raise ValueError("Paid debts must have a paid_at timestamp")
        if self.status == DebtStatus.PENDING and self.paid_at is not None:
            raise ValueError("Pending debts cannot have a paid_at timestamp")

        return self

    @property
    def is_pending(self) -> bool:
        return self.status == DebtStatus.PENDING

    def is_overdue(self, as_of: date) -> bool:
        """Pending and past its due date."""
        return self.is_pending and self.due_date is not None and self.due_date < as_of


class Payment(BaseModel):
    """
    Record of a debt being repaid.

    Written alongside the PAID transition so repayments can be listed
    independently of the debts they closed.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    debt_id: UUID
    amount: Decimal = Field(..., gt=0)
    payer_id: str
    payer_name: str = ""
    receiver_id: str
    receiver_name: str = ""
    paid_at: datetime = Field(default_factory=datetime.utcnow)
    description: str = ""


class NetEntry(BaseModel):
    """
    Consolidated obligation between one pair of participants.

    Derived by DebtNetter. Never persisted.
    """
    model_config = ConfigDict(frozen=True)

    pair_key: tuple[str, str] = Field(
        ...,
        description="The two participant ids, sorted"
    )
    debtor_id: str
    creditor_id: str
    amount: Decimal = Field(..., gt=0)


class Balance(BaseModel):
    """A participant's position across the ledger."""

    participant_id: str
    owed: Decimal = Field(
        default=Decimal("0.00"),
        description="What they must pay out"
    )
    owing: Decimal = Field(
        default=Decimal("0.00"),
        description="What others must pay them"
    )

    @property
    def net(self) -> Decimal:
        """owing - owed: positive means others owe them."""
        return self.owing - self.owed

    @property
    def position(self) -> NetPosition:
        if self.net > 0:
            return NetPosition.CREDITOR
        if self.net < 0:
            return NetPosition.DEBTOR
        return NetPosition.SETTLED


class ParticipantDebts(BaseModel):
    """Pending debts touching one participant."""

    participant_id: str
    owed_by_me: list[DebtEntry] = Field(default_factory=list)
    owed_to_me: list[DebtEntry] = Field(default_factory=list)


class MonthlyStatistics(BaseModel):
    """Ledger totals for one calendar month of created_at."""

    month: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}$",
        description="YYYY-MM"
    )
    total_amount: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")
    pending_amount: Decimal = Decimal("0.00")
    debt_count: int = 0
    paid_count: int = 0
    pending_count: int = 0
    by_creditor: dict[str, Decimal] = Field(default_factory=dict)
    by_debtor: dict[str, Decimal] = Field(default_factory=dict)
