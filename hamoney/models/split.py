"""
Allocation Data Models for HaMoney

These models define the schemas flowing into and out of the Allocator.
They are designed to:
1. Enforce type safety at runtime
2. Keep money exact (Decimal, never float)
3. Be serializable for storage and logging
4. Make the allocation method an explicit tagged variant

DESIGN DECISION: Split parameters are a pydantic discriminated union keyed
on `method`. Each method has its own model and its own compute function,
so nothing downstream branches on loose dicts.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert int/float/str/Decimal to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_cents(value) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# ENUMS
# =============================================================================

class SplitMethod(str, Enum):
    """Supported allocation methods."""
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"
    ITEM = "item"


# =============================================================================
# PARTICIPANTS
# =============================================================================

class Participant(BaseModel):
    """
    Someone taking part in one splitting operation.

    Created by the caller. The engine never mutates it.
    Name checks (empty, duplicate) are reported by the validator,
    not raised here, so the user sees all problems at once.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque identifier, unique within one operation"
    )
    name: str = Field(
        default="",
        description="Display name"
    )


# =============================================================================
# SPLIT PARAMETERS (tagged variant)
# =============================================================================

class EqualSplit(BaseModel):
    """Every participant pays total / n."""
    model_config = ConfigDict(frozen=True)

    method: Literal["equal"] = "equal"


class PercentageSplit(BaseModel):
    """
    Every participant pays a percentage of the total.

    Participants missing from `percentages` pay 0%.
    """
    model_config = ConfigDict(frozen=True)

    method: Literal["percentage"] = "percentage"
    percentages: dict[str, Decimal] = Field(
        default_factory=dict,
        description="participant id -> percentage (0-100)"
    )


class CustomSplit(BaseModel):
    """Every participant pays an explicit amount."""
    model_config = ConfigDict(frozen=True)

    method: Literal["custom"] = "custom"
    amounts: dict[str, Decimal] = Field(
        default_factory=dict,
        description="participant id -> amount"
    )


class SplitItem(BaseModel):
    """A receipt line item and the participants who shared it."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(
        default="",
        max_length=200,
        description="Item description from the receipt"
    )
    price: Decimal = Field(
        ...,
        description="Total price of the line"
    )
    assigned_to: list[str] = Field(
        default_factory=list,
        description="Ids of the participants sharing this item"
    )


class ItemSplit(BaseModel):
    """
    Item-based split.

    Each item's price is divided evenly across its assigned participants.
    Service fee (percent of the item subtotal) and tip (fixed amount)
    are shared equally by everyone.
    """
    model_config = ConfigDict(frozen=True)

    method: Literal["item"] = "item"
    items: list[SplitItem] = Field(default_factory=list)
    service_fee_percent: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        le=100,
        description="Service charge as a percentage of the item subtotal"
    )
    tip: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Fixed tip amount"
    )

    @property
    def subtotal(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0"))

    @property
    def service_fee(self) -> Decimal:
        return self.subtotal * self.service_fee_percent / Decimal("100")

    @property
    def extras(self) -> Decimal:
        """Service fee plus tip, shared by all participants."""
        return self.service_fee + self.tip


SplitParams = Annotated[
    Union[EqualSplit, PercentageSplit, CustomSplit, ItemSplit],
    Field(discriminator="method"),
]


# =============================================================================
# ALLOCATION
# =============================================================================

class Allocation(BaseModel):
    """
    Result of splitting a total among participants.

    CRITICAL: sum(shares) == total_amount to the cent. The Allocator
    guarantees this by placing the rounding residual on the first
    participant; the model re-checks it on construction.

    Immutable once returned.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique allocation ID"
    )
    total_amount: Decimal = Field(
        ...,
        ge=0,
        description="Total being split"
    )
    method: SplitMethod
    participants: list[Participant] = Field(
        ...,
        min_length=1,
        description="Participants in caller order"
    )
    shares: dict[str, Decimal] = Field(
        ...,
        description="participant id -> share, in participant order"
    )
    calculated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @field_validator("shares")
    @classmethod
    def validate_non_negative(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Shares are never negative."""
        for participant_id, share in v.items():
            if share < 0:
                raise ValueError(f"Share for {participant_id} is negative: {share}")
        return v

    @model_validator(mode="after")
    def validate_reconciled(self) -> "Allocation":
        """Shares must cover the participants and add up to the total."""
        if list(self.shares) != [p.id for p in self.participants]:
            raise ValueError("Shares must list every participant, in order")

        if sum(self.shares.values(), Decimal("0")) != self.total_amount:
            raise ValueError("Shares do not add up to the total amount")
        return self

    def share_of(self, participant_id: str) -> Decimal:
        """Share for one participant (0 if not in this allocation)."""
        return self.shares.get(participant_id, Decimal("0"))

    def participant(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def statistics(self) -> "AllocationStatistics":
        """Summary figures for display."""
        amounts = list(self.shares.values())
        return AllocationStatistics(
            total_amount=self.total_amount,
            participant_count=len(amounts),
            average_share=round_cents(self.total_amount / len(amounts)),
            max_share=max(amounts),
            min_share=min(amounts),
            method=self.method,
        )


class AllocationStatistics(BaseModel):
    """Derived figures for a single allocation."""

    total_amount: Decimal
    participant_count: int = Field(ge=1)
    average_share: Decimal
    max_share: Decimal
    min_share: Decimal
    method: SplitMethod


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Input with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'duplicate', 'sum_mismatch')"
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


class AllocationValidationResult(BaseModel):
    """
    Result of pre-checking an allocation request.

    Only error-level issues make the request invalid.
    Warnings are shown to the user but do not block.
    """

    method: SplitMethod
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def errors(self) -> list[str]:
        """Error messages, in the order they were found."""
        return [issue.message for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
