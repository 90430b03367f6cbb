"""
Tests for HaMoney data models

Test strategy:
1. Unit tests for individual models (construction, validators, derived views)
2. No storage and no I/O here (see test_storage.py)
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import TypeAdapter

from hamoney.errors import SplitEngineError, StateError, ValidationError
from hamoney.models.split import (
    Allocation,
    AllocationValidationResult,
    CustomSplit,
    EqualSplit,
    ItemSplit,
    Participant,
    PercentageSplit,
    SplitItem,
    SplitMethod,
    SplitParams,
    ValidationIssue,
    round_cents,
)
from hamoney.models.ledger import (
    Balance,
    DebtEntry,
    DebtStatus,
    NetPosition,
)
from hamoney.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestSplitModels:
    """Tests for allocation-related Pydantic models."""

    def test_round_cents_is_half_up(self):
        """Test that rounding is half-up, not banker's rounding."""
        assert round_cents("0.125") == Decimal("0.13")
        assert round_cents("0.135") == Decimal("0.14")
        assert round_cents(Decimal("33.3333")) == Decimal("33.33")

    def test_round_cents_avoids_float_artefacts(self):
        """Test that floats are converted through their string form."""
        assert round_cents(0.1 + 0.2) == Decimal("0.30")

    def test_participant_is_frozen(self):
        """Test that participants cannot be mutated."""
        participant = Participant(id="a", name="Alice")
        with pytest.raises(ValueError):
            participant.name = "Bob"

    def test_participant_requires_id(self):
        """Test that an empty id is rejected."""
        with pytest.raises(ValueError):
            Participant(id="", name="Alice")

    def test_split_params_discriminator(self):
        """Test that split parameters are parsed by their method tag."""
        adapter = TypeAdapter(SplitParams)

        params = adapter.validate_python({
            "method": "percentage",
            "percentages": {"a": "60", "b": "40"},
        })
        assert isinstance(params, PercentageSplit)
        assert params.percentages["a"] == Decimal("60")

        params = adapter.validate_python({"method": "equal"})
        assert isinstance(params, EqualSplit)

    def test_split_params_rejects_unknown_method(self):
        """Test that an unknown method tag is rejected."""
        with pytest.raises(ValueError):
            TypeAdapter(SplitParams).validate_python({"method": "random"})

    def test_custom_split_amounts_are_decimal(self):
        """Test CustomSplit parses amounts to Decimal."""
        params = CustomSplit(amounts={"a": "12.5"})
        assert params.amounts["a"] == Decimal("12.5")

    def test_item_split_extras(self):
        """Test subtotal, service fee and tip arithmetic."""
        params = ItemSplit(
            items=[
                SplitItem(name="Noodles", price=Decimal("40"), assigned_to=["a"]),
                SplitItem(name="Rice", price=Decimal("60"), assigned_to=["b"]),
            ],
            service_fee_percent=Decimal("10"),
            tip=Decimal("5"),
        )
        assert params.subtotal == Decimal("100")
        assert params.service_fee == Decimal("10")
        assert params.extras == Decimal("15")

    def test_item_split_rejects_fee_over_100(self):
        """Test service fee bounds."""
        with pytest.raises(ValueError):
            ItemSplit(service_fee_percent=Decimal("120"))

    def test_allocation_requires_exact_sum(self):
        """Test that shares must add up to the total."""
        participants = [Participant(id="a", name="A"), Participant(id="b", name="B")]
        with pytest.raises(ValueError, match="do not add up"):
            Allocation(
                total_amount=Decimal("10.00"),
                method=SplitMethod.CUSTOM,
                participants=participants,
                shares={"a": Decimal("5.00"), "b": Decimal("4.99")},
            )

    def test_allocation_rejects_negative_share(self):
        """Test that negative shares are rejected."""
        participants = [Participant(id="a", name="A"), Participant(id="b", name="B")]
        with pytest.raises(ValueError, match="negative"):
            Allocation(
                total_amount=Decimal("10.00"),
                method=SplitMethod.CUSTOM,
                participants=participants,
                shares={"a": Decimal("11.00"), "b": Decimal("-1.00")},
            )

    def test_allocation_statistics(self):
        """Test derived allocation statistics."""
        participants = [Participant(id="a", name="A"), Participant(id="b", name="B")]
        allocation = Allocation(
            total_amount=Decimal("10.00"),
            method=SplitMethod.CUSTOM,
            participants=participants,
            shares={"a": Decimal("7.00"), "b": Decimal("3.00")},
        )
        stats = allocation.statistics()
        assert stats.participant_count == 2
        assert stats.average_share == Decimal("5.00")
        assert stats.max_share == Decimal("7.00")
        assert stats.min_share == Decimal("3.00")
        assert allocation.share_of("missing") == Decimal("0")


class TestLedgerModels:
    """Tests for ledger-related models."""

    def test_debt_entry_defaults(self):
        """Test DebtEntry model creation."""
        entry = DebtEntry(
            debtor_id="a",
            creditor_id="b",
            amount=Decimal("12.50"),
            description="  Dinner  ",
        )
        assert entry.status == DebtStatus.PENDING
        assert entry.paid_at is None
        assert entry.description == "Dinner"
        assert entry.is_pending is True

    def test_debt_entry_rejects_self_debt(self):
        """Test that nobody can owe themselves."""
        with pytest.raises(ValueError, match="must be different"):
            DebtEntry(debtor_id="a", creditor_id="a", amount=Decimal("1.00"))

    def test_debt_entry_rejects_non_positive_amount(self):
        """Test that amounts must be positive."""
        with pytest.raises(ValueError):
            DebtEntry(debtor_id="a", creditor_id="b", amount=Decimal("0"))

    def test_paid_entry_requires_paid_at(self):
        """Test that a paid entry must carry its payment time."""
        with pytest.raises(ValueError, match="paid_at"):
            DebtEntry(
                debtor_id="a",
                creditor_id="b",
                amount=Decimal("1.00"),
                status=DebtStatus.PAID,
            )

    def test_is_overdue(self):
        """Test overdue detection."""
        entry = DebtEntry(
            debtor_id="a",
            creditor_id="b",
            amount=Decimal("1.00"),
            due_date=date(2024, 3, 22),
        )
        assert entry.is_overdue(date(2024, 3, 22)) is False
        assert entry.is_overdue(date(2024, 3, 23)) is True

    def test_paid_entry_is_never_overdue(self):
        """Test that settled debts are not reported as overdue."""
        entry = DebtEntry(
            debtor_id="a",
            creditor_id="b",
            amount=Decimal("1.00"),
            due_date=date(2024, 3, 22),
            status=DebtStatus.PAID,
            paid_at=datetime(2024, 3, 30),
        )
        assert entry.is_overdue(date(2024, 4, 1)) is False

    def test_balance_position(self):
        """Test net figure and position."""
        assert Balance(participant_id="a", owed=Decimal("30"), owing=Decimal("10")).position == NetPosition.DEBTOR
        assert Balance(participant_id="a", owed=Decimal("10"), owing=Decimal("30")).position == NetPosition.CREDITOR
        assert Balance(participant_id="a").position == NetPosition.SETTLED
        assert Balance(participant_id="a", owed=Decimal("30"), owing=Decimal("10")).net == Decimal("-20")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            description="Ledger loaded",
        )
        assert event.event_type == AuditEventType.LEDGER_LOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.DEBT_SETTLED,
            description="Debt settled",
            details={"debtor_id": "alice", "amount": "40.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "debt_settled"
        assert log_dict["details"]["debtor_id"] == "alice"

    def test_audit_event_builder_allocation_computed(self):
        """Test AuditEventBuilder.allocation_computed."""
        correlation_id = uuid4()
        allocation_id = uuid4()

        event = AuditEventBuilder.allocation_computed(
            allocation_id=allocation_id,
            method="equal",
            total_amount=Decimal("100.00"),
            participant_count=3,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.ALLOCATION_COMPUTED
        assert event.entity_id == allocation_id
        assert event.correlation_id == correlation_id
        assert event.details["total_amount"] == "100.00"

    def test_audit_event_builder_settlement_rejected(self):
        """Test AuditEventBuilder.settlement_rejected."""
        event = AuditEventBuilder.settlement_rejected(
            reference="debt-1",
            reason="already paid",
        )

        assert event.event_type == AuditEventType.SETTLEMENT_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "already paid"

    def test_every_event_type_has_a_builder(self):
        """Test that each event type is produced by an AuditEventBuilder method."""
        builders = {
            name for name in vars(AuditEventBuilder)
            if not name.startswith("_")
        }
        assert {t.value for t in AuditEventType} == builders


class TestValidationResult:
    """Tests for AllocationValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = AllocationValidationResult(
            method=SplitMethod.EQUAL,
            issues=[
                ValidationIssue(
                    field="participants",
                    issue_type="missing",
                    message="At least one participant is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1
        assert result.errors == ["At least one participant is required"]

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = AllocationValidationResult(
            method=SplitMethod.EQUAL,
            issues=[
                ValidationIssue(
                    field="total_amount",
                    issue_type="zero_total",
                    message="Total is zero",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.warnings == ["Total is zero"]

    def test_validation_issue_severity_pattern(self):
        """Test that unknown severities are rejected."""
        with pytest.raises(ValueError):
            ValidationIssue(
                field="x",
                issue_type="y",
                message="z",
                severity="fatal",
            )


class TestErrors:
    """Tests for engine exceptions."""

    def test_validation_error_carries_all_messages(self):
        """Test that ValidationError keeps every message."""
        error = ValidationError(["first problem", "second problem"])
        assert error.errors == ["first problem", "second problem"]
        assert "first problem" in str(error)
        assert "second problem" in str(error)

    def test_validation_error_accepts_single_message(self):
        """Test a single string message."""
        error = ValidationError("only problem")
        assert error.errors == ["only problem"]

    def test_errors_share_a_base(self):
        """Test the exception hierarchy."""
        assert issubclass(ValidationError, SplitEngineError)
        assert issubclass(StateError, SplitEngineError)
        assert StateError("gone", entity_id="x").entity_id == "x"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
