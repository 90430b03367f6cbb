"""
Allocation Validation

DESIGN DECISION: Validation happens before anything is computed, and it
reports every problem at once instead of stopping at the first.

COMMON CHECKS (every method):
- At least one participant
- Every participant has a non-empty name
- No duplicate names (case-sensitive exact match)
- No duplicate ids
- Total is a finite, non-negative amount

METHOD CHECKS:
- percentage: percentages add up to 100 (within tolerance)
- custom: amounts add up to the total (within tolerance)
- item: every item is assigned to at least one known participant,
  and items + service fee + tip add up to the total

IMPORTANT: Validation NEVER silently fixes issues.
The Allocator runs the same checks and refuses to compute on any error.
"""

from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from hamoney.config import get_settings
from hamoney.models.split import (
    AllocationValidationResult,
    CustomSplit,
    ItemSplit,
    Participant,
    PercentageSplit,
    SplitMethod,
    ValidationIssue,
    round_cents,
    to_decimal,
)


def _error(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=suggested_fix,
    )


def _warning(field: str, issue_type: str, message: str, suggested_fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
        suggested_fix=suggested_fix,
    )


def coerce_participants(participants: Iterable) -> tuple[list[Participant], list[ValidationIssue]]:
    """
    Accept Participant objects or plain dicts from a participant source.

    Entries that cannot be read are reported, not dropped silently.
    """
    result = []
    issues = []
    for index, raw in enumerate(participants or [], start=1):
        if isinstance(raw, Participant):
            result.append(raw)
            continue
        try:
            result.append(Participant.model_validate(raw))
        except PydanticValidationError:
            issues.append(_error(
                field=f"participants[{index}]",
                issue_type="invalid_format",
                message=f"Participant #{index} is not a valid participant (needs an id and a name)",
            ))
    return result, issues


def coerce_amount(value) -> Optional[Decimal]:
    """Decimal for a finite numeric value, None otherwise."""
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


class AllocationValidator:
    """
    Pre-checks an allocation request.

    Each split method has its own check function, so the rules for one
    method can be tested without the others.
    """

    def __init__(
        self,
        tolerance: Optional[Decimal] = None,
        currency_symbol: Optional[str] = None,
    ):
        """
        Initialize validator.

        Args:
            tolerance: Allowed difference for sum checks.
                      Defaults to the configured amount tolerance (0.01).
            currency_symbol: Prefix for amounts in messages.
                      Defaults to the configured currency symbol.
        """
        engine_settings = get_settings().engine
        if tolerance is None:
            tolerance = engine_settings.amount_tolerance
        if currency_symbol is None:
            currency_symbol = engine_settings.currency_symbol
        self._tolerance = to_decimal(tolerance)
        self._currency_symbol = currency_symbol

        self._method_checks: dict[SplitMethod, Callable] = {
            SplitMethod.EQUAL: self._validate_equal,
            SplitMethod.PERCENTAGE: self._validate_percentage,
            SplitMethod.CUSTOM: self._validate_custom,
            SplitMethod.ITEM: self._validate_item,
        }

    @property
    def tolerance(self) -> Decimal:
        return self._tolerance

    def _money(self, amount: Decimal) -> str:
        return f"{self._currency_symbol}{amount:.2f}"

    def _validate_common(
        self,
        total: Optional[Decimal],
        participants: list[Participant],
    ) -> list[ValidationIssue]:
        """Checks shared by every split method."""
        issues = []

        if total is None:
            issues.append(_error(
                field="total_amount",
                issue_type="invalid_value",
                message="Total amount must be a number",
            ))
        elif total < 0:
            issues.append(_error(
                field="total_amount",
                issue_type="invalid_value",
                message="Total amount cannot be negative",
            ))
        elif total == 0:
            issues.append(_warning(
                field="total_amount",
                issue_type="zero_total",
                message="Total amount is zero; nobody will owe anything",
            ))
        elif total != total.quantize(Decimal("0.01")):
            issues.append(_warning(
                field="total_amount",
                issue_type="precision",
                message=f"Total amount {total} will be rounded to the cent",
            ))

        if not participants:
            issues.append(_error(
                field="participants",
                issue_type="missing",
                message="At least one participant is required",
                suggested_fix="Pick who took part in this bill",
            ))
            return issues

        for index, participant in enumerate(participants, start=1):
            if not participant.name or not participant.name.strip():
                issues.append(_error(
                    field=f"participants[{index}].name",
                    issue_type="missing",
                    message=f"Participant #{index} needs a valid name",
                ))

        names = [p.name for p in participants if p.name and p.name.strip()]
        duplicate_names = sorted({name for name in names if names.count(name) > 1})
        for name in duplicate_names:
            issues.append(_error(
                field="participants",
                issue_type="duplicate",
                message=f"Participant name '{name}' is used more than once",
                suggested_fix="Give each participant a distinct name",
            ))

        ids = [p.id for p in participants]
        duplicate_ids = sorted({pid for pid in ids if ids.count(pid) > 1})
        for pid in duplicate_ids:
            issues.append(_error(
                field="participants",
                issue_type="duplicate",
                message=f"Participant id '{pid}' is used more than once",
            ))

        return issues

    def _check_known_ids(
        self,
        field: str,
        referenced: Iterable[str],
        participants: list[Participant],
    ) -> list[ValidationIssue]:
        known = {p.id for p in participants}
        return [
            _error(
                field=field,
                issue_type="unknown_participant",
                message=f"'{pid}' is not a participant in this split",
            )
            for pid in referenced
            if pid not in known
        ]

    def _validate_equal(self, total, participants, params) -> list[ValidationIssue]:
        return []

    def _validate_percentage(
        self,
        total: Decimal,
        participants: list[Participant],
        params: PercentageSplit,
    ) -> list[ValidationIssue]:
        issues = self._check_known_ids("percentages", params.percentages, participants)

        running = Decimal("0")
        for pid, raw in params.percentages.items():
            pct = coerce_amount(raw)
            if pct is None or pct < 0:
                issues.append(_error(
                    field=f"percentages[{pid}]",
                    issue_type="invalid_value",
                    message=f"Percentage for '{pid}' must be a non-negative number",
                ))
                continue
            running += pct

        if abs(running - Decimal("100")) > self._tolerance:
            issues.append(_error(
                field="percentages",
                issue_type="sum_mismatch",
                message=f"Percentages must add up to 100% (got {running}%)",
                suggested_fix="Adjust the percentages so they total exactly 100",
            ))

        return issues

    def _validate_custom(
        self,
        total: Decimal,
        participants: list[Participant],
        params: CustomSplit,
    ) -> list[ValidationIssue]:
        issues = self._check_known_ids("amounts", params.amounts, participants)

        running = Decimal("0")
        for pid, raw in params.amounts.items():
            amount = coerce_amount(raw)
            if amount is None or amount < 0:
                issues.append(_error(
                    field=f"amounts[{pid}]",
                    issue_type="invalid_value",
                    message=f"Amount for '{pid}' must be a non-negative number",
                ))
                continue
            running += amount

        if total is not None and abs(running - total) > self._tolerance:
            issues.append(_error(
                field="amounts",
                issue_type="sum_mismatch",
                message=(
                    f"Custom amounts add up to {self._money(running)} "
                    f"but the total is {self._money(total)}"
                ),
                suggested_fix="Adjust the amounts so they match the total",
            ))

        return issues

    def _validate_item(
        self,
        total: Decimal,
        participants: list[Participant],
        params: ItemSplit,
    ) -> list[ValidationIssue]:
        issues = []

        if not params.items:
            issues.append(_error(
                field="items",
                issue_type="missing",
                message="At least one item is required for an item split",
            ))
            return issues

        for index, item in enumerate(params.items, start=1):
            label = item.name or f"#{index}"
            field = f"items[{index}]"

            if item.price < 0:
                issues.append(_error(
                    field=f"{field}.price",
                    issue_type="invalid_value",
                    message=f"Item {label} has a negative price",
                ))

            if not item.assigned_to:
                issues.append(_error(
                    field=f"{field}.assigned_to",
                    issue_type="unassigned",
                    message=f"Item {label} is not assigned to anyone",
                    suggested_fix="Assign every item to at least one participant",
                ))
                continue

            if len(set(item.assigned_to)) != len(item.assigned_to):
                issues.append(_error(
                    field=f"{field}.assigned_to",
                    issue_type="duplicate",
                    message=f"Item {label} lists the same participant more than once",
                ))

            issues.extend(self._check_known_ids(f"{field}.assigned_to", item.assigned_to, participants))

        covered = params.subtotal + params.extras
        if total is not None and abs(covered - total) > self._tolerance:
            issues.append(_error(
                field="items",
                issue_type="sum_mismatch",
                message=(
                    f"Items plus service fee and tip come to {self._money(covered)} "
                    f"but the total is {self._money(total)}"
                ),
                suggested_fix="Check that every item on the receipt has been entered",
            ))

        return issues

    def validate(
        self,
        total_amount,
        participants: Iterable,
        method,
        params=None,
    ) -> AllocationValidationResult:
        """
        Run every check for an allocation request.

        Args:
            total_amount: Amount to split (Decimal, int, float or str)
            participants: Participants in caller order
            method: SplitMethod (or its string value)
            params: Method parameters; may be omitted for an equal split

        Returns:
            AllocationValidationResult with all issues found
        """
        try:
            split_method = SplitMethod(method)
        except ValueError:
            return AllocationValidationResult(
                method=SplitMethod.EQUAL,
                issues=[_error(
                    field="method",
                    issue_type="invalid_value",
                    message=f"Unknown split method: {method}",
                )],
            )

        total = coerce_amount(total_amount)
        coerced, issues = coerce_participants(participants)
        issues.extend(self._validate_common(total, coerced))

        if params is None and split_method == SplitMethod.EQUAL:
            return AllocationValidationResult(method=split_method, issues=issues)

        if params is None:
            issues.append(_error(
                field="params",
                issue_type="missing",
                message=f"A {split_method.value} split needs its parameters",
            ))
        elif getattr(params, "method", None) != split_method.value:
            issues.append(_error(
                field="params",
                issue_type="mismatch",
                message=(
                    f"Parameters are for a {getattr(params, 'method', 'unknown')} split, "
                    f"not {split_method.value}"
                ),
            ))
        elif coerced:
            # sums are checked against the total the allocator will actually split
            rounded_total = round_cents(total) if total is not None else None
            issues.extend(self._method_checks[split_method](rounded_total, coerced, params))

        return AllocationValidationResult(method=split_method, issues=issues)

    def get_user_friendly_summary(
        self,
        result: AllocationValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to non-technical users.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed! The split is ready."

        lines = []

        if result.has_errors:
            lines.append("❌ This split cannot be calculated yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please note:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines).strip("\n")
