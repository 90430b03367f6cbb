"""
Engine Exceptions

Only two kinds of error leave the engine:
- ValidationError: the allocation input is malformed or violates a constraint
- StateError: a referenced payer, participant or ledger entry does not exist,
  or the requested transition is not allowed (e.g. re-settling)

Neither is retried internally. The caller corrects the input and calls again.
"""

from typing import Optional, Union


class SplitEngineError(Exception):
    """Base exception for the split engine."""
    pass


class ValidationError(SplitEngineError):
    """
    Allocation input failed validation.

    Carries every error message found, not just the first one,
    so the UI can show the full list to the user.
    """

    def __init__(self, errors: Union[list[str], str]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class StateError(SplitEngineError):
    """Reference to something that does not exist, or an illegal transition."""

    def __init__(self, message: str, entity_id: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message)
