"""Debt ledger, netting and balance package."""

from hamoney.ledger.balance import BalanceCalculator
from hamoney.ledger.debt_ledger import DebtLedger
from hamoney.ledger.netting import DebtNetter, pair_key

__all__ = ["BalanceCalculator", "DebtLedger", "DebtNetter", "pair_key"]
