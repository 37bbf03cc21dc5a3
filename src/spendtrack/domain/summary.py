"""Aggregate queries over accounts.

Pure folds over a snapshot of the account collection; nothing here touches
the database.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from spendtrack.domain.entities import Account, AccountType, TransactionType
from spendtrack.utils.dates import day_of

ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerSummary:
    """Headline figures for a set of accounts."""

    account_count: int
    transaction_count: int
    total_balance: Decimal
    net_worth: Decimal
    total_assets: Decimal
    total_debt: Decimal
    total_available_credit: Decimal
    financial_health_score: Decimal


@dataclass(frozen=True)
class AccountTotals:
    """Income and expense totals for one account over a period."""

    account_id: str
    income: Decimal
    expenses: Decimal

    @property
    def net_change(self) -> Decimal:
        return self.income - self.expenses


def _of_type(accounts: Iterable[Account], account_type: AccountType) -> list[Account]:
    return [a for a in accounts if a.account_type is account_type]


def total_balance(accounts: Iterable[Account]) -> Decimal:
    """Sum of all current balances, regardless of account type."""
    return sum((a.current_balance for a in accounts), ZERO)


def total_assets(accounts: Iterable[Account]) -> Decimal:
    """Sum of the positive balances of debit accounts."""
    return sum((max(a.current_balance, ZERO) for a in _of_type(accounts, AccountType.DEBIT)), ZERO)


def total_debt(accounts: Iterable[Account]) -> Decimal:
    """Amount owed on credit accounts (their negative balances, as a positive number)."""
    return sum((a.debt_amount for a in _of_type(accounts, AccountType.CREDIT)), ZERO)


def total_available_credit(accounts: Iterable[Account]) -> Decimal:
    """Sum of the positive balances of credit accounts."""
    return sum((max(a.current_balance, ZERO) for a in _of_type(accounts, AccountType.CREDIT)), ZERO)


def net_worth(accounts: Iterable[Account]) -> Decimal:
    """Debit balances minus credit-card debt."""
    accounts = list(accounts)
    debit_total = sum((a.current_balance for a in _of_type(accounts, AccountType.DEBIT)), ZERO)
    return debit_total - total_debt(accounts)


def financial_health_score(accounts: Iterable[Account]) -> Decimal:
    """Share of assets in assets plus debt, on a 0-100 scale.

    No assets and no debt scores 50; no debt scores 100; no assets scores 0.
    """
    accounts = list(accounts)
    assets = total_assets(accounts)
    debt = total_debt(accounts)
    if assets == 0 and debt == 0:
        return Decimal("50")
    if debt == 0:
        return Decimal("100")
    if assets == 0:
        return ZERO
    return (assets / (assets + debt) * 100).quantize(Decimal("0.01"))


def summarize_accounts(accounts: Iterable[Account]) -> LedgerSummary:
    accounts = list(accounts)
    return LedgerSummary(
        account_count=len(accounts),
        transaction_count=sum(len(a.transactions) for a in accounts),
        total_balance=total_balance(accounts),
        net_worth=net_worth(accounts),
        total_assets=total_assets(accounts),
        total_debt=total_debt(accounts),
        total_available_credit=total_available_credit(accounts),
        financial_health_score=financial_health_score(accounts),
    )


def account_totals(
    account: Account,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AccountTotals:
    """Income and expenses of one account, optionally limited to a day range.

    Transfers are neither income nor expense and are left out.
    """
    income = expenses = ZERO
    for transaction in account.transactions:
        day = day_of(transaction.date)
        if start_date is not None and day < start_date:
            continue
        if end_date is not None and day > end_date:
            continue
        if transaction.type is TransactionType.INCOME:
            income += transaction.amount
        elif transaction.type is TransactionType.EXPENSE:
            expenses += transaction.amount
    return AccountTotals(account_id=account.id, income=income, expenses=expenses)
