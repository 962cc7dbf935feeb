# quickscore/services/data_sources.py

import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Literal, Optional

from quickscore.core.config import settings
from quickscore.schemas.financial import FinancialProfile, Transaction, TransactionType

logger = logging.getLogger(__name__)

Channel = Literal["mpesa", "bank", "till"]
RiskLevel = Literal["low", "medium", "high"]

_DAYS_PER_MONTH = 30

_RANDOM_TYPES: List[TransactionType] = ["SEND", "RECEIVE", "WITHDRAW", "PAYBILL", "BUY_GOODS"]

# (low, span) pairs; amount = low + random() * span
_AMOUNT_RANGES = {
    "SEND": (100, 5000),
    "RECEIVE": (500, 10000),
    "WITHDRAW": (500, 10000),
    "PAYBILL": (100, 3000),
    "BUY_GOODS": (50, 2000),
}

_COUNTERPARTIES = ["JOHN DOE", "JANE SMITH", "SAFARICOM LTD", "EQUITY BANK", "KPLC", "NAIROBI WATER"]
_REFERENCES = ["Bill Payment", "Airtime", "Shopping", "Utilities", "Rent", "Food", "Transport"]

# Bank statement descriptions and the transaction type each maps to
_BANK_EXPENSES = [
    ("ATM WITHDRAWAL", "WITHDRAW"),
    ("POS PURCHASE - SUPERMARKET", "BUY_GOODS"),
    ("ONLINE PAYMENT - JUMIA", "BUY_GOODS"),
    ("STANDING ORDER - RENT", "PAYBILL"),
    ("KPLC BILL PAYMENT", "PAYBILL"),
    ("SAFARICOM PLC", "PAYBILL"),
    ("FUEL STATION", "BUY_GOODS"),
    ("RESTAURANT", "BUY_GOODS"),
]


class FinancialDataSource(ABC):
    """Supplies an applicant's transaction history, newest first."""

    @abstractmethod
    async def fetch_transactions(
        self,
        account_ref: Optional[str],
        channel: Channel,
        months: int,
        profile: FinancialProfile,
    ) -> List[Transaction]:
        ...


class SyntheticDataSource(FinancialDataSource):
    """
    Generates plausible Kenyan mobile-money and bank histories.

    All randomness comes from one random.Random, so a fixed seed and a fixed
    as_of date reproduce the same history.
    """
    def __init__(self, seed: Optional[int] = None, as_of: Optional[datetime] = None):
        self._rng = random.Random(seed)
        self._as_of = as_of

    def generate_user_profile(self, risk_level: RiskLevel) -> FinancialProfile:
        rng = self._rng
        if risk_level == "low":
            return FinancialProfile(
                monthly_income=50000 + rng.random() * 50000,
                employment_type="employed",
                employment_duration=24 + rng.randrange(36),
                has_defaulted_loans=False,
                outstanding_debts=rng.random() * 10000,
                savings_pattern="consistent",
                expense_ratio=0.6 + rng.random() * 0.2,
            )
        if risk_level == "medium":
            return FinancialProfile(
                monthly_income=30000 + rng.random() * 30000,
                employment_type="employed" if rng.random() > 0.5 else "self-employed",
                employment_duration=12 + rng.randrange(24),
                has_defaulted_loans=False,
                outstanding_debts=rng.random() * 30000,
                savings_pattern="irregular",
                expense_ratio=0.7 + rng.random() * 0.2,
            )
        return FinancialProfile(
            monthly_income=15000 + rng.random() * 15000,
            employment_type="employed" if rng.random() > 0.7 else "unemployed",
            employment_duration=rng.randrange(12),
            has_defaulted_loans=rng.random() > 0.5,
            outstanding_debts=rng.random() * 50000,
            savings_pattern="none",
            expense_ratio=0.9 + rng.random() * 0.1,
        )

    async def fetch_transactions(
        self,
        account_ref: Optional[str],
        channel: Channel,
        months: int,
        profile: FinancialProfile,
    ) -> List[Transaction]:
        if channel == "bank":
            transactions = self.generate_bank_statements(months, profile)
        else:
            transactions = self.generate_mpesa_transactions(months, profile)
        logger.info("Generated %d synthetic %s transactions", len(transactions), channel)
        return transactions

    def generate_mpesa_transactions(self, months: int, profile: FinancialProfile) -> List[Transaction]:
        rng = self._rng
        balance = rng.random() * 5000 + 1000
        transactions = []

        for date in self._days(months):
            # Salary lands on the 1st and 15th for employed applicants
            if profile.employment_type == "employed" and date.day in (1, 15):
                salary = profile.monthly_income / 2
                balance += salary
                transactions.append(self._transaction(
                    "MPE", date, "RECEIVE", salary, balance, "EMPLOYER LTD", "Salary Payment"
                ))

            for _ in range(rng.randrange(5)):
                tx_type = rng.choice(_RANDOM_TYPES)
                low, span = _AMOUNT_RANGES[tx_type]
                amount = low + rng.random() * span
                balance += amount if tx_type == "RECEIVE" else -amount
                balance = abs(balance)
                transactions.append(self._transaction(
                    "MPE", date, tx_type, amount, balance,
                    self._counterparty(tx_type), rng.choice(_REFERENCES)
                ))

        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    def generate_bank_statements(self, months: int, profile: FinancialProfile) -> List[Transaction]:
        rng = self._rng
        balance = rng.random() * 20000 + 5000
        statements = []

        for date in self._days(months):
            if profile.employment_type == "employed" and date.day == 1:
                balance += profile.monthly_income
                statements.append(self._transaction(
                    "BNK", date, "DEPOSIT", profile.monthly_income, balance,
                    "EMPLOYER LTD", "Salary Credit - EMPLOYER LTD"
                ))

            if rng.random() > 0.3:
                description, tx_type = rng.choice(_BANK_EXPENSES)
                expense = rng.random() * 5000
                balance = max(0.0, balance - expense)
                statements.append(self._transaction(
                    "BNK", date, tx_type, expense, balance, None, description
                ))

        statements.sort(key=lambda t: t.date, reverse=True)
        return statements

    def _days(self, months: int):
        as_of = self._as_of or datetime.now()
        for offset in range(months * _DAYS_PER_MONTH, -1, -1):
            day = as_of - timedelta(days=offset)
            yield day.replace(
                hour=self._rng.randint(6, 21),
                minute=self._rng.randrange(60),
                second=0,
                microsecond=0,
            )

    def _transaction(self, prefix, date, tx_type, amount, balance, counterparty, description) -> Transaction:
        return Transaction(
            transaction_id=f"{prefix}{self._rng.getrandbits(40):010X}",
            date=date,
            type=tx_type,
            amount=round(amount, 2),
            balance=round(balance, 2),
            counterparty=counterparty,
            description=description,
        )

    def _counterparty(self, tx_type: TransactionType) -> str:
        name = self._rng.choice(_COUNTERPARTIES)
        if tx_type == "PAYBILL":
            return f"PAYBILL - {name}"
        if tx_type == "BUY_GOODS":
            return f"MERCHANT - {name}"
        return name


class ConnectorDataSource(FinancialDataSource):
    """Placeholder for live M-Pesa / bank connectors; yields no history."""

    async def fetch_transactions(
        self,
        account_ref: Optional[str],
        channel: Channel,
        months: int,
        profile: FinancialProfile,
    ) -> List[Transaction]:
        logger.warning(
            "No live %s connector is configured; returning an empty history for %s",
            channel, account_ref or "unknown account"
        )
        return []


def build_data_source(source: Optional[str] = None, seed: Optional[int] = None) -> FinancialDataSource:
    """Selects the data source named by FINANCIAL_DATA_SOURCE."""
    source = source or settings.FINANCIAL_DATA_SOURCE
    if source == "synthetic":
        return SyntheticDataSource(seed=seed if seed is not None else settings.SYNTHETIC_DATA_SEED)
    if source == "connector":
        return ConnectorDataSource()
    raise ValueError(f"Unknown financial data source: {source}")
