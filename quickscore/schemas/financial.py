# quickscore/schemas/financial.py

from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Literal, Optional

TransactionType = Literal["SEND", "RECEIVE", "PAYBILL", "BUY_GOODS", "WITHDRAW", "DEPOSIT"]

INFLOW_TYPES = ("RECEIVE", "DEPOSIT")
OUTFLOW_TYPES = ("SEND", "PAYBILL", "BUY_GOODS", "WITHDRAW")


class Transaction(BaseModel):
    """A single mobile-money or bank movement, newest first when listed."""
    transaction_id: str
    date: datetime
    type: TransactionType
    amount: float = Field(..., ge=0)
    balance: float = Field(..., ge=0)
    counterparty: Optional[str] = None
    description: str = ""

    # Naive timestamps are read as UTC so mixed histories stay comparable
    @field_validator("date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class FinancialProfile(BaseModel):
    monthly_income: float
    employment_type: Literal["employed", "self-employed", "unemployed", "student"]
    employment_duration: int = Field(..., description="Months in current employment")
    has_defaulted_loans: bool = False
    outstanding_debts: float = 0.0
    savings_pattern: Literal["consistent", "irregular", "none"] = "irregular"
    expense_ratio: float = Field(0.7, ge=0, le=1)


class TransactionSummary(BaseModel):
    """Locally computed aggregates, only used as prompt context."""
    total_transactions: int
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    transactions_by_type: Dict[str, int] = Field(default_factory=dict)
    total_received: float = 0.0
    total_spent: float = 0.0
    average_balance: float = 0.0
    min_balance: float = 0.0
    max_balance: float = 0.0


# --- Model output ---

class IncomeStability(BaseModel):
    score: float = Field(..., ge=0, le=100)
    average_monthly_income: float
    income_consistency: Literal["VERY_STABLE", "STABLE", "MODERATE", "VOLATILE", "VERY_VOLATILE"]
    income_sources: List[str] = Field(default_factory=list)
    analysis: str


class SpendingCategory(BaseModel):
    category: str
    amount: float
    percentage: float


class SpendingBehavior(BaseModel):
    score: float = Field(..., ge=0, le=100)
    average_monthly_expenses: float
    spending_pattern: Literal["RESPONSIBLE", "MODERATE", "CONCERNING", "RISKY"]
    major_categories: List[SpendingCategory] = Field(default_factory=list)
    analysis: str


class SavingsBehavior(BaseModel):
    score: float = Field(..., ge=0, le=100)
    average_monthly_savings: float
    savings_rate: float
    savings_consistency: Literal["EXCELLENT", "GOOD", "FAIR", "POOR", "NONE"]
    analysis: str


class DebtIndicators(BaseModel):
    score: float = Field(..., ge=0, le=100)
    has_loan_payments: bool
    estimated_monthly_debt: float
    debt_to_income_ratio: float
    risk_level: Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
    analysis: str


class TransactionPatterns(BaseModel):
    total_transactions: int
    average_transaction_value: float
    most_active_day: str
    most_active_hour: int
    regular_payments: List[str] = Field(default_factory=list)
    unusual_activity: List[str] = Field(default_factory=list)


class FinancialRecommendation(BaseModel):
    eligible: bool
    max_loan_amount: float
    suggested_interest_rate: float = Field(..., description="Percent per annum")
    max_repayment_months: int
    reasoning: str
    warnings: List[str] = Field(default_factory=list)


class FinancialAnalysis(BaseModel):
    overall_score: float = Field(..., ge=0, le=100)
    income_stability: IncomeStability
    spending_behavior: SpendingBehavior
    savings_behavior: SavingsBehavior
    debt_indicators: DebtIndicators
    transaction_patterns: TransactionPatterns
    recommendation: FinancialRecommendation
