# quickscore/schemas/insights.py

from pydantic import BaseModel, Field
from typing import List, Literal


class FraudSignals(BaseModel):
    name: str
    email: str
    phone: str
    liveness_detection_passed: bool
    id_document_authentic: bool
    device_intelligence_flags: List[str] = Field(default_factory=list)
    transaction_history_consistent: bool
    seasonal_income_pattern_positive: bool


class FraudFlagReport(BaseModel):
    fraud_flags: List[str] = Field(default_factory=list, description="Fraud flags raised by the model")
    summary: str


class LoanRecommendationRequest(BaseModel):
    risk_profile: Literal["Low", "Medium", "High"]
    average_monthly_income: float = Field(..., ge=0)
    estimated_existing_debt_payments: float = Field(..., ge=0)
    loan_purpose: str
    loan_history: str
    credit_score: float = Field(..., ge=0, le=100)


class LoanRecommendationAdvice(BaseModel):
    recommended_loan_limit: float = Field(..., ge=0)
    recommended_interest_rate: float = Field(..., ge=0, description="Percent per annum")
    reasoning: str


class FinancialSummary(BaseModel):
    summary: str
