# quickscore/schemas/credit.py

from pydantic import BaseModel, Field
from typing import List, Literal, Optional

ApprovalStatus = Literal["APPROVED", "CONDITIONALLY_APPROVED", "REJECTED", "UNDER_REVIEW"]
FactorImpact = Literal["POSITIVE", "NEUTRAL", "NEGATIVE"]
RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "VERY_HIGH"]


class ApplicantInfo(BaseModel):
    full_name: str = Field(..., min_length=1)
    date_of_birth: str
    employment_status: str
    monthly_income: Optional[float] = Field(default=None, ge=0)
    employer_name: Optional[str] = None


class LoanRequest(BaseModel):
    requested_amount: Optional[float] = Field(default=None, gt=0)
    purpose: Optional[str] = None
    preferred_term: Optional[int] = Field(default=None, gt=0, description="Months")


class BusinessInfo(BaseModel):
    name: str = Field(..., min_length=1)
    registration_number: str
    years_in_operation: float = Field(..., ge=0)
    industry: str
    employee_count: str
    monthly_revenue: float = Field(..., ge=0)


# --- Assessment output ---

class AmountRange(BaseModel):
    min: float
    max: float
    recommended: float


class TermRange(BaseModel):
    min_months: int
    max_months: int
    recommended_months: int


class LoanRecommendation(BaseModel):
    min_amount: float
    max_amount: float
    recommended_amount: float
    interest_rate: AmountRange = Field(..., description="Percent per annum")
    repayment_period: TermRange
    monthly_repayment: AmountRange


class AssessmentFactor(BaseModel):
    score: float = Field(..., ge=0, le=100)
    weight: float = Field(..., description="Percentage weight of this factor")
    impact: FactorImpact
    details: str


class AssessmentFactors(BaseModel):
    """Weighted factors; field names are reused for business assessments."""
    identity_verification: AssessmentFactor
    income_stability: AssessmentFactor
    spending_behavior: AssessmentFactor
    savings_capacity: AssessmentFactor
    debt_burden: AssessmentFactor


class KeyInsight(BaseModel):
    type: Literal["STRENGTH", "WEAKNESS", "WARNING", "OPPORTUNITY"]
    title: str
    description: str
    impact: Literal["HIGH", "MEDIUM", "LOW"]


class RiskAssessment(BaseModel):
    overall_risk: RiskLevel
    default_probability: float = Field(..., ge=0, le=100)
    risk_factors: List[str] = Field(default_factory=list)
    mitigation_suggestions: List[str] = Field(default_factory=list)


class AssessmentCondition(BaseModel):
    type: Literal["REQUIRED", "RECOMMENDED", "OPTIONAL"]
    description: str
    reason: str


class CreditAssessment(BaseModel):
    """Final credit decision returned to the caller."""
    credit_score: float = Field(..., ge=0, le=100)
    approval_status: ApprovalStatus
    loan_recommendation: Optional[LoanRecommendation] = None
    assessment_factors: AssessmentFactors
    key_insights: List[KeyInsight] = Field(default_factory=list)
    risk_assessment: RiskAssessment
    conditions: List[AssessmentCondition] = Field(default_factory=list)
    detailed_explanation: str
    next_steps: List[str] = Field(default_factory=list)
    rejection_reasons: List[str] = Field(default_factory=list)
