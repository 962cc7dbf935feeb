# quickscore/services/credit.py

import logging
from typing import List, Optional

from quickscore.core.config import settings
from quickscore.prompts.credit import (
    CREDIT_WEIGHTS,
    build_business_credit_prompt,
    build_credit_prompt,
)
from quickscore.schemas.credit import (
    AmountRange,
    ApplicantInfo,
    AssessmentFactor,
    AssessmentFactors,
    BusinessInfo,
    CreditAssessment,
    KeyInsight,
    LoanRecommendation,
    LoanRequest,
    RiskAssessment,
    TermRange,
)
from quickscore.schemas.financial import FinancialAnalysis
from quickscore.schemas.verification import IdentityVerification
from quickscore.services.gateway import GatewayError, ModelGateway

logger = logging.getLogger(__name__)


def _zero_loan() -> LoanRecommendation:
    return LoanRecommendation(
        min_amount=0,
        max_amount=0,
        recommended_amount=0,
        interest_rate=AmountRange(min=0, max=0, recommended=0),
        repayment_period=TermRange(min_months=0, max_months=0, recommended_months=0),
        monthly_repayment=AmountRange(min=0, max=0, recommended=0),
    )


def _unassessed_factors(identity_score: float, identity_details: str, others_details: str) -> AssessmentFactors:
    def factor(name, score, impact, details):
        return AssessmentFactor(score=score, weight=CREDIT_WEIGHTS[name], impact=impact, details=details)

    return AssessmentFactors(
        identity_verification=factor("identity_verification", identity_score, "NEGATIVE", identity_details),
        income_stability=factor("income_stability", 0, "NEUTRAL", others_details),
        spending_behavior=factor("spending_behavior", 0, "NEUTRAL", others_details),
        savings_capacity=factor("savings_capacity", 0, "NEUTRAL", others_details),
        debt_burden=factor("debt_burden", 0, "NEUTRAL", others_details),
    )


def rejection_assessment(
    reason: str,
    *,
    title: str,
    risk_factor: str,
    not_assessed: str,
    identity_score: float = 0,
    identity_details: Optional[str] = None,
    next_steps: Optional[List[str]] = None,
    extra_reasons: Optional[List[str]] = None,
) -> CreditAssessment:
    """
    Builds a complete REJECTED record without calling the model.

    Used for identity failures, failed onboarding gates and technical errors.
    """
    return CreditAssessment(
        credit_score=0,
        approval_status="REJECTED",
        loan_recommendation=_zero_loan(),
        assessment_factors=_unassessed_factors(
            identity_score,
            identity_details or risk_factor,
            not_assessed,
        ),
        key_insights=[KeyInsight(type="WARNING", title=title, description=reason, impact="HIGH")],
        risk_assessment=RiskAssessment(
            overall_risk="VERY_HIGH",
            default_probability=100,
            risk_factors=[risk_factor],
            mitigation_suggestions=[],
        ),
        conditions=[],
        detailed_explanation=reason,
        next_steps=next_steps or ["Please retry the application process."],
        rejection_reasons=[reason, *(extra_reasons or [])],
    )


def identity_rejection(identity: IdentityVerification) -> CreditAssessment:
    return rejection_assessment(
        identity.detailed_feedback,
        title="Identity Verification Failed",
        risk_factor="Identity verification failed",
        not_assessed="Not assessed due to identity verification failure",
        identity_score=identity.confidence,
        identity_details="Identity verification failed",
        next_steps=[
            "Your application has been rejected due to identity verification issues.",
            "Please contact support if you believe this is an error.",
        ],
        extra_reasons=list(identity.id_verification.issues),
    )


def technical_rejection(reason: str) -> CreditAssessment:
    return rejection_assessment(
        reason,
        title="Assessment Could Not Be Completed",
        risk_factor="Assessment could not be completed",
        not_assessed="Not assessed due to a technical error",
    )


class CreditAssessor:
    """
    Turns identity and financial results into a credit decision.

    The score and status returned by the model are authoritative; the
    weights and thresholds only appear in the prompt.
    """
    def __init__(self, gateway: ModelGateway):
        if not gateway:
            raise ValueError("A model gateway must be injected into CreditAssessor.")
        self.gateway = gateway

    async def assess_creditworthiness(
        self,
        applicant_info: ApplicantInfo,
        identity_verification: IdentityVerification,
        financial_analysis: FinancialAnalysis,
        loan_request: Optional[LoanRequest] = None,
    ) -> CreditAssessment:
        if identity_verification.recommendation == "REJECT":
            logger.info("Identity rejected for %s; skipping model assessment", applicant_info.full_name)
            return identity_rejection(identity_verification)

        prompt = build_credit_prompt(applicant_info, identity_verification, financial_analysis, loan_request)
        try:
            assessment = await self.gateway.generate(
                prompt,
                output_schema=CreditAssessment,
                temperature=settings.CREDIT_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Credit assessment error: %s", e)
            return technical_rejection("Technical error during assessment")

        logger.info(
            "Credit assessment for %s: %s (score %s)",
            applicant_info.full_name, assessment.approval_status, assessment.credit_score
        )
        return assessment

    async def assess_business_credit(
        self,
        business_info: BusinessInfo,
        financial_analysis: FinancialAnalysis,
        documents_verified: bool,
        document_confidence: float,
    ) -> CreditAssessment:
        prompt = build_business_credit_prompt(
            business_info, financial_analysis, documents_verified, document_confidence
        )
        try:
            assessment = await self.gateway.generate(
                prompt,
                output_schema=CreditAssessment,
                temperature=settings.BUSINESS_CREDIT_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Business credit assessment error: %s", e)
            return technical_rejection("Technical error during business assessment")

        logger.info(
            "Business credit assessment for %s: %s (score %s)",
            business_info.name, assessment.approval_status, assessment.credit_score
        )
        return assessment
