# quickscore/services/insights.py

import logging

from quickscore.core.config import settings
from quickscore.prompts.insights import (
    build_fraud_prompt,
    build_loan_recommendation_prompt,
    build_summary_prompt,
)
from quickscore.schemas.insights import (
    FinancialSummary,
    FraudFlagReport,
    FraudSignals,
    LoanRecommendationAdvice,
    LoanRecommendationRequest,
)
from quickscore.services.gateway import GatewayError, ModelGateway

logger = logging.getLogger(__name__)

FRAUD_REPORT_FAILURE = FraudFlagReport(
    fraud_flags=["Fraud screening could not be completed"],
    summary="Technical error during fraud screening. Treat the applicant as unscreened.",
)

LOAN_ADVICE_FAILURE = LoanRecommendationAdvice(
    recommended_loan_limit=0,
    recommended_interest_rate=0,
    reasoning="Technical error during loan recommendation",
)

SUMMARY_FAILURE = FinancialSummary(summary="Financial summary unavailable due to a technical error.")


class InsightService:
    """Lender-facing helpers, each one model call."""

    def __init__(self, gateway: ModelGateway):
        if not gateway:
            raise ValueError("A model gateway must be injected into InsightService.")
        self.gateway = gateway

    async def flag_fraudulent_activity(self, signals: FraudSignals) -> FraudFlagReport:
        try:
            report = await self.gateway.generate(
                build_fraud_prompt(signals),
                output_schema=FraudFlagReport,
                temperature=settings.INSIGHT_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Fraud screening error: %s", e)
            return FRAUD_REPORT_FAILURE.model_copy(deep=True)

        if report.fraud_flags:
            logger.warning("Fraud flags raised for %s: %s", signals.name, report.fraud_flags)
        return report

    async def generate_loan_recommendation(
        self,
        request: LoanRecommendationRequest
    ) -> LoanRecommendationAdvice:
        try:
            return await self.gateway.generate(
                build_loan_recommendation_prompt(request),
                output_schema=LoanRecommendationAdvice,
                temperature=settings.INSIGHT_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Loan recommendation error: %s", e)
            return LOAN_ADVICE_FAILURE.model_copy(deep=True)

    async def summarize_financial_data(self, financial_data: str) -> FinancialSummary:
        try:
            return await self.gateway.generate(
                build_summary_prompt(financial_data),
                output_schema=FinancialSummary,
                temperature=settings.INSIGHT_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Financial summary error: %s", e)
            return SUMMARY_FAILURE.model_copy(deep=True)
