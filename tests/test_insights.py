"""Tests for the lender insight flows."""

import pytest

from quickscore.core.config import settings
from quickscore.schemas.insights import (
    FinancialSummary,
    FraudFlagReport,
    FraudSignals,
    LoanRecommendationAdvice,
    LoanRecommendationRequest,
)
from quickscore.services.gateway import GatewayError
from quickscore.services.insights import (
    FRAUD_REPORT_FAILURE,
    LOAN_ADVICE_FAILURE,
    SUMMARY_FAILURE,
    InsightService,
)


@pytest.fixture
def signals():
    return FraudSignals(
        name="Brian Otieno",
        email="brian@example.com",
        phone="+254700000001",
        liveness_detection_passed=False,
        id_document_authentic=True,
        device_intelligence_flags=["Device linked to 4 accounts"],
        transaction_history_consistent=False,
        seasonal_income_pattern_positive=False,
    )


@pytest.fixture
def loan_request():
    return LoanRecommendationRequest(
        risk_profile="Medium",
        average_monthly_income=45000,
        estimated_existing_debt_payments=8000,
        loan_purpose="School fees",
        loan_history="Two Fuliza loans repaid on time",
        credit_score=61,
    )


class TestFraudFlags:

    @pytest.mark.asyncio
    async def test_prompt_lists_signals(self, gateway, signals):
        gateway.queue(FraudFlagReport, FraudFlagReport(fraud_flags=["Shared device"], summary="High risk"))

        report = await InsightService(gateway).flag_fraudulent_activity(signals)

        prompt = gateway.calls[0].prompt
        assert "- Device linked to 4 accounts" in prompt
        assert "Liveness Detection Passed: False" in prompt
        assert "Brian Otieno" in prompt
        assert report.fraud_flags == ["Shared device"]
        assert gateway.calls[0].temperature == settings.INSIGHT_TEMPERATURE

    @pytest.mark.asyncio
    async def test_failure_is_not_a_clean_bill(self, gateway, signals):
        gateway.queue(FraudFlagReport, GatewayError("timeout"))

        report = await InsightService(gateway).flag_fraudulent_activity(signals)

        assert report == FRAUD_REPORT_FAILURE
        assert report.fraud_flags


class TestLoanRecommendation:

    @pytest.mark.asyncio
    async def test_returns_advice(self, gateway, loan_request):
        advice = LoanRecommendationAdvice(
            recommended_loan_limit=60000, recommended_interest_rate=15, reasoning="Moderate debt load"
        )
        gateway.queue(LoanRecommendationAdvice, advice)

        result = await InsightService(gateway).generate_loan_recommendation(loan_request)

        assert result == advice
        assert "School fees" in gateway.calls[0].prompt
        assert settings.CURRENCY in gateway.calls[0].prompt

    @pytest.mark.asyncio
    async def test_failure_returns_zero_limit(self, gateway, loan_request):
        result = await InsightService(gateway).generate_loan_recommendation(loan_request)

        assert result == LOAN_ADVICE_FAILURE
        assert result.recommended_loan_limit == 0


class TestFinancialSummary:

    @pytest.mark.asyncio
    async def test_summarizes_text(self, gateway):
        gateway.queue(FinancialSummary, FinancialSummary(summary="Income covers expenses twice over"))

        result = await InsightService(gateway).summarize_financial_data("Salary KES 80,000; rent KES 25,000")

        assert result.summary == "Income covers expenses twice over"
        assert "rent KES 25,000" in gateway.calls[0].prompt

    @pytest.mark.asyncio
    async def test_failure(self, gateway):
        gateway.queue(FinancialSummary, GatewayError("empty"))

        assert await InsightService(gateway).summarize_financial_data("anything") == SUMMARY_FAILURE
