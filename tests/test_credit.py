"""Tests for the credit assessment adapter."""

import pytest

from factories import credit_assessment, face_comparison, financial_analysis, id_analysis, liveness_analysis
from quickscore.core.config import settings
from quickscore.schemas.credit import ApplicantInfo, BusinessInfo, CreditAssessment, LoanRequest
from quickscore.services.credit import CreditAssessor, identity_rejection, technical_rejection
from quickscore.services.gateway import GatewayError
from quickscore.services.identity import decide_identity


@pytest.fixture
def applicant():
    return ApplicantInfo(
        full_name="Jane Wanjiku",
        date_of_birth="1992-04-12",
        employment_status="employed",
        monthly_income=85000,
        employer_name="Safaricom PLC",
    )


@pytest.fixture
def business():
    return BusinessInfo(
        name="Mama Mboga Traders",
        registration_number="PVT-2019-00123",
        years_in_operation=4,
        industry="Retail",
        employee_count="6-10",
        monthly_revenue=320000,
    )


def approved_identity():
    return decide_identity(id_analysis(confidence=95), liveness_analysis(confidence=92), face_comparison(confidence=80))


def rejected_identity():
    return decide_identity(
        id_analysis(forged=True, confidence=40, issues=["Hologram missing", "Font mismatch"]),
        liveness_analysis(),
        face_comparison(),
    )


class TestFastPathRejection:
    """A rejected identity never reaches the model."""

    @pytest.mark.asyncio
    async def test_no_gateway_call(self, gateway, applicant):
        result = await CreditAssessor(gateway).assess_creditworthiness(
            applicant, rejected_identity(), financial_analysis()
        )

        assert gateway.calls == []
        assert result.credit_score == 0
        assert result.approval_status == "REJECTED"
        assert result.risk_assessment.default_probability == 100
        assert result.risk_assessment.overall_risk == "VERY_HIGH"

    @pytest.mark.asyncio
    async def test_rejection_record_contents(self, gateway, applicant):
        identity = rejected_identity()

        result = await CreditAssessor(gateway).assess_creditworthiness(applicant, identity, financial_analysis())

        factors = result.assessment_factors
        assert factors.identity_verification.impact == "NEGATIVE"
        assert factors.identity_verification.score == identity.confidence
        assert [f.weight for f in (
            factors.identity_verification, factors.income_stability, factors.spending_behavior,
            factors.savings_capacity, factors.debt_burden,
        )] == [30, 25, 20, 15, 10]
        assert factors.debt_burden.impact == "NEUTRAL"
        assert factors.income_stability.details == "Not assessed due to identity verification failure"

        assert len(result.key_insights) == 1
        assert result.key_insights[0].type == "WARNING"
        assert result.key_insights[0].title == "Identity Verification Failed"
        assert result.detailed_explanation == identity.detailed_feedback
        assert result.rejection_reasons == [identity.detailed_feedback, "Hologram missing", "Font mismatch"]
        assert result.risk_assessment.risk_factors == ["Identity verification failed"]
        assert result.loan_recommendation.max_amount == 0

    def test_identity_rejection_is_pure(self):
        identity = rejected_identity()
        assert identity_rejection(identity) == identity_rejection(identity)


class TestModelAssessment:

    @pytest.mark.asyncio
    async def test_model_output_is_authoritative(self, gateway, applicant):
        # A score below 40 labelled APPROVED is passed through untouched
        expected = credit_assessment(score=35, status="APPROVED")
        gateway.queue(CreditAssessment, expected)

        result = await CreditAssessor(gateway).assess_creditworthiness(
            applicant, approved_identity(), financial_analysis()
        )

        assert result == expected
        assert gateway.calls[0].temperature == settings.CREDIT_TEMPERATURE

    @pytest.mark.asyncio
    async def test_prompt_contents(self, gateway, applicant):
        gateway.queue(CreditAssessment, credit_assessment())

        await CreditAssessor(gateway).assess_creditworthiness(
            applicant, approved_identity(), financial_analysis(score=72),
            LoanRequest(requested_amount=50000, purpose="Stock purchase", preferred_term=6),
        )

        prompt = gateway.calls[0].prompt
        assert "Jane Wanjiku" in prompt
        assert "Employer: Safaricom PLC" in prompt
        assert "Overall Financial Score: 72" in prompt
        assert "Purpose: Stock purchase" in prompt
        assert "Preferred Term: 6 months" in prompt
        assert "Identity Verification: 30% weight" in prompt
        assert "REJECTED: Score < 40" in prompt

    @pytest.mark.asyncio
    async def test_manual_review_identity_still_assessed(self, gateway, applicant):
        identity = decide_identity(id_analysis(confidence=60), liveness_analysis(confidence=60), face_comparison(confidence=60))
        gateway.queue(CreditAssessment, credit_assessment(score=45, status="UNDER_REVIEW"))

        result = await CreditAssessor(gateway).assess_creditworthiness(applicant, identity, financial_analysis())

        assert identity.recommendation == "MANUAL_REVIEW"
        assert len(gateway.calls) == 1
        assert result.approval_status == "UNDER_REVIEW"

    @pytest.mark.asyncio
    async def test_gateway_error_returns_technical_rejection(self, gateway, applicant):
        gateway.queue(CreditAssessment, GatewayError("timeout"))

        result = await CreditAssessor(gateway).assess_creditworthiness(
            applicant, approved_identity(), financial_analysis()
        )

        assert result.approval_status == "REJECTED"
        assert result.credit_score == 0
        assert result.rejection_reasons == ["Technical error during assessment"]


class TestBusinessAssessment:

    @pytest.mark.asyncio
    async def test_business_prompt_and_temperature(self, gateway, business):
        gateway.queue(CreditAssessment, credit_assessment(score=66, status="CONDITIONALLY_APPROVED"))

        result = await CreditAssessor(gateway).assess_business_credit(business, financial_analysis(), True, 87.5)

        call = gateway.calls[0]
        assert call.temperature == settings.BUSINESS_CREDIT_TEMPERATURE
        assert "Mama Mboga Traders" in call.prompt
        assert "Documents Verified: YES" in call.prompt
        assert "Verification Confidence: 88%" in call.prompt
        assert "Revenue Stability (30%)" in call.prompt
        assert result.approval_status == "CONDITIONALLY_APPROVED"

    @pytest.mark.asyncio
    async def test_unverified_documents_are_flagged(self, gateway, business):
        gateway.queue(CreditAssessment, credit_assessment(score=20, status="REJECTED"))

        await CreditAssessor(gateway).assess_business_credit(business, financial_analysis(), False, 30)

        assert "NO - CRITICAL" in gateway.calls[0].prompt

    @pytest.mark.asyncio
    async def test_gateway_error(self, gateway, business):
        result = await CreditAssessor(gateway).assess_business_credit(business, financial_analysis(), True, 90)

        assert result.approval_status == "REJECTED"
        assert result.rejection_reasons == ["Technical error during business assessment"]


def test_technical_rejection_shape():
    result = technical_rejection("Something broke")
    assert result.key_insights[0].description == "Something broke"
    assert result.next_steps == ["Please retry the application process."]
