"""Tests for the onboarding pipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from factories import IMAGE, credit_assessment, face_match, financial_analysis, id_document, liveness, transactions
from quickscore.core.config import settings
from quickscore.schemas.credit import CreditAssessment
from quickscore.schemas.financial import FinancialAnalysis
from quickscore.schemas.onboarding import (
    BusinessOnboardingRequest,
    IndividualOnboardingRequest,
    OnboardingStage,
    StepStatus,
)
from quickscore.schemas.verification import FaceMatchResult, IDDocumentResult, LivenessResult
from quickscore.services.orchestrator import build_orchestrator


def individual_request(connection="mpesa") -> IndividualOnboardingRequest:
    return IndividualOnboardingRequest.model_validate({
        "liveness_image": IMAGE,
        "id_front_image": IMAGE,
        "id_back_image": IMAGE,
        "personal_info": {
            "first_name": "Jane",
            "last_name": "Wanjiku",
            "email": "jane@example.com",
            "phone": "+254712345678",
            "employment_type": "employed",
            "monthly_income": 85000,
        },
        "financial_connection": {"type": connection, "account_info": "0712345678"},
    })


def business_request(connection="till", address_proof=None) -> BusinessOnboardingRequest:
    return BusinessOnboardingRequest.model_validate({
        "business_info": {
            "name": "Mama Mboga Traders",
            "registration_number": "PVT-2019-00123",
            "years_in_operation": 4,
            "industry": "Retail",
            "employee_count": "6-10",
            "monthly_revenue": 320000,
        },
        "documents": {"registration_cert": IMAGE, "tax_cert": IMAGE, "address_proof": address_proof},
        "representative": {"name": "Jane Wanjiku", "id_number": "12345678", "relationship": "Director"},
        "financial_connection": {"type": connection, "account_info": "TILL-5566"},
    })


@pytest.fixture
def data_source():
    source = MagicMock()
    source.fetch_transactions = AsyncMock(return_value=transactions(12))
    return source


@pytest.fixture
def observer():
    return MagicMock()


@pytest.fixture
def orchestrator(gateway, data_source, observer):
    return build_orchestrator(gateway, data_source=data_source, observer=observer)


def queue_individual_pass(gateway, face_confidence=88, status="APPROVED"):
    gateway.queue(LivenessResult, liveness(confidence=95))
    gateway.queue(IDDocumentResult, id_document(confidence=92))
    gateway.queue(FaceMatchResult, face_match(confidence=face_confidence))
    gateway.queue(FinancialAnalysis, financial_analysis())
    gateway.queue(CreditAssessment, credit_assessment(status=status))


def step_names(result):
    return [step.step for step in result.processing_steps]


def failed_steps(result):
    return [step.step for step in result.processing_steps if step.status == StepStatus.FAILED]


class TestIndividualGates:

    @pytest.mark.asyncio
    async def test_liveness_failure_stops_pipeline(self, gateway, orchestrator, data_source):
        gateway.queue(LivenessResult, liveness(passed=False, confidence=20))

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is False
        assert result.applicant_id == ""
        assert failed_steps(result) == ["Liveness Detection"]
        assert set(step_names(result)) == {"Liveness Detection"}
        assert gateway.schemas_called() == ["LivenessResult"]
        data_source.fetch_transactions.assert_not_awaited()
        assert result.assessment.approval_status == "REJECTED"
        assert result.assessment.rejection_reasons

    @pytest.mark.asyncio
    async def test_forged_id_stops_pipeline(self, gateway, orchestrator):
        gateway.queue(LivenessResult, liveness())
        gateway.queue(IDDocumentResult, id_document(forgery=True, forgery_indicators=["Hologram missing"]))

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is False
        assert failed_steps(result) == ["ID Verification"]
        assert "Face Matching" not in step_names(result)
        assert "FORGERY DETECTED: Hologram missing" in result.assessment.detailed_explanation

    @pytest.mark.asyncio
    async def test_unauthentic_id_stops_pipeline(self, gateway, orchestrator):
        gateway.queue(LivenessResult, liveness())
        gateway.queue(IDDocumentResult, id_document(authentic=False, warnings=["Glare over photo"]))

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert failed_steps(result) == ["ID Verification"]
        assert "Glare over photo" in result.assessment.detailed_explanation

    @pytest.mark.asyncio
    async def test_face_match_below_gate_stops_pipeline(self, gateway, orchestrator):
        queue_individual_pass(gateway, face_confidence=60)

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is False
        assert failed_steps(result) == ["Face Matching"]
        assert "Financial Analysis" not in step_names(result)
        assert "Credit Assessment" not in step_names(result)
        assert gateway.schemas_called() == ["LivenessResult", "IDDocumentResult", "FaceMatchResult"]

    @pytest.mark.asyncio
    async def test_face_gate_is_stricter_than_review_threshold(self, gateway, orchestrator):
        # 72 clears the identity review boundary but not the face gate
        assert settings.IDENTITY_REVIEW_THRESHOLD <= 72 < settings.FACE_MATCH_GATE_THRESHOLD
        queue_individual_pass(gateway, face_confidence=72)

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert failed_steps(result) == ["Face Matching"]

    @pytest.mark.asyncio
    async def test_unmatched_face_with_high_confidence(self, gateway, orchestrator):
        gateway.queue(LivenessResult, liveness())
        gateway.queue(IDDocumentResult, id_document())
        gateway.queue(FaceMatchResult, face_match(matched=False, confidence=95, fraud_indicators=["Printed photo"]))

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert failed_steps(result) == ["Face Matching"]
        assert "FRAUD INDICATORS: Printed photo" in result.assessment.detailed_explanation


class TestIndividualPipeline:

    @pytest.mark.asyncio
    async def test_full_run(self, gateway, orchestrator, data_source):
        queue_individual_pass(gateway)

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is True
        assert result.applicant_id.startswith("USER_")
        assert result.assessment.approval_status == "APPROVED"
        assert gateway.schemas_called() == [
            "LivenessResult", "IDDocumentResult", "FaceMatchResult", "FinancialAnalysis", "CreditAssessment",
        ]
        assert [(s.step, s.status) for s in result.processing_steps if s.status != StepStatus.PROCESSING] == [
            ("Liveness Detection", StepStatus.COMPLETED),
            ("ID Verification", StepStatus.COMPLETED),
            ("Face Matching", StepStatus.COMPLETED),
            ("Financial Analysis", StepStatus.COMPLETED),
            ("Credit Assessment", StepStatus.COMPLETED),
        ]
        assert result.processing_steps[-1].message == "Assessment complete: Score 74/100"

        account, channel, months, profile = data_source.fetch_transactions.await_args.args
        assert (account, channel, months) == ("0712345678", "mpesa", settings.INDIVIDUAL_HISTORY_MONTHS)
        assert profile.monthly_income == 85000

    @pytest.mark.asyncio
    async def test_bank_connection_fetches_longer_history(self, gateway, orchestrator, data_source):
        queue_individual_pass(gateway)

        await orchestrator.process_individual_onboarding(individual_request(connection="bank"))

        account, channel, months, profile = data_source.fetch_transactions.await_args.args
        assert (channel, months) == ("bank", settings.BANK_HISTORY_MONTHS)
        assert months == 6

    @pytest.mark.asyncio
    async def test_each_stage_is_processing_then_terminal(self, gateway, orchestrator):
        queue_individual_pass(gateway)

        result = await orchestrator.process_individual_onboarding(individual_request())

        statuses = [s.status for s in result.processing_steps]
        assert statuses == [StepStatus.PROCESSING, StepStatus.COMPLETED] * 5

    @pytest.mark.asyncio
    async def test_skip_connection_analyzes_empty_history(self, gateway, orchestrator, data_source):
        queue_individual_pass(gateway)

        result = await orchestrator.process_individual_onboarding(individual_request(connection="skip"))

        data_source.fetch_transactions.assert_not_awaited()
        assert "Analyzed 0 transactions" in [s.message for s in result.processing_steps]
        assert result.success is True

    @pytest.mark.asyncio
    async def test_model_rejection_means_no_success(self, gateway, orchestrator):
        queue_individual_pass(gateway, status="REJECTED")

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is False
        assert result.applicant_id.startswith("USER_")
        assert failed_steps(result) == []

    @pytest.mark.asyncio
    async def test_conditional_approval_counts_as_success(self, gateway, orchestrator):
        queue_individual_pass(gateway, status="CONDITIONALLY_APPROVED")

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is True

    @pytest.mark.asyncio
    async def test_credit_prompt_uses_gate_results(self, gateway, orchestrator):
        queue_individual_pass(gateway, face_confidence=88)

        await orchestrator.process_individual_onboarding(individual_request())

        prompt = gateway.calls[-1].prompt
        assert "Jane Wanjiku" in prompt
        assert "Face Match: PASSED (88" in prompt
        assert "ID Authenticity: AUTHENTIC" in prompt


class TestProgressAndErrors:

    @pytest.mark.asyncio
    async def test_observer_sees_every_stage(self, gateway, orchestrator, observer):
        queue_individual_pass(gateway)

        await orchestrator.process_individual_onboarding(individual_request())

        updates = [c.args[0] for c in observer.on_progress.call_args_list]
        assert [u.progress for u in updates] == [10, 25, 40, 60, 80, 100]
        assert updates[0].stage == OnboardingStage.IDENTITY
        assert updates[-1].stage == OnboardingStage.COMPLETE
        assert updates[-1].estimated_time_remaining == 0

    @pytest.mark.asyncio
    async def test_observer_errors_do_not_break_the_run(self, gateway, orchestrator, observer):
        observer.on_progress.side_effect = RuntimeError("socket closed")
        queue_individual_pass(gateway)

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is True

    @pytest.mark.asyncio
    async def test_runs_without_observer(self, gateway, data_source):
        queue_individual_pass(gateway)
        orchestrator = build_orchestrator(gateway, data_source=data_source)

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is True

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failed_result(self, gateway, orchestrator, data_source):
        queue_individual_pass(gateway)
        data_source.fetch_transactions.side_effect = RuntimeError("connector exploded")

        result = await orchestrator.process_individual_onboarding(individual_request())

        assert result.success is False
        assert result.applicant_id == ""
        assert result.processing_steps[-1].step == "Onboarding"
        assert result.processing_steps[-1].status == StepStatus.FAILED
        assert result.assessment.approval_status == "REJECTED"

    @pytest.mark.asyncio
    async def test_step_log_resets_between_runs(self, gateway, orchestrator):
        gateway.queue(LivenessResult, liveness(passed=False))
        first = await orchestrator.process_individual_onboarding(individual_request())
        second = await orchestrator.process_individual_onboarding(individual_request())

        assert len(first.processing_steps) == 2
        assert len(second.processing_steps) == 2
        assert first.processing_steps[0] is not second.processing_steps[0]


class TestBusinessPipeline:

    @pytest.mark.asyncio
    async def test_full_run(self, gateway, orchestrator, data_source):
        gateway.queue(IDDocumentResult, id_document(confidence=90), id_document(confidence=80))
        gateway.queue(FinancialAnalysis, financial_analysis())
        gateway.queue(CreditAssessment, credit_assessment(score=68, status="CONDITIONALLY_APPROVED"))

        result = await orchestrator.process_business_onboarding(business_request())

        assert result.success is True
        assert result.applicant_id.startswith("BIZ_")
        assert [s.step for s in result.processing_steps if s.status == StepStatus.COMPLETED] == [
            "Business Registration", "Tax Verification", "Financial Analysis", "Credit Assessment",
        ]
        assert "Verification Confidence: 85%" in gateway.calls[-1].prompt
        assert gateway.calls[-1].temperature == settings.BUSINESS_CREDIT_TEMPERATURE

        account, channel, months, profile = data_source.fetch_transactions.await_args.args
        assert (channel, months) == ("till", settings.BUSINESS_HISTORY_MONTHS)
        assert profile.monthly_income == 320000

    @pytest.mark.asyncio
    async def test_registration_failure(self, gateway, orchestrator):
        gateway.queue(IDDocumentResult, id_document(authentic=False, forgery_indicators=["Seal missing"]))

        result = await orchestrator.process_business_onboarding(business_request())

        assert result.success is False
        assert failed_steps(result) == ["Business Registration"]
        assert "Tax Verification" not in step_names(result)
        assert len(gateway.calls) == 1

    @pytest.mark.asyncio
    async def test_tax_failure(self, gateway, orchestrator):
        gateway.queue(IDDocumentResult, id_document(), id_document(authentic=False, warnings=["PIN format invalid"]))

        result = await orchestrator.process_business_onboarding(business_request())

        assert failed_steps(result) == ["Tax Verification"]
        assert "Financial Analysis" not in step_names(result)
        assert "PIN format invalid" in result.assessment.detailed_explanation

    @pytest.mark.asyncio
    async def test_address_proof_is_verified_when_given(self, gateway, orchestrator):
        gateway.queue(IDDocumentResult, id_document(), id_document(), id_document(authentic=False))

        result = await orchestrator.process_business_onboarding(business_request(address_proof=IMAGE))

        assert failed_steps(result) == ["Address Verification"]
        assert "address" in gateway.calls[2].prompt.lower()

    @pytest.mark.asyncio
    async def test_manual_connection_skips_data_source(self, gateway, orchestrator, data_source):
        gateway.queue(IDDocumentResult, id_document())
        gateway.queue(FinancialAnalysis, financial_analysis())
        gateway.queue(CreditAssessment, credit_assessment())

        result = await orchestrator.process_business_onboarding(business_request(connection="manual"))

        data_source.fetch_transactions.assert_not_awaited()
        assert result.success is True

    @pytest.mark.asyncio
    async def test_business_progress(self, gateway, orchestrator, observer):
        gateway.queue(IDDocumentResult, id_document())
        gateway.queue(FinancialAnalysis, financial_analysis())
        gateway.queue(CreditAssessment, credit_assessment())

        await orchestrator.process_business_onboarding(business_request())

        updates = [c.args[0] for c in observer.on_progress.call_args_list]
        assert [u.progress for u in updates] == [15, 35, 55, 80, 100]
        assert updates[0].stage == OnboardingStage.DOCUMENTS
