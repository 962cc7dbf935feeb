# quickscore/services/orchestrator.py

import logging
import time
from typing import List, Optional, Protocol

from quickscore.core.config import settings
from quickscore.schemas.credit import ApplicantInfo, CreditAssessment
from quickscore.schemas.financial import FinancialProfile
from quickscore.schemas.onboarding import (
    BusinessOnboardingRequest,
    IndividualOnboardingRequest,
    OnboardingProgress,
    OnboardingResult,
    OnboardingStage,
    ProcessingStep,
    StepStatus,
)
from quickscore.services.credit import CreditAssessor, rejection_assessment
from quickscore.services.data_sources import FinancialDataSource, build_data_source
from quickscore.services.financial import FinancialAnalyzer
from quickscore.services.gateway import ModelGateway
from quickscore.services.identity import identity_from_checks
from quickscore.services.verification import VerificationService

logger = logging.getLogger(__name__)

# Business connections without a transaction feed are analysed on an empty history
_BUSINESS_CHANNELS = {"till": "till", "bank": "bank"}


class ProgressObserver(Protocol):
    def on_progress(self, progress: OnboardingProgress) -> None:
        ...


class OnboardingOrchestrator:
    """
    Runs the onboarding pipeline for one applicant at a time.

    Every stage is awaited before the next one starts, and the first failing
    gate ends the run with a rejection. Each run starts a fresh step log, so
    concurrent requests should each get their own instance.
    """
    def __init__(
        self,
        verification: VerificationService,
        financial: FinancialAnalyzer,
        credit: CreditAssessor,
        data_source: FinancialDataSource,
        observer: Optional[ProgressObserver] = None,
    ):
        if not verification or not financial or not credit:
            raise ValueError("Verification, financial and credit services must be injected into OnboardingOrchestrator.")
        if not data_source:
            raise ValueError("A FinancialDataSource must be injected into OnboardingOrchestrator.")

        self.verification = verification
        self.financial = financial
        self.credit = credit
        self.data_source = data_source
        self.observer = observer
        self._steps: List[ProcessingStep] = []

    @property
    def processing_steps(self) -> List[ProcessingStep]:
        return list(self._steps)

    async def process_individual_onboarding(self, request: IndividualOnboardingRequest) -> OnboardingResult:
        self._steps = []
        try:
            return await self._run_individual(request)
        except Exception as e:
            logger.exception("Individual onboarding crashed")
            return self._crashed(e)

    async def process_business_onboarding(self, request: BusinessOnboardingRequest) -> OnboardingResult:
        self._steps = []
        try:
            return await self._run_business(request)
        except Exception as e:
            logger.exception("Business onboarding crashed")
            return self._crashed(e)

    async def _run_individual(self, request: IndividualOnboardingRequest) -> OnboardingResult:
        personal = request.personal_info
        self._progress(OnboardingStage.IDENTITY, 10, "Starting identity verification...", 45)

        # 1. Liveness
        self._step("Liveness Detection", StepStatus.PROCESSING, "Analyzing live selfie for spoofing...")
        liveness = await self.verification.perform_liveness_check(request.liveness_image)
        if not liveness.is_passed:
            self._step("Liveness Detection", StepStatus.FAILED,
                       f"Liveness check failed: {', '.join(liveness.recommendations)}")
            return self._reject(
                "Liveness verification failed",
                f"We couldn't verify that you're a real person. {' '.join(liveness.recommendations)}".strip(),
            )
        self._step("Liveness Detection", StepStatus.COMPLETED,
                   f"Passed with {liveness.confidence:g}% confidence")
        self._progress(OnboardingStage.IDENTITY, 25, "Verifying ID document...", 35)

        # 2. ID document
        self._step("ID Verification", StepStatus.PROCESSING, "Analyzing ID for authenticity...")
        id_result = await self.verification.verify_id_document(request.id_front_image, request.id_back_image)
        if not id_result.is_authentic or id_result.forgery_detected:
            self._step("ID Verification", StepStatus.FAILED,
                       f"ID verification failed: {', '.join(id_result.forgery_indicators)}")
            if id_result.forgery_detected:
                message = (f"FORGERY DETECTED: {'. '.join(id_result.forgery_indicators)}. "
                           "Please provide a genuine ID document.")
            else:
                message = f"ID verification issues: {'. '.join(id_result.warnings)}"
            return self._reject("ID document verification failed", message)
        self._step("ID Verification", StepStatus.COMPLETED,
                   f"ID verified with {id_result.confidence:g}% confidence")
        self._progress(OnboardingStage.IDENTITY, 40, "Matching face with ID photo...", 25)

        # 3. Face match, gated harder than the identity review boundary
        self._step("Face Matching", StepStatus.PROCESSING, "Comparing your face with ID photo...")
        face = await self.verification.verify_face_match(request.liveness_image, request.id_front_image)
        if not face.is_match or face.confidence < settings.FACE_MATCH_GATE_THRESHOLD:
            self._step("Face Matching", StepStatus.FAILED, f"Face mismatch: {', '.join(face.reasons)}")
            message = f"The face in your selfie doesn't match the ID photo. {'. '.join(face.reasons)}."
            if face.fraud_indicators:
                message += f" FRAUD INDICATORS: {'. '.join(face.fraud_indicators)}"
            return self._reject("Face verification failed", message)
        self._step("Face Matching", StepStatus.COMPLETED,
                   f"Face matched with {face.confidence:g}% confidence")
        self._progress(OnboardingStage.FINANCIAL, 60, "Analyzing financial data...", 20)

        # 4. Financial analysis
        self._step("Financial Analysis", StepStatus.PROCESSING, "Fetching and analyzing financial data...")
        connection = request.financial_connection
        transactions = []
        if connection.type != "skip":
            profile = FinancialProfile(
                monthly_income=personal.monthly_income,
                employment_type=personal.employment_type,
                employment_duration=0,
            )
            months = (
                settings.BANK_HISTORY_MONTHS if connection.type == "bank" else settings.INDIVIDUAL_HISTORY_MONTHS
            )
            transactions = await self.data_source.fetch_transactions(
                connection.account_info, connection.type, months, profile
            )
        analysis = await self.financial.analyze_financial_data(
            transactions, personal.employment_type, personal.monthly_income
        )
        self._step("Financial Analysis", StepStatus.COMPLETED, f"Analyzed {len(transactions)} transactions")
        self._progress(OnboardingStage.ASSESSMENT, 80, "Calculating credit score...", 15)

        # 5. Credit assessment
        self._step("Credit Assessment", StepStatus.PROCESSING, "AI is evaluating your creditworthiness...")
        applicant = ApplicantInfo(
            full_name=f"{personal.first_name} {personal.last_name}",
            date_of_birth=personal.date_of_birth or "Not provided",
            employment_status=personal.employment_type,
            monthly_income=personal.monthly_income,
        )
        identity = identity_from_checks(id_result, liveness, face)
        assessment = await self.credit.assess_creditworthiness(applicant, identity, analysis)
        self._step("Credit Assessment", StepStatus.COMPLETED,
                   f"Assessment complete: Score {assessment.credit_score:g}/100")
        self._progress(OnboardingStage.COMPLETE, 100, "Onboarding complete!", 0)

        return self._result(assessment, "USER")

    async def _run_business(self, request: BusinessOnboardingRequest) -> OnboardingResult:
        business = request.business_info
        documents = request.documents
        self._progress(OnboardingStage.DOCUMENTS, 15, "Verifying business documents...", 40)

        # 1. Registration certificate
        self._step("Business Registration", StepStatus.PROCESSING, "Verifying business registration...")
        registration = await self.verification.verify_business_document(documents.registration_cert, "registration")
        if not registration.is_authentic:
            self._step("Business Registration", StepStatus.FAILED, "Registration verification failed")
            return self._reject(
                "Business registration verification failed",
                f"Registration document issues: {'. '.join(registration.forgery_indicators)}",
            )
        self._step("Business Registration", StepStatus.COMPLETED, "Registration verified")
        self._progress(OnboardingStage.DOCUMENTS, 35, "Verifying tax documents...", 30)

        # 2. Tax compliance certificate
        self._step("Tax Verification", StepStatus.PROCESSING, "Verifying KRA PIN certificate...")
        tax = await self.verification.verify_business_document(documents.tax_cert, "tax")
        if not tax.is_authentic:
            self._step("Tax Verification", StepStatus.FAILED, "Tax certificate verification failed")
            return self._reject(
                "Tax certificate verification failed",
                f"Tax document issues: {'. '.join(tax.warnings)}",
            )
        self._step("Tax Verification", StepStatus.COMPLETED, "Tax compliance verified")

        confidences = [registration.confidence, tax.confidence]
        if documents.address_proof:
            self._step("Address Verification", StepStatus.PROCESSING, "Verifying proof of address...")
            address = await self.verification.verify_business_document(documents.address_proof, "address")
            if not address.is_authentic:
                self._step("Address Verification", StepStatus.FAILED, "Address verification failed")
                return self._reject(
                    "Proof of address verification failed",
                    f"Address document issues: {'. '.join(address.warnings)}",
                )
            self._step("Address Verification", StepStatus.COMPLETED, "Business address verified")
            confidences.append(address.confidence)
        self._progress(OnboardingStage.FINANCIAL, 55, "Analyzing business financials...", 25)

        # 3. Financial analysis
        self._step("Financial Analysis", StepStatus.PROCESSING, "Analyzing business transactions...")
        connection = request.financial_connection
        transactions = []
        channel = _BUSINESS_CHANNELS.get(connection.type)
        if channel:
            profile = FinancialProfile(
                monthly_income=business.monthly_revenue,
                employment_type="self-employed",
                employment_duration=int(business.years_in_operation * 12),
            )
            transactions = await self.data_source.fetch_transactions(
                connection.account_info, channel, settings.BUSINESS_HISTORY_MONTHS, profile
            )
        analysis = await self.financial.analyze_financial_data(
            transactions, "self-employed", business.monthly_revenue
        )
        self._step("Financial Analysis", StepStatus.COMPLETED,
                   f"Analyzed {len(transactions)} business transactions")
        self._progress(OnboardingStage.ASSESSMENT, 80, "Calculating business credit score...", 15)

        # 4. Business credit assessment
        self._step("Credit Assessment", StepStatus.PROCESSING, "AI is evaluating business creditworthiness...")
        assessment = await self.credit.assess_business_credit(
            business, analysis, True, sum(confidences) / len(confidences)
        )
        self._step("Credit Assessment", StepStatus.COMPLETED,
                   f"Business assessment complete: Score {assessment.credit_score:g}/100")
        self._progress(OnboardingStage.COMPLETE, 100, "Business onboarding complete!", 0)

        return self._result(assessment, "BIZ")

    def _step(self, step: str, status: StepStatus, message: str):
        self._steps.append(ProcessingStep(step=step, status=status, message=message))
        if status == StepStatus.FAILED:
            logger.warning("%s failed: %s", step, message)
        else:
            logger.info("%s %s: %s", step, status.value, message)

    def _progress(self, stage: OnboardingStage, progress: int, action: str, remaining: int):
        if not self.observer:
            return
        try:
            self.observer.on_progress(OnboardingProgress(
                stage=stage,
                progress=progress,
                current_action=action,
                estimated_time_remaining=remaining,
            ))
        except Exception as e:
            logger.warning("Progress observer raised %s: %s", type(e).__name__, e)

    def _result(self, assessment: CreditAssessment, prefix: str) -> OnboardingResult:
        return OnboardingResult(
            success=assessment.approval_status != "REJECTED",
            applicant_id=f"{prefix}_{int(time.time() * 1000)}",
            assessment=assessment,
            processing_steps=list(self._steps),
        )

    def _reject(self, title: str, message: str) -> OnboardingResult:
        return OnboardingResult(
            success=False,
            applicant_id="",
            assessment=rejection_assessment(
                message,
                title=title,
                risk_factor=title,
                not_assessed="Not assessed because onboarding stopped early",
            ),
            processing_steps=list(self._steps),
        )

    def _crashed(self, error: Exception) -> OnboardingResult:
        self._step("Onboarding", StepStatus.FAILED, "Onboarding could not be completed due to a system error")
        return self._reject("Onboarding error", f"Onboarding failed: {type(error).__name__}")


def build_orchestrator(
    gateway: ModelGateway,
    data_source: Optional[FinancialDataSource] = None,
    observer: Optional[ProgressObserver] = None,
) -> OnboardingOrchestrator:
    """Wires every adapter to the same gateway."""
    return OnboardingOrchestrator(
        verification=VerificationService(gateway),
        financial=FinancialAnalyzer(gateway),
        credit=CreditAssessor(gateway),
        data_source=data_source or build_data_source(),
        observer=observer,
    )
