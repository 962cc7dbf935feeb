# quickscore/services/verification.py

import logging
from typing import Optional

from quickscore.core.config import settings
from quickscore.prompts.verification import (
    BUSINESS_DOCUMENT_CHECKS,
    BUSINESS_DOCUMENT_PROMPT,
    FACE_MATCH_PROMPT,
    ID_DOCUMENT_PROMPT,
    LIVENESS_PROMPT,
)
from quickscore.schemas.verification import (
    BusinessDocumentType,
    FaceMatchResult,
    IDDocumentResult,
    LivenessResult,
)
from quickscore.services.gateway import GatewayError, ModelGateway

logger = logging.getLogger(__name__)


# Fixed records substituted when a gateway call cannot complete

LIVENESS_FAILURE = LivenessResult(
    is_passed=False,
    confidence=0,
    spoofing_detected=True,
    spoofing_type="none",
    quality_score=0,
    recommendations=["Technical error - please retry"],
)

ID_DOCUMENT_FAILURE = IDDocumentResult(
    is_authentic=False,
    confidence=0,
    forgery_detected=True,
    forgery_indicators=["Technical error during verification"],
    quality_issues=["Unable to process image"],
    warnings=["Verification failed - please retry with clearer image"],
    recommendations=["Ensure good lighting and clear photo"],
)

BUSINESS_DOCUMENT_FAILURE = IDDocumentResult(
    is_authentic=False,
    confidence=0,
    forgery_detected=True,
    forgery_indicators=["Verification failed"],
    quality_issues=["Processing error"],
    warnings=["Unable to verify document"],
    recommendations=["Please upload a clearer image"],
)

FACE_MATCH_FAILURE = FaceMatchResult(
    is_match=False,
    confidence=0,
    reasons=["Technical error during verification"],
    warnings=["Unable to complete verification"],
    fraud_indicators=[],
)


class VerificationService:
    """
    Single-call verification adapters: liveness, ID document and face match.

    Every method makes exactly one gateway call and fails closed: any
    GatewayError is logged and replaced by the matching failure record.
    """
    def __init__(self, gateway: ModelGateway):
        if not gateway:
            raise ValueError("A model gateway must be injected into VerificationService.")
        self.gateway = gateway

    async def perform_liveness_check(self, image: str) -> LivenessResult:
        try:
            return await self.gateway.generate(
                LIVENESS_PROMPT,
                output_schema=LivenessResult,
                media=[image],
                temperature=settings.FORENSIC_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Liveness check error: %s", e)
            return LIVENESS_FAILURE.model_copy(deep=True)

    async def verify_id_document(
        self,
        front_image: str,
        back_image: Optional[str] = None
    ) -> IDDocumentResult:
        """Checks security features for forgery and extracts identity fields."""
        media = [front_image]
        if back_image:
            media.append(back_image)

        try:
            return await self.gateway.generate(
                ID_DOCUMENT_PROMPT,
                output_schema=IDDocumentResult,
                media=media,
                temperature=settings.FORENSIC_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("ID verification error: %s", e)
            return ID_DOCUMENT_FAILURE.model_copy(deep=True)

    async def verify_face_match(self, image1: str, image2: str) -> FaceMatchResult:
        """Compares a live selfie (image1) against the ID photo (image2)."""
        try:
            return await self.gateway.generate(
                FACE_MATCH_PROMPT,
                output_schema=FaceMatchResult,
                media=[image1, image2],
                temperature=settings.FORENSIC_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Face verification error: %s", e)
            return FACE_MATCH_FAILURE.model_copy(deep=True)

    async def verify_business_document(
        self,
        image: str,
        document_type: BusinessDocumentType
    ) -> IDDocumentResult:
        prompt = BUSINESS_DOCUMENT_PROMPT.format(
            document_check=BUSINESS_DOCUMENT_CHECKS[document_type]
        )
        try:
            return await self.gateway.generate(
                prompt,
                output_schema=IDDocumentResult,
                media=[image],
                temperature=settings.FORENSIC_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Business document (%s) verification error: %s", document_type, e)
            return BUSINESS_DOCUMENT_FAILURE.model_copy(deep=True)
