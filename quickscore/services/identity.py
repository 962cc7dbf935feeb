# quickscore/services/identity.py

import logging
import math
from typing import Optional, Sequence

from quickscore.core.config import settings
from quickscore.prompts.verification import (
    FACE_COMPARISON_PROMPT,
    ID_ANALYSIS_PROMPT,
    LIVENESS_SEQUENCE_PROMPT,
)
from quickscore.schemas.verification import (
    FaceComparison,
    FaceMatchResult,
    IDDocumentResult,
    IdDocumentAnalysis,
    IdentityVerification,
    LivenessAnalysis,
    LivenessResult,
)
from quickscore.services.gateway import GatewayError, ModelGateway

logger = logging.getLogger(__name__)

ID_ANALYSIS_FAILURE = IdDocumentAnalysis(
    is_forged=True,
    confidence=0,
    issues=["Technical error during verification"],
)

LIVENESS_ANALYSIS_FAILURE = LivenessAnalysis(
    passed=False,
    confidence=0,
    suspicious_activity=["Technical error during liveness analysis"],
)

FACE_COMPARISON_FAILURE = FaceComparison(
    matched=False,
    confidence=0,
    reason="Technical error during verification",
)


def round_half_up(value: float) -> int:
    """Rounds .5 upwards, unlike the built-in round()."""
    return int(math.floor(value + 0.5))


def decide_identity(
    id_analysis: IdDocumentAnalysis,
    liveness: LivenessAnalysis,
    face_match: FaceComparison,
    review_threshold: Optional[int] = None,
) -> IdentityVerification:
    """
    Applies the identity decision table.

    Precedence: forgery, then liveness, then face match, then the
    confidence threshold. Only a fully valid result can be approved.
    """
    if review_threshold is None:
        review_threshold = settings.IDENTITY_REVIEW_THRESHOLD

    overall_valid = (
        not id_analysis.is_forged
        and liveness.passed
        and face_match.matched
    )
    avg_confidence = round_half_up(
        (id_analysis.confidence + liveness.confidence + face_match.confidence) / 3
    )

    if id_analysis.is_forged:
        recommendation = "REJECT"
        feedback = (
            "Identity verification failed. Your ID document appears to be forged or tampered with. "
            f"Issues detected: {', '.join(id_analysis.issues)}. "
            "Please contact support if you believe this is an error."
        )
    elif not liveness.passed:
        recommendation = "REJECT"
        feedback = (
            "Liveness detection failed. We could not verify that you are a real person in front of the camera. "
            f"Issues: {', '.join(liveness.suspicious_activity)}. "
            "Please try again with proper lighting and follow all prompts carefully."
        )
    elif not face_match.matched:
        recommendation = "REJECT"
        feedback = (
            "Face matching failed. The face in your live video does not match the face on your ID document. "
            f"Reason: {face_match.reason}."
        )
        if face_match.fraud_indicators:
            feedback += f" Fraud indicators: {', '.join(face_match.fraud_indicators)}."
        feedback += " Please ensure you're using your own ID and try again."
    elif avg_confidence < review_threshold:
        recommendation = "MANUAL_REVIEW"
        feedback = (
            "Your verification is under review. While initial checks passed, we need additional "
            "verification to ensure accuracy. Our team will review within 24 hours."
        )
    else:
        recommendation = "APPROVE"
        feedback = (
            "Identity verified successfully! Your ID is authentic, liveness check passed, and your "
            f"face matches your ID photo with {avg_confidence}% confidence."
        )

    return IdentityVerification(
        is_valid=overall_valid,
        confidence=avg_confidence,
        face_match=face_match,
        id_verification=id_analysis,
        liveness_check=liveness,
        recommendation=recommendation,
        detailed_feedback=feedback,
    )


def identity_from_checks(
    id_result: IDDocumentResult,
    liveness_result: LivenessResult,
    face_result: FaceMatchResult,
) -> IdentityVerification:
    """Builds the identity record from the single-image adapter results."""
    suspicious = []
    if liveness_result.spoofing_detected:
        suspicious.append(
            f"{liveness_result.spoofing_type} spoofing detected"
            if liveness_result.spoofing_type != "none" else "Spoofing detected"
        )

    return decide_identity(
        IdDocumentAnalysis(
            is_forged=id_result.forgery_detected or not id_result.is_authentic,
            confidence=id_result.confidence,
            issues=list(id_result.forgery_indicators),
            extracted_data=id_result.extracted_data,
        ),
        LivenessAnalysis(
            passed=liveness_result.is_passed,
            confidence=liveness_result.confidence,
            suspicious_activity=suspicious,
        ),
        FaceComparison(
            matched=face_result.is_match,
            confidence=face_result.confidence,
            reason="; ".join(face_result.reasons),
            fraud_indicators=list(face_result.fraud_indicators),
        ),
    )


class IdentityVerifier:
    """
    Runs ID, liveness and face-match analysis and aggregates them.

    The three calls are independent but are awaited one after another.
    """
    def __init__(self, gateway: ModelGateway):
        if not gateway:
            raise ValueError("A model gateway must be injected into IdentityVerifier.")
        self.gateway = gateway

    async def verify_identity(
        self,
        live_face_images: Sequence[str],
        id_front_image: str,
        id_back_image: str,
    ) -> IdentityVerification:
        id_analysis = await self._analyze_id(id_front_image, id_back_image)
        liveness = await self._analyze_liveness(live_face_images)
        face_match = await self._compare_faces(live_face_images, id_front_image)

        result = decide_identity(id_analysis, liveness, face_match)
        logger.info(
            "Identity verification: %s (confidence %s%%)",
            result.recommendation, result.confidence
        )
        return result

    async def _analyze_id(self, front: str, back: str) -> IdDocumentAnalysis:
        try:
            return await self.gateway.generate(
                ID_ANALYSIS_PROMPT,
                output_schema=IdDocumentAnalysis,
                media=[front, back],
                temperature=settings.FORENSIC_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("ID analysis error: %s", e)
            return ID_ANALYSIS_FAILURE.model_copy(deep=True)

    async def _analyze_liveness(self, frames: Sequence[str]) -> LivenessAnalysis:
        try:
            return await self.gateway.generate(
                LIVENESS_SEQUENCE_PROMPT,
                output_schema=LivenessAnalysis,
                media=list(frames),
                temperature=settings.FORENSIC_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Liveness analysis error: %s", e)
            return LIVENESS_ANALYSIS_FAILURE.model_copy(deep=True)

    async def _compare_faces(self, frames: Sequence[str], id_front: str) -> FaceComparison:
        media = list(frames[:settings.FACE_MATCH_MAX_FRAMES]) + [id_front]
        try:
            return await self.gateway.generate(
                FACE_COMPARISON_PROMPT,
                output_schema=FaceComparison,
                media=media,
                temperature=settings.FORENSIC_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Face comparison error: %s", e)
            return FACE_COMPARISON_FAILURE.model_copy(deep=True)
