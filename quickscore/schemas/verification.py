# quickscore/schemas/verification.py

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

Recommendation = Literal["APPROVE", "REJECT", "MANUAL_REVIEW"]
BusinessDocumentType = Literal["registration", "tax", "address"]


class VerificationRecord(BaseModel):
    """Base for records produced by a single verification call."""
    model_config = ConfigDict(frozen=True)


# --- Single-image verification adapters ---

class LivenessResult(VerificationRecord):
    is_passed: bool = Field(..., description="True if the selfie comes from a live person")
    confidence: float = Field(..., ge=0, le=100, description="Confidence score between 0 and 100")
    spoofing_detected: bool
    spoofing_type: Literal["photo", "video", "mask", "none"] = "none"
    quality_score: float = Field(..., ge=0, le=100)
    recommendations: List[str] = Field(default_factory=list)


class ExtractedIdentity(BaseModel):
    full_name: str = ""
    id_number: str = ""
    date_of_birth: str = Field(default="", description="YYYY-MM-DD")
    gender: str = ""
    nationality: str = ""
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None


class IDDocumentResult(VerificationRecord):
    is_authentic: bool
    confidence: float = Field(..., ge=0, le=100)
    forgery_detected: bool
    forgery_indicators: List[str] = Field(default_factory=list, description="Specific red flags found")
    extracted_data: ExtractedIdentity = Field(default_factory=ExtractedIdentity)
    quality_issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class FaceMatchResult(VerificationRecord):
    is_match: bool
    confidence: float = Field(..., ge=0, le=100)
    reasons: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    fraud_indicators: List[str] = Field(default_factory=list)


# --- Identity aggregation ---

class IdDocumentAnalysis(VerificationRecord):
    is_forged: bool
    confidence: float = Field(..., ge=0, le=100)
    issues: List[str] = Field(default_factory=list)
    extracted_data: ExtractedIdentity = Field(default_factory=ExtractedIdentity)


class LivenessAnalysis(VerificationRecord):
    passed: bool
    confidence: float = Field(..., ge=0, le=100)
    suspicious_activity: List[str] = Field(default_factory=list)


class FaceComparison(VerificationRecord):
    matched: bool
    confidence: float = Field(..., ge=0, le=100)
    reason: str = ""
    fraud_indicators: List[str] = Field(default_factory=list)


class IdentityVerification(VerificationRecord):
    """Aggregated outcome of ID, liveness and face-match analysis."""
    is_valid: bool
    confidence: int = Field(..., ge=0, le=100)
    face_match: FaceComparison
    id_verification: IdDocumentAnalysis
    liveness_check: LivenessAnalysis
    recommendation: Recommendation
    detailed_feedback: str
