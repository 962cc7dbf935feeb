from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

from quickscore.schemas.credit import BusinessInfo, CreditAssessment


class StepStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class OnboardingStage(str, Enum):
    IDENTITY = "identity"
    DOCUMENTS = "documents"
    FINANCIAL = "financial"
    ASSESSMENT = "assessment"
    COMPLETE = "complete"


class ProcessingStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: str
    status: StepStatus
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)


class OnboardingProgress(BaseModel):
    stage: OnboardingStage
    progress: int = Field(..., ge=0, le=100)
    current_action: str
    estimated_time_remaining: int = Field(..., ge=0, description="Seconds")


# --- Requests ---

class PersonalInfo(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    employment_type: Literal["employed", "self-employed", "unemployed", "student"]
    monthly_income: float = Field(..., ge=0)
    date_of_birth: str = ""


class IndividualFinancialConnection(BaseModel):
    type: Literal["mpesa", "bank", "skip"]
    account_info: Optional[str] = None


class IndividualOnboardingRequest(BaseModel):
    liveness_image: str = Field(..., min_length=1, description="Base64 selfie")
    id_front_image: str = Field(..., min_length=1)
    id_back_image: Optional[str] = None
    personal_info: PersonalInfo
    financial_connection: IndividualFinancialConnection


class BusinessDocuments(BaseModel):
    registration_cert: str = Field(..., min_length=1)
    tax_cert: str = Field(..., min_length=1)
    address_proof: Optional[str] = None


class Representative(BaseModel):
    name: str
    id_number: str
    relationship: str


class BusinessFinancialConnection(BaseModel):
    type: Literal["till", "bank", "manual"]
    account_info: Optional[str] = None


class BusinessOnboardingRequest(BaseModel):
    business_info: BusinessInfo
    documents: BusinessDocuments
    representative: Representative
    financial_connection: BusinessFinancialConnection


# --- Result ---

class OnboardingResult(BaseModel):
    success: bool
    applicant_id: str = ""
    assessment: CreditAssessment
    processing_steps: List[ProcessingStep] = Field(default_factory=list)
