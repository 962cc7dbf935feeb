import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from quickscore.core.config import settings
from quickscore.schemas.credit import ApplicantInfo, LoanRequest
from quickscore.schemas.financial import FinancialAnalysis, Transaction
from quickscore.schemas.insights import FraudSignals, LoanRecommendationRequest
from quickscore.schemas.onboarding import BusinessOnboardingRequest, IndividualOnboardingRequest
from quickscore.schemas.verification import IdentityVerification
from quickscore.services.credit import CreditAssessor
from quickscore.services.data_sources import FinancialDataSource, build_data_source
from quickscore.services.financial import FinancialAnalyzer
from quickscore.services.gateway import GeminiGateway, ModelGateway
from quickscore.services.identity import IdentityVerifier
from quickscore.services.insights import InsightService
from quickscore.services.orchestrator import OnboardingOrchestrator, build_orchestrator

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# --- DEPENDENCIES ---

@lru_cache
def get_gateway() -> ModelGateway:
    return GeminiGateway()


@lru_cache
def get_data_source() -> FinancialDataSource:
    return build_data_source()


def get_orchestrator(
    gateway: ModelGateway = Depends(get_gateway),
    data_source: FinancialDataSource = Depends(get_data_source),
) -> OnboardingOrchestrator:
    # One instance per request so each run owns its step log
    return build_orchestrator(gateway, data_source)


# --- LIFESPAN ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s %s...", settings.PROJECT_NAME, VERSION)
    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; every model call will fail closed")
    else:
        health = await GeminiGateway().health_check()
        if health["status"] == "healthy":
            logger.info("AI system online: connected to %s", health["model"])
        else:
            logger.error("AI system failure: %s", health["error"])
    logger.info("Financial data source: %s", settings.FINANCIAL_DATA_SOURCE)
    yield
    logger.info("Shutting down...")


# --- FASTAPI APP ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="AI-assisted borrower onboarding: identity checks, financial analysis and credit assessment",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- REQUEST MODELS ---
class IdentityRequest(BaseModel):
    live_face_images: List[str] = Field(..., min_length=1, description="Base64 frames from the live capture")
    id_front_image: str = Field(..., min_length=1)
    id_back_image: str = Field(..., min_length=1)


class FinancialRequest(BaseModel):
    transactions: List[Transaction]
    employment_status: str
    monthly_income: Optional[float] = Field(default=None, ge=0)


class CreditRequest(BaseModel):
    applicant_info: ApplicantInfo
    identity_verification: IdentityVerification
    financial_analysis: FinancialAnalysis
    loan_request: Optional[LoanRequest] = None


class OnboardBody(BaseModel):
    type: Literal["individual", "business"]
    data: Dict[str, Any]


class SummaryRequest(BaseModel):
    financial_data: str = Field(..., min_length=1, description="M-Pesa and bank statement text")


def _server_error(error: str, e: Exception) -> HTTPException:
    logger.exception(error)
    return HTTPException(status_code=500, detail={"error": error, "message": str(e)})


# --- API ENDPOINTS ---

@app.get("/")
async def root():
    return {
        "message": f"{settings.PROJECT_NAME} Online",
        "version": VERSION,
        "status": "online",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check(gateway: ModelGateway = Depends(get_gateway)):
    """Verify the model gateway is reachable"""
    result = await gateway.health_check()
    if result["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=result)
    return result


@app.post("/v1/identity/verify")
async def verify_identity(body: IdentityRequest, gateway: ModelGateway = Depends(get_gateway)):
    try:
        result = await IdentityVerifier(gateway).verify_identity(
            body.live_face_images, body.id_front_image, body.id_back_image
        )
    except Exception as e:
        raise _server_error("Failed to verify identity", e)
    return {"success": True, "data": result}


@app.post("/v1/financials/analyze")
async def analyze_financials(body: FinancialRequest, gateway: ModelGateway = Depends(get_gateway)):
    try:
        result = await FinancialAnalyzer(gateway).analyze_financial_data(
            body.transactions, body.employment_status, body.monthly_income
        )
    except Exception as e:
        raise _server_error("Failed to analyze financial data", e)
    return {"success": True, "data": result}


@app.post("/v1/credit/assess")
async def assess_credit(body: CreditRequest, gateway: ModelGateway = Depends(get_gateway)):
    try:
        result = await CreditAssessor(gateway).assess_creditworthiness(
            body.applicant_info, body.identity_verification, body.financial_analysis, body.loan_request
        )
    except Exception as e:
        raise _server_error("Failed to assess credit", e)
    return {"success": True, "data": result}


@app.post("/v1/onboard")
async def onboard(body: OnboardBody, orchestrator: OnboardingOrchestrator = Depends(get_orchestrator)):
    """
    Runs the full onboarding pipeline for an individual or a business.

    Rejections come back as a normal result with success=false.
    """
    schema = IndividualOnboardingRequest if body.type == "individual" else BusinessOnboardingRequest
    try:
        request = schema.model_validate(body.data)
    except ValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body", "data", *err["loc"])} for err in e.errors(include_url=False, include_context=False)]
        )

    if body.type == "individual":
        return await orchestrator.process_individual_onboarding(request)
    return await orchestrator.process_business_onboarding(request)


# --- LENDER INSIGHTS ---

@app.post("/v1/insights/fraud-flags")
async def fraud_flags(body: FraudSignals, gateway: ModelGateway = Depends(get_gateway)):
    return await InsightService(gateway).flag_fraudulent_activity(body)


@app.post("/v1/insights/loan-recommendation")
async def loan_recommendation(body: LoanRecommendationRequest, gateway: ModelGateway = Depends(get_gateway)):
    return await InsightService(gateway).generate_loan_recommendation(body)


@app.post("/v1/insights/financial-summary")
async def financial_summary(body: SummaryRequest, gateway: ModelGateway = Depends(get_gateway)):
    return await InsightService(gateway).summarize_financial_data(body.financial_data)
