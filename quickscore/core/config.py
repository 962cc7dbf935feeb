from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# quickscore/core/config.py

class Settings(BaseSettings):
    PROJECT_NAME: str = "QuickScore AI Engine"
    LOG_LEVEL: str = "INFO"

    # Empty key is allowed at import time; the gateway fails closed on first use
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Forensic and matching tasks need deterministic output
    FORENSIC_TEMPERATURE: float = 0.1
    FINANCIAL_TEMPERATURE: float = 0.3
    CREDIT_TEMPERATURE: float = 0.2
    BUSINESS_CREDIT_TEMPERATURE: float = 0.3
    INSIGHT_TEMPERATURE: float = 0.3

    # Hard reject gate used by the individual onboarding pipeline
    FACE_MATCH_GATE_THRESHOLD: int = 75
    # APPROVE / MANUAL_REVIEW boundary used by identity aggregation
    IDENTITY_REVIEW_THRESHOLD: int = 70

    PROMPT_TRANSACTION_SAMPLE: int = 50
    FACE_MATCH_MAX_FRAMES: int = 3

    FINANCIAL_DATA_SOURCE: Literal["synthetic", "connector"] = "synthetic"
    SYNTHETIC_DATA_SEED: Optional[int] = None
    INDIVIDUAL_HISTORY_MONTHS: int = 3
    BANK_HISTORY_MONTHS: int = 6
    BUSINESS_HISTORY_MONTHS: int = 6

    CURRENCY: str = "KES"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
