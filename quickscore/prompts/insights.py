# quickscore/prompts/insights.py

from quickscore.core.config import settings
from quickscore.schemas.insights import FraudSignals, LoanRecommendationRequest


def build_fraud_prompt(signals: FraudSignals) -> str:
    device_flags = "\n".join(f"- {flag}" for flag in signals.device_intelligence_flags) or "- None"
    return f"""
You are an AI assistant that analyzes borrower data to detect potentially fraudulent activity.
You will receive data points about a loan applicant and determine if there are any red flags, and summarize your findings.

Liveness Detection Passed: {signals.liveness_detection_passed}
ID Document Authentic: {signals.id_document_authentic}
Device Intelligence Flags:
{device_flags}
M-Pesa Transaction History Consistent: {signals.transaction_history_consistent}
Seasonal Income Pattern Positive: {signals.seasonal_income_pattern_positive}
Applicant Name: {signals.name}
Applicant Email: {signals.email}
Applicant Phone: {signals.phone}

Based on this information, identify any fraud flags and provide a summary.
Return JSON with:
- fraud_flags: array of strings
- summary: a single string
"""


def build_loan_recommendation_prompt(request: LoanRecommendationRequest) -> str:
    return f"""
You are an expert loan officer. Recommend an appropriate loan amount and interest rate,
with a brief explanation, given the following information about the loan applicant.

Borrower Risk Profile: {request.risk_profile}
Average Monthly Income: {request.average_monthly_income}
Estimated Existing Debt Payments: {request.estimated_existing_debt_payments}
Loan Purpose: {request.loan_purpose}
Loan History: {request.loan_history}
Credit Score: {request.credit_score}

The loan limit is in {settings.CURRENCY}.
Return JSON with:
- recommended_loan_limit: number
- recommended_interest_rate: number (percentage)
- reasoning: why this limit and rate were chosen, including potential risks
"""


def build_summary_prompt(financial_data: str) -> str:
    return f"""
You are an AI assistant helping lenders understand a borrower's financial health.

Summarize the key insights from the following financial data, including income, expenses,
and overall financial health.

Financial Data:
{financial_data}

Return JSON with:
- summary: a single string
"""
