# quickscore/prompts/credit.py

from typing import List, Optional

from quickscore.prompts.financial import money
from quickscore.schemas.credit import ApplicantInfo, BusinessInfo, LoanRequest
from quickscore.schemas.financial import FinancialAnalysis
from quickscore.schemas.verification import IdentityVerification

# Percent weights, sent to the model as instructions only
CREDIT_WEIGHTS = {
    "identity_verification": 30,
    "income_stability": 25,
    "spending_behavior": 20,
    "savings_capacity": 15,
    "debt_burden": 10,
}

BUSINESS_WEIGHTS = {
    "business_legitimacy": 25,
    "revenue_stability": 30,
    "cash_flow_health": 25,
    "industry_risk": 10,
    "business_age_and_size": 10,
}

CREDIT_REQUIREMENTS = """
ASSESSMENT REQUIREMENTS:

1. Calculate OVERALL CREDIT SCORE (0-100) using weighted factors:
   - Identity Verification: 30% weight
   - Income Stability: 25% weight
   - Spending Behavior: 20% weight
   - Savings Capacity: 15% weight
   - Debt Burden: 10% weight

2. Determine APPROVAL STATUS:
   - APPROVED: Score >= 70, all checks passed, low risk
   - CONDITIONALLY_APPROVED: Score 50-69, minor concerns, requires conditions
   - UNDER_REVIEW: Score 40-49 or identity needs manual review
   - REJECTED: Score < 40, failed identity, or high risk

3. Provide LOAN RECOMMENDATION:
   - Calculate safe loan amounts (min, max, recommended) based on income and debt
   - Set interest rates based on risk (lower score = higher rate)
   - Determine repayment periods
   - Calculate monthly repayments
   - Consider the debt-to-income ratio (should not exceed 40% post-loan)

4. Generate KEY INSIGHTS (at least 5):
   - STRENGTH: Positive factors supporting approval
   - WEAKNESS: Areas of concern
   - WARNING: Red flags or high-risk indicators
   - OPPORTUNITY: Suggestions for improving creditworthiness
   - Rate each insight's impact: HIGH, MEDIUM, or LOW

5. Conduct RISK ASSESSMENT:
   - Overall risk level: LOW, MEDIUM, HIGH, or VERY_HIGH
   - Estimate default probability (0-100%)
   - List specific risk factors
   - Suggest risk mitigation measures

6. List CONDITIONS (if any):
   - REQUIRED: Must be met for approval
   - RECOMMENDED: Strongly suggested
   - OPTIONAL: Nice to have

7. Provide detailed explanation of the decision and clear next steps.

8. If REJECTED, provide specific, actionable rejection reasons.

Be thorough, fair, and data-driven. Consider Kenyan lending context and regulations.
Prioritize responsible lending - don't approve loans that could cause financial hardship.
"""

BUSINESS_REQUIREMENTS = """
BUSINESS ASSESSMENT CRITERIA:
1. Business Legitimacy (25%): registration verified, documents authentic, operating history
2. Revenue Stability (30%): consistent revenue, growth patterns, seasonal variations
3. Cash Flow Health (25%): positive cash flow, working capital adequacy, payment cycles
4. Industry Risk (10%): sector stability, market conditions
5. Business Age & Size (10%): years in operation, employee count, growth trajectory

Report the factors using these fields:
- identity_verification: Business Legitimacy
- income_stability: Revenue Stability
- spending_behavior: Cash Flow Health
- savings_capacity: Industry Risk
- debt_burden: Business Age & Size

APPROVAL STATUS:
- APPROVED: Score >= 70
- CONDITIONALLY_APPROVED: Score 50-69
- UNDER_REVIEW: Score 40-49
- REJECTED: Score < 40 or documents not verified

BUSINESS LOAN TERMS:
- Approved: 3-6 months revenue
- Interest: 10-18% based on risk
- Terms: 6-36 months

Provide a detailed business credit assessment with key insights, risk assessment,
conditions, next steps and, if rejected, specific rejection reasons.
"""


def _financial_section(analysis: FinancialAnalysis) -> List[str]:
    income = analysis.income_stability
    spending = analysis.spending_behavior
    savings = analysis.savings_behavior
    debt = analysis.debt_indicators
    patterns = analysis.transaction_patterns
    rec = analysis.recommendation

    lines = [
        "FINANCIAL ANALYSIS:",
        f"- Overall Financial Score: {analysis.overall_score}/100",
        f"- Income Stability: {income.score}/100 ({income.income_consistency})",
        f"  * Average Monthly Income: {money(income.average_monthly_income)}",
        f"  * Analysis: {income.analysis}",
        f"- Spending Behavior: {spending.score}/100 ({spending.spending_pattern})",
        f"  * Average Monthly Expenses: {money(spending.average_monthly_expenses)}",
        f"  * Analysis: {spending.analysis}",
        f"- Savings: {savings.score}/100 ({savings.savings_consistency})",
        f"  * Average Monthly Savings: {money(savings.average_monthly_savings)}",
        f"  * Savings Rate: {savings.savings_rate}%",
        f"  * Analysis: {savings.analysis}",
        f"- Debt Indicators: {debt.score}/100 (Risk: {debt.risk_level})",
        f"  * Has Loan Payments: {debt.has_loan_payments}",
        f"  * Monthly Debt: {money(debt.estimated_monthly_debt)}",
        f"  * Debt-to-Income: {debt.debt_to_income_ratio}%",
        f"  * Analysis: {debt.analysis}",
        "- Transaction Patterns:",
        f"  * Total Transactions: {patterns.total_transactions}",
        f"  * Regular Payments: {', '.join(patterns.regular_payments) or 'None identified'}",
    ]
    if patterns.unusual_activity:
        lines.append(f"  * Unusual Activity: {', '.join(patterns.unusual_activity)}")

    lines += [
        "",
        "FINANCIAL RECOMMENDATION:",
        f"- Eligible: {rec.eligible}",
        f"- Max Loan: {money(rec.max_loan_amount)}",
        f"- Suggested Interest: {rec.suggested_interest_rate}% p.a.",
        f"- Max Term: {rec.max_repayment_months} months",
        f"- Reasoning: {rec.reasoning}",
    ]
    if rec.warnings:
        lines.append(f"- Warnings: {'; '.join(rec.warnings)}")
    return lines


def build_credit_prompt(
    applicant: ApplicantInfo,
    identity: IdentityVerification,
    analysis: FinancialAnalysis,
    loan_request: Optional[LoanRequest] = None,
) -> str:
    lines = [
        "You are a senior credit analyst at a digital lending platform in Kenya. Perform a comprehensive credit assessment.",
        "",
        "APPLICANT INFORMATION:",
        f"- Name: {applicant.full_name}",
        f"- Date of Birth: {applicant.date_of_birth}",
        f"- Employment: {applicant.employment_status}",
    ]
    if applicant.employer_name:
        lines.append(f"- Employer: {applicant.employer_name}")
    if applicant.monthly_income:
        lines.append(f"- Stated Income: {money(applicant.monthly_income)}")

    lines += [
        "",
        "IDENTITY VERIFICATION RESULTS:",
        f"- Status: {identity.recommendation}",
        f"- Confidence: {identity.confidence}%",
        f"- Face Match: {'PASSED' if identity.face_match.matched else 'FAILED'} ({identity.face_match.confidence}%)",
        f"- ID Authenticity: {'FORGED' if identity.id_verification.is_forged else 'AUTHENTIC'}",
        f"- Liveness Check: {'PASSED' if identity.liveness_check.passed else 'FAILED'}",
    ]
    if identity.id_verification.issues:
        lines.append(f"- Issues: {', '.join(identity.id_verification.issues)}")

    lines.append("")
    lines += _financial_section(analysis)

    if loan_request:
        lines += [
            "",
            "LOAN REQUEST:",
            f"- Requested Amount: {money(loan_request.requested_amount) if loan_request.requested_amount else 'Not specified'}",
            f"- Purpose: {loan_request.purpose or 'Not specified'}",
            f"- Preferred Term: {f'{loan_request.preferred_term} months' if loan_request.preferred_term else 'Not specified'}",
        ]

    return "\n".join(lines) + "\n" + CREDIT_REQUIREMENTS


def build_business_credit_prompt(
    business: BusinessInfo,
    analysis: FinancialAnalysis,
    documents_verified: bool,
    document_confidence: float,
) -> str:
    lines = [
        "You are a business credit analyst. Assess this Kenyan business for loan eligibility.",
        "",
        "BUSINESS INFORMATION:",
        f"- Name: {business.name}",
        f"- Registration: {business.registration_number}",
        f"- Years in Operation: {business.years_in_operation}",
        f"- Industry: {business.industry}",
        f"- Employees: {business.employee_count}",
        f"- Monthly Revenue: {money(business.monthly_revenue)}",
        "",
        "DOCUMENT VERIFICATION:",
        f"- Documents Verified: {'YES' if documents_verified else 'NO - CRITICAL'}",
        f"- Verification Confidence: {document_confidence:.0f}%",
        "",
    ]
    lines += _financial_section(analysis)
    return "\n".join(lines) + "\n" + BUSINESS_REQUIREMENTS
