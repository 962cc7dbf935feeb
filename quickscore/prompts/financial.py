# quickscore/prompts/financial.py

from typing import Optional, Sequence

from quickscore.core.config import settings
from quickscore.schemas.financial import Transaction, TransactionSummary


def money(amount: float) -> str:
    return f"{settings.CURRENCY} {amount:,.2f}"


def _format_transaction(t: Transaction) -> str:
    return f"{t.date.date().isoformat()} | {t.type} | {money(t.amount)} | Balance: {money(t.balance)} | {t.description}"


FINANCIAL_ANALYSIS_PROMPT = """
You are a financial analyst specializing in credit risk assessment for lending institutions in Kenya.

APPLICANT PROFILE:
- Employment Status: {employment_status}
- Stated Monthly Income: {monthly_income}

TRANSACTION DATA:
- Total Transactions: {total_transactions}
- Period: {date_from} to {date_to}
- Total Money Received: {total_received}
- Total Money Spent: {total_spent}
- Average Balance: {average_balance}
- Min Balance: {min_balance}
- Max Balance: {max_balance}

Transaction breakdown by type:
{breakdown}

Recent transactions (sample of {sample_size}):
{recent}

ANALYSIS REQUIRED:

1. INCOME STABILITY (0-100 score):
   - Analyze regularity and consistency of incoming payments
   - Identify primary income sources
   - Calculate average monthly income from transactions
   - Classify: VERY_STABLE, STABLE, MODERATE, VOLATILE, or VERY_VOLATILE

2. SPENDING BEHAVIOR (0-100 score):
   - Analyze spending patterns and categories
   - Calculate average monthly expenses
   - Identify spending on essentials vs non-essentials
   - Classify: RESPONSIBLE, MODERATE, CONCERNING, or RISKY
   - Break down major spending categories with amounts and percentages

3. SAVINGS BEHAVIOR (0-100 score):
   - Calculate net savings (income - expenses) per month
   - Analyze savings rate and consistency
   - Classify: EXCELLENT, GOOD, FAIR, POOR, or NONE

4. DEBT INDICATORS (0-100 score):
   - Identify loan repayments in transaction history
   - Estimate monthly debt obligations
   - Calculate debt-to-income ratio
   - Assess risk level: LOW, MEDIUM, HIGH, or CRITICAL

5. TRANSACTION PATTERNS:
   - Identify regular payments (rent, utilities, loan repayments)
   - Find most active day and hour for transactions
   - Flag any unusual or suspicious activity

6. LOAN RECOMMENDATION:
   - Determine eligibility (true/false)
   - Suggest maximum safe loan amount (in {currency})
   - Recommend interest rate (% per annum)
   - Suggest maximum repayment period (months)
   - Provide detailed reasoning
   - List any warnings or concerns

Be thorough, data-driven, and realistic. Consider Kenyan economic context and M-Pesa usage patterns.
Provide an overall financial health score (0-100) based on all factors.
"""


def build_financial_prompt(
    summary: TransactionSummary,
    recent: Sequence[Transaction],
    employment_status: str,
    monthly_income: Optional[float] = None,
) -> str:
    breakdown = "\n".join(
        f"- {tx_type}: {count}" for tx_type, count in summary.transactions_by_type.items()
    ) or "- No transactions available"

    return FINANCIAL_ANALYSIS_PROMPT.format(
        employment_status=employment_status,
        monthly_income=money(monthly_income) if monthly_income is not None else "Not provided",
        total_transactions=summary.total_transactions,
        date_from=summary.date_from.date().isoformat() if summary.date_from else "N/A",
        date_to=summary.date_to.date().isoformat() if summary.date_to else "N/A",
        total_received=money(summary.total_received),
        total_spent=money(summary.total_spent),
        average_balance=money(summary.average_balance),
        min_balance=money(summary.min_balance),
        max_balance=money(summary.max_balance),
        breakdown=breakdown,
        sample_size=len(recent),
        recent="\n".join(_format_transaction(t) for t in recent) or "None",
        currency=settings.CURRENCY,
    )
