# quickscore/services/financial.py

import logging
from typing import Optional, Sequence

from quickscore.core.config import settings
from quickscore.prompts.financial import build_financial_prompt
from quickscore.schemas.financial import (
    INFLOW_TYPES,
    OUTFLOW_TYPES,
    DebtIndicators,
    FinancialAnalysis,
    FinancialRecommendation,
    IncomeStability,
    SavingsBehavior,
    SpendingBehavior,
    Transaction,
    TransactionPatterns,
    TransactionSummary,
)
from quickscore.services.gateway import GatewayError, ModelGateway

logger = logging.getLogger(__name__)

_NOT_ASSESSED = "Not assessed due to a technical error"

FINANCIAL_ANALYSIS_FAILURE = FinancialAnalysis(
    overall_score=0,
    income_stability=IncomeStability(
        score=0, average_monthly_income=0, income_consistency="VERY_VOLATILE", analysis=_NOT_ASSESSED
    ),
    spending_behavior=SpendingBehavior(
        score=0, average_monthly_expenses=0, spending_pattern="RISKY", analysis=_NOT_ASSESSED
    ),
    savings_behavior=SavingsBehavior(
        score=0, average_monthly_savings=0, savings_rate=0, savings_consistency="NONE", analysis=_NOT_ASSESSED
    ),
    debt_indicators=DebtIndicators(
        score=0, has_loan_payments=False, estimated_monthly_debt=0,
        debt_to_income_ratio=0, risk_level="CRITICAL", analysis=_NOT_ASSESSED
    ),
    transaction_patterns=TransactionPatterns(
        total_transactions=0, average_transaction_value=0, most_active_day="", most_active_hour=0
    ),
    recommendation=FinancialRecommendation(
        eligible=False,
        max_loan_amount=0,
        suggested_interest_rate=0,
        max_repayment_months=0,
        reasoning="Financial analysis could not be completed",
        warnings=["Technical error during financial analysis"],
    ),
)


def summarize_transactions(transactions: Sequence[Transaction]) -> TransactionSummary:
    """
    Aggregates a newest-first transaction list for the prompt.

    These numbers only give the model context; they are not returned to the
    caller or checked against the model's answer.
    """
    if not transactions:
        return TransactionSummary(total_transactions=0)

    by_type = {}
    for t in transactions:
        by_type[t.type] = by_type.get(t.type, 0) + 1

    balances = [t.balance for t in transactions]
    dates = [t.date for t in transactions]

    return TransactionSummary(
        total_transactions=len(transactions),
        date_from=min(dates),
        date_to=max(dates),
        transactions_by_type=by_type,
        total_received=sum(t.amount for t in transactions if t.type in INFLOW_TYPES),
        total_spent=sum(t.amount for t in transactions if t.type in OUTFLOW_TYPES),
        average_balance=sum(balances) / len(balances),
        min_balance=min(balances),
        max_balance=max(balances),
    )


class FinancialAnalyzer:
    def __init__(self, gateway: ModelGateway):
        if not gateway:
            raise ValueError("A model gateway must be injected into FinancialAnalyzer.")
        self.gateway = gateway

    async def analyze_financial_data(
        self,
        transactions: Sequence[Transaction],
        employment_status: str,
        monthly_income: Optional[float] = None,
    ) -> FinancialAnalysis:
        """
        Scores financial health from a transaction history in one model call.

        Only the most recent PROMPT_TRANSACTION_SAMPLE records are embedded
        verbatim; older ones reach the model through the aggregates alone.
        """
        ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
        summary = summarize_transactions(ordered)
        prompt = build_financial_prompt(
            summary,
            ordered[:settings.PROMPT_TRANSACTION_SAMPLE],
            employment_status,
            monthly_income,
        )

        try:
            analysis = await self.gateway.generate(
                prompt,
                output_schema=FinancialAnalysis,
                temperature=settings.FINANCIAL_TEMPERATURE,
            )
        except GatewayError as e:
            logger.error("Financial analysis error: %s", e)
            return FINANCIAL_ANALYSIS_FAILURE.model_copy(deep=True)

        logger.info(
            "Financial analysis complete over %d transactions. Overall score: %s",
            summary.total_transactions, analysis.overall_score
        )
        return analysis
