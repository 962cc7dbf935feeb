"""
Runs the onboarding services against the configured Gemini model.

Usage:
    python -m quickscore.scripts.demo                              # synthetic data + financial analysis
    python -m quickscore.scripts.demo selfie.jpg id_front.jpg id_back.jpg   # full individual onboarding
"""

import argparse
import asyncio
import base64
from pathlib import Path

from quickscore.core.config import settings
from quickscore.schemas.onboarding import (
    IndividualFinancialConnection,
    IndividualOnboardingRequest,
    OnboardingProgress,
    PersonalInfo,
)
from quickscore.services.data_sources import SyntheticDataSource
from quickscore.services.financial import FinancialAnalyzer, summarize_transactions
from quickscore.services.gateway import GeminiGateway
from quickscore.services.orchestrator import build_orchestrator


class PrintObserver:
    def on_progress(self, progress: OnboardingProgress) -> None:
        bar = "█" * (progress.progress // 5)
        print(f"   [{bar:<20}] {progress.progress:3d}% {progress.current_action} "
              f"(~{progress.estimated_time_remaining}s left)")


def section(title: str):
    print("\n" + "=" * 80)
    print(f"  {title}")
    print("=" * 80 + "\n")


def encode_image(path: str) -> str:
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


def demo_synthetic_data(source: SyntheticDataSource):
    section("DEMO 1: Synthetic Data Generation")
    for risk in ("low", "medium", "high"):
        profile = source.generate_user_profile(risk)
        print(f"📊 {risk.upper()} risk profile: {settings.CURRENCY} {profile.monthly_income:,.0f}/month, "
              f"{profile.employment_type}, savings {profile.savings_pattern}, "
              f"defaults: {profile.has_defaulted_loans}")

    profile = source.generate_user_profile("medium")
    mpesa = source.generate_mpesa_transactions(3, profile)
    bank = source.generate_bank_statements(3, profile)
    summary = summarize_transactions(mpesa)
    print(f"\n💸 Generated {len(mpesa)} M-Pesa transactions and {len(bank)} bank statement lines")
    print(f"   Received {settings.CURRENCY} {summary.total_received:,.2f}, "
          f"spent {settings.CURRENCY} {summary.total_spent:,.2f}, "
          f"average balance {settings.CURRENCY} {summary.average_balance:,.2f}")


async def demo_financial_analysis(gateway: GeminiGateway, source: SyntheticDataSource):
    section("DEMO 2: Financial Analysis")
    profile = source.generate_user_profile("low")
    transactions = source.generate_mpesa_transactions(3, profile)

    analysis = await FinancialAnalyzer(gateway).analyze_financial_data(
        transactions, profile.employment_type, profile.monthly_income
    )
    rec = analysis.recommendation
    print(f"🧠 Overall score: {analysis.overall_score}/100")
    print(f"   Income: {analysis.income_stability.income_consistency}, "
          f"spending: {analysis.spending_behavior.spending_pattern}, "
          f"debt risk: {analysis.debt_indicators.risk_level}")
    print(f"   Eligible: {rec.eligible}, max loan {settings.CURRENCY} {rec.max_loan_amount:,.0f} "
          f"at {rec.suggested_interest_rate}% over {rec.max_repayment_months} months")
    for warning in rec.warnings:
        print(f"   ⚠️  {warning}")


async def demo_onboarding(gateway: GeminiGateway, source: SyntheticDataSource, images):
    section("DEMO 3: Individual Onboarding")
    selfie, id_front, id_back = images
    request = IndividualOnboardingRequest(
        liveness_image=encode_image(selfie),
        id_front_image=encode_image(id_front),
        id_back_image=encode_image(id_back) if id_back else None,
        personal_info=PersonalInfo(
            first_name="Jane",
            last_name="Wanjiku",
            email="jane.wanjiku@example.com",
            phone="+254712345678",
            employment_type="employed",
            monthly_income=85000,
        ),
        financial_connection=IndividualFinancialConnection(type="mpesa", account_info="0712345678"),
    )

    orchestrator = build_orchestrator(gateway, data_source=source, observer=PrintObserver())
    result = await orchestrator.process_individual_onboarding(request)

    print()
    for step in result.processing_steps:
        icon = {"completed": "✅", "failed": "❌"}.get(step.status.value, "⏳")
        print(f"{icon} {step.step}: {step.message}")

    assessment = result.assessment
    print(f"\n🎯 {'APPROVED PATH' if result.success else 'REJECTED'} "
          f"({assessment.approval_status}, score {assessment.credit_score:g}/100)")
    print(f"   {assessment.detailed_explanation}")
    for reason in assessment.rejection_reasons:
        print(f"   ⛔ {reason}")


async def main():
    parser = argparse.ArgumentParser(description="QuickScore AI demo")
    parser.add_argument("images", nargs="*", help="selfie, ID front and (optional) ID back JPEG paths")
    parser.add_argument("--seed", type=int, default=settings.SYNTHETIC_DATA_SEED)
    args = parser.parse_args()

    if not settings.GEMINI_API_KEY:
        print("⚠️  GEMINI_API_KEY is not set; model calls will return their failure records.")

    gateway = GeminiGateway()
    source = SyntheticDataSource(seed=args.seed)

    demo_synthetic_data(source)
    await demo_financial_analysis(gateway, source)

    if len(args.images) >= 2:
        images = (args.images + [None])[:3]
        await demo_onboarding(gateway, source, images)
    else:
        print("\nℹ️  Pass a selfie and ID photos to run the full onboarding demo.")


if __name__ == "__main__":
    asyncio.run(main())
