"""
Tax Health Scoring.

Combines how a company's canton ranks against all other cantons with a small
set of business-structure rules into a 0-100 score and letter grade.

Score composition:
- Tax efficiency (up to 70 points): percentile of the current canton when all
  cantons are ranked from cheapest to most expensive
- Business factors: VAT registration, legal structure, team size and profit
  margin, each an independent rule, summed

The point system is a product policy rather than a legal formula, so every
rule is a named function that can be tested and replaced on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from calculator.canton_rates import CantonRateTable
from calculator.decimal_math import clamp, round_half_up, format_swiss_number, HUNDRED
from calculator.exceptions import CantonNotFoundError
from calculator.models import CompanyProfile, HealthScore, LegalForm, SavingsAnalysis, TaxBreakdown
from calculator.savings import savings_from_breakdowns
from calculator.tax_calculator import CantonTaxCalculator, sort_by_burden

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100

# Share of the score driven by the canton ranking
TAX_EFFICIENCY_WEIGHT = Decimal("0.7")

VAT_REVENUE_THRESHOLD = Decimal("100000")
LARGE_COMPANY_REVENUE = Decimal("500000")
EMPLOYEE_THRESHOLD = 10
HEALTHY_PROFIT_MARGIN = Decimal("0.15")
HIGH_EFFECTIVE_RATE = Decimal("20")
SIGNIFICANT_SAVINGS_SHARE = Decimal("0.05")

# (minimum score, grade), checked top-down
GRADE_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)
FAILING_GRADE = "F"


# =============================================================================
# SCORE FACTORS
# =============================================================================

def vat_registration_factor(profile: CompanyProfile) -> int:
    """Unregistered companies above the VAT threshold lose points."""
    if profile.revenue > VAT_REVENUE_THRESHOLD and not profile.vat_registered:
        return -10
    return 5


def legal_structure_factor(profile: CompanyProfile) -> int:
    """An AG suits larger revenue."""
    if profile.legal_form == LegalForm.AG and profile.revenue > LARGE_COMPANY_REVENUE:
        return 5
    return 0


def employee_count_factor(profile: CompanyProfile) -> int:
    if profile.employees > EMPLOYEE_THRESHOLD:
        return 5
    return 0


def profit_margin_factor(profile: CompanyProfile) -> int:
    """Margins above 15% earn the full bonus."""
    if profile.profit_margin > HEALTHY_PROFIT_MARGIN:
        return 10
    return 5


ScoreFactor = Callable[[CompanyProfile], int]

SCORE_FACTORS: Tuple[Tuple[str, ScoreFactor], ...] = (
    ("vatOptimization", vat_registration_factor),
    ("legalStructure", legal_structure_factor),
    ("employeeCount", employee_count_factor),
    ("profitMargin", profit_margin_factor),
)


def score_factors(profile: CompanyProfile) -> Dict[str, int]:
    """Points contributed by each business factor, in evaluation order."""
    return {name: rule(profile) for name, rule in SCORE_FACTORS}


def base_score(rank: int, canton_count: int) -> int:
    """
    Tax-efficiency points for a 0-based canton rank (0 = cheapest).

    The cheapest canton reaches the 100th percentile and 70 points.
    """
    if canton_count <= 0:
        raise ValueError("canton_count must be positive")
    if not 0 <= rank < canton_count:
        raise ValueError(f"rank {rank} outside 0..{canton_count - 1}")
    percentile = Decimal(canton_count - rank) / Decimal(canton_count) * HUNDRED
    return round_half_up(percentile * TAX_EFFICIENCY_WEIGHT)


def grade_for_score(score: int) -> str:
    """Letter grade for a score: 90+ A, 80+ B, 70+ C, 60+ D, otherwise F."""
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return FAILING_GRADE


# =============================================================================
# FINDINGS
# =============================================================================

@dataclass(frozen=True)
class Finding:
    """An issue and/or a recommendation produced by one rule."""
    issue: Optional[str] = None
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class ScoringContext:
    profile: CompanyProfile
    current: TaxBreakdown
    savings: SavingsAnalysis


def high_effective_rate_finding(ctx: ScoringContext) -> Optional[Finding]:
    if ctx.current.effective_rate > HIGH_EFFECTIVE_RATE:
        return Finding(
            issue="High effective tax rate compared to Swiss average",
            recommendation="Consider relocating to a lower-tax canton",
        )
    return None


def vat_registration_finding(ctx: ScoringContext) -> Optional[Finding]:
    if ctx.profile.revenue > VAT_REVENUE_THRESHOLD and not ctx.profile.vat_registered:
        return Finding(
            issue="Not VAT registered despite high revenue",
            recommendation="Register for VAT to optimize input tax deductions",
        )
    return None


def sole_proprietorship_finding(ctx: ScoringContext) -> Optional[Finding]:
    if ctx.profile.legal_form == LegalForm.EINZELFIRMA and ctx.profile.revenue > LARGE_COMPANY_REVENUE:
        return Finding(
            issue="Sole proprietorship may not be optimal for high revenue",
            recommendation="Consider incorporating as GmbH or AG for tax efficiency",
        )
    return None


def relocation_savings_finding(ctx: ScoringContext) -> Optional[Finding]:
    if ctx.savings.savings > ctx.profile.profit * SIGNIFICANT_SAVINGS_SHARE:
        amount = format_swiss_number(ctx.savings.savings)
        return Finding(recommendation=f"Potential annual savings of {amount} CHF by relocating")
    return None


FindingRule = Callable[[ScoringContext], Optional[Finding]]

# Every applicable rule fires; order determines the output order
FINDING_RULES: Tuple[FindingRule, ...] = (
    high_effective_rate_finding,
    vat_registration_finding,
    sole_proprietorship_finding,
    relocation_savings_finding,
)


# =============================================================================
# SCORER
# =============================================================================

class TaxHealthScorer:
    """Scores a company profile against a canton rate table."""

    def __init__(self, rate_table: Optional[CantonRateTable] = None):
        self._calculator = CantonTaxCalculator(rate_table)

    def score(self, profile: CompanyProfile) -> HealthScore:
        """
        Compute the health score for the profile's canton.

        Raises:
            CantonNotFoundError: If profile.canton is not in the rate table
            ProfileValidationError: If the profile has no canton
        """
        canton = profile.require_canton()
        breakdowns = self._calculator.compute_taxes(profile)
        ranked = sort_by_burden(breakdowns)

        rank = next((i for i, b in enumerate(ranked) if b.canton == canton), None)
        if rank is None:
            raise CantonNotFoundError(canton)

        factors = score_factors(profile)
        raw_score = base_score(rank, len(ranked)) + sum(factors.values())
        score = int(clamp(raw_score, MIN_SCORE, MAX_SCORE))

        savings = savings_from_breakdowns(breakdowns, canton)
        ctx = ScoringContext(profile=profile, current=ranked[rank], savings=savings)

        issues: List[str] = []
        recommendations: List[str] = []
        for rule in FINDING_RULES:
            finding = rule(ctx)
            if finding is None:
                continue
            if finding.issue:
                issues.append(finding.issue)
            if finding.recommendation:
                recommendations.append(finding.recommendation)

        logger.debug(f"Health score for {canton}: rank={rank} factors={factors} score={score}")

        return HealthScore(
            score=score,
            grade=grade_for_score(score),
            issues=tuple(issues),
            recommendations=tuple(recommendations),
            potential_savings=max(savings.savings, Decimal(0)),
        )


def score_health(profile: CompanyProfile, rate_table: Optional[CantonRateTable] = None) -> HealthScore:
    """Convenience wrapper around TaxHealthScorer.score."""
    return TaxHealthScorer(rate_table).score(profile)
