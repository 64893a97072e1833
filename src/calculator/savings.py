"""Savings analysis: current canton versus the cheapest canton."""

from __future__ import annotations

import logging
from typing import List, Optional

from calculator.canton_rates import CantonRateTable
from calculator.exceptions import CantonNotFoundError
from calculator.models import CompanyProfile, SavingsAnalysis, TaxBreakdown
from calculator.tax_calculator import CantonTaxCalculator, sort_by_burden

logger = logging.getLogger(__name__)


def savings_from_breakdowns(breakdowns: List[TaxBreakdown], current_canton: str) -> SavingsAnalysis:
    """
    Reduce precomputed breakdowns to a SavingsAnalysis.

    The best canton is the one with the lowest total burden; ties go to the
    lowest canton code so the result does not depend on table order.

    Raises:
        CantonNotFoundError: If current_canton has no breakdown
    """
    code = current_canton.strip().upper()
    current = next((b for b in breakdowns if b.canton == code), None)
    if current is None:
        raise CantonNotFoundError(current_canton)

    best = sort_by_burden(breakdowns)[0]
    savings = current.total_tax_burden - best.total_tax_burden

    return SavingsAnalysis(
        savings=savings,
        best_canton=best.canton,
        current_tax=current.total_tax_burden,
        best_tax=best.total_tax_burden,
    )


def analyze_savings(
    profile: CompanyProfile,
    current_canton: Optional[str] = None,
    rate_table: Optional[CantonRateTable] = None,
) -> SavingsAnalysis:
    """
    Compare the company's canton against all cantons.

    Args:
        profile: Company to evaluate
        current_canton: Canton to compare from (defaults to profile.canton)
        rate_table: Canton parameters (defaults to the configured tax year)

    Returns:
        SavingsAnalysis with savings >= 0

    Raises:
        CantonNotFoundError: If the current canton is not in the rate table
        ProfileValidationError: If no canton is given and the profile has none
    """
    code = current_canton if current_canton is not None else profile.require_canton()
    calculator = CantonTaxCalculator(rate_table)
    analysis = savings_from_breakdowns(calculator.compute_taxes(profile), code)

    logger.debug(
        f"Savings for {analysis.best_canton} vs {code}: {analysis.savings} CHF"
    )
    return analysis
