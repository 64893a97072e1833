"""
Swiss Corporate Tax Calculator
Estimates federal, cantonal, municipal and capital tax for every canton
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from calculator.canton_rates import CantonRateTable, CantonTaxParameters
from calculator.decimal_math import to_decimal, percent, divide, is_finite, HUNDRED, ZERO
from calculator.exceptions import ProfileValidationError
from calculator.models import CompanyProfile, TaxBreakdown

logger = logging.getLogger(__name__)

# SMEs are assumed to hold equity of roughly 20% of annual revenue.
# Capital tax is charged on this estimate instead of audited balance sheet figures.
ESTIMATED_CAPITAL_RATIO = Decimal("0.20")

DEFAULT_TOP_CANTONS = 5


def _amount(profile: CompanyProfile, name: str) -> Decimal:
    value = getattr(profile, name)
    if not is_finite(value):
        raise ProfileValidationError(f"{name} must be a finite number", field=name)
    return to_decimal(value)


def sort_by_burden(breakdowns: Iterable[TaxBreakdown]) -> List[TaxBreakdown]:
    """Cheapest canton first; equal burdens are ordered by canton code."""
    return sorted(breakdowns, key=lambda b: (b.total_tax_burden, b.canton))


class CantonTaxCalculator:
    """Calculate the corporate tax burden of a company in each canton"""

    def __init__(self, rate_table: Optional[CantonRateTable] = None):
        """
        Initialize the calculator.

        Args:
            rate_table: Canton parameters to use. Defaults to the table of the
                configured tax year.
        """
        if rate_table is None:
            from config.tax_config_loader import get_default_rate_table
            rate_table = get_default_rate_table()
        self._rate_table = rate_table

    @property
    def rate_table(self) -> CantonRateTable:
        return self._rate_table

    def compute_taxes(self, profile: CompanyProfile, canton: Optional[str] = None) -> List[TaxBreakdown]:
        """
        Compute one breakdown per canton, in rate table order.

        Args:
            profile: Company to evaluate (only revenue and profit are used)
            canton: Restrict the result to a single canton code

        Returns:
            List of TaxBreakdown

        Raises:
            CantonNotFoundError: If an explicit canton filter matches nothing
            ProfileValidationError: If revenue or profit is not a finite number
        """
        revenue = _amount(profile, "revenue")
        profit = _amount(profile, "profit")

        if canton is not None:
            cantons = [self._rate_table.require(canton)]
        else:
            cantons = list(self._rate_table)

        return [self._breakdown(params, revenue, profit) for params in cantons]

    def compute_for_canton(self, profile: CompanyProfile, canton: str) -> TaxBreakdown:
        """Breakdown for a single canton."""
        return self.compute_taxes(profile, canton)[0]

    def compare_cantons(self, profile: CompanyProfile) -> List[TaxBreakdown]:
        """All cantons sorted by ascending total tax burden."""
        return sort_by_burden(self.compute_taxes(profile))

    def top_cantons(self, profile: CompanyProfile, limit: int = DEFAULT_TOP_CANTONS) -> List[TaxBreakdown]:
        """The `limit` cantons with the lowest burden."""
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        return self.compare_cantons(profile)[:limit]

    @staticmethod
    def _breakdown(params: CantonTaxParameters, revenue: Decimal, profit: Decimal) -> TaxBreakdown:
        federal_tax = percent(profit, params.federal_tax_rate)
        cantonal_tax = percent(profit, params.corporate_income_tax_rate)
        municipal_tax = cantonal_tax * params.municipal_multiplier

        estimated_capital = revenue * ESTIMATED_CAPITAL_RATIO
        capital_tax = estimated_capital * params.capital_tax_rate

        total = federal_tax + cantonal_tax + municipal_tax + capital_tax

        # A rate on zero or negative profit is meaningless
        if profit > ZERO:
            effective_rate = divide(total, profit) * HUNDRED
        else:
            effective_rate = ZERO

        return TaxBreakdown(
            canton=params.code,
            federal_tax=federal_tax,
            cantonal_tax=cantonal_tax,
            municipal_tax=municipal_tax,
            capital_tax=capital_tax,
            total_tax_burden=total,
            effective_rate=effective_rate,
        )


def compute_taxes(
    profile: CompanyProfile,
    canton: Optional[str] = None,
    rate_table: Optional[CantonRateTable] = None,
) -> List[TaxBreakdown]:
    """Convenience wrapper around CantonTaxCalculator.compute_taxes."""
    return CantonTaxCalculator(rate_table).compute_taxes(profile, canton)


def top_cantons(
    profile: CompanyProfile,
    limit: int = DEFAULT_TOP_CANTONS,
    rate_table: Optional[CantonRateTable] = None,
) -> List[TaxBreakdown]:
    """Convenience wrapper around CantonTaxCalculator.top_cantons."""
    return CantonTaxCalculator(rate_table).top_cantons(profile, limit)


def get_canton(code: str, rate_table: Optional[CantonRateTable] = None) -> Optional[CantonTaxParameters]:
    """Look up canton parameters by code (None when unknown)."""
    if rate_table is None:
        from config.tax_config_loader import get_default_rate_table
        rate_table = get_default_rate_table()
    return rate_table.get(code)
