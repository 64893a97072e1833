"""
Tests for the canton tax calculator.

Covers the worked Zurich example, the exact-sum invariant for every canton,
ordering and the single-canton filter.
"""

import pytest
from decimal import Decimal
from types import SimpleNamespace

from calculator.canton_rates import CantonRateTable
from calculator.exceptions import CantonNotFoundError, ProfileValidationError
from calculator.models import CompanyProfile, LegalForm
from calculator.tax_calculator import (
    CantonTaxCalculator,
    compute_taxes,
    get_canton,
    sort_by_burden,
    top_cantons,
)


class TestZurichScenario:
    """GmbH in Zurich with CHF 1.2m revenue and CHF 240k profit."""

    def test_breakdown(self, zh_profile, rate_table):
        breakdown = CantonTaxCalculator(rate_table).compute_for_canton(zh_profile, "ZH")

        assert breakdown.canton == "ZH"
        assert breakdown.federal_tax == Decimal("20400")
        assert breakdown.cantonal_tax == Decimal("15600")
        assert breakdown.municipal_tax == Decimal("18564")
        assert breakdown.capital_tax == Decimal("240")
        assert breakdown.total_tax_burden == Decimal("54804")
        assert breakdown.effective_rate == Decimal("22.835")

    def test_to_dict(self, zh_profile, rate_table):
        data = compute_taxes(zh_profile, "ZH", rate_table)[0].to_dict()
        assert data == {
            "canton": "ZH",
            "federalTax": 20400.0,
            "cantonalTax": 15600.0,
            "municipalTax": 18564.0,
            "capitalTax": 240.0,
            "totalTaxBurden": 54804.0,
            "effectiveRate": 22.835,
        }

    def test_zug_is_cheaper_than_zurich(self, zh_profile, rate_table):
        calculator = CantonTaxCalculator(rate_table)
        zh = calculator.compute_for_canton(zh_profile, "ZH")
        zg = calculator.compute_for_canton(zh_profile, "ZG")

        assert zg.municipal_tax < zh.municipal_tax
        assert zg.total_tax_burden < zh.total_tax_burden

        order = [b.canton for b in calculator.compare_cantons(zh_profile)]
        assert order.index("ZG") < order.index("ZH")


class TestComputeTaxes:

    def test_one_breakdown_per_canton_in_table_order(self, zh_profile, rate_table):
        breakdowns = compute_taxes(zh_profile, rate_table=rate_table)
        assert [b.canton for b in breakdowns] == list(rate_table.codes)

    def test_total_is_exact_sum_for_every_canton(self, rate_table):
        profile = CompanyProfile(
            name="Odd Numbers AG",
            legal_form=LegalForm.AG,
            canton="BE",
            revenue=Decimal("987654.33"),
            profit=Decimal("123456.78"),
        )
        for b in compute_taxes(profile, rate_table=rate_table):
            assert b.total_tax_burden == b.federal_tax + b.cantonal_tax + b.municipal_tax + b.capital_tax

    def test_filter_is_case_insensitive(self, zh_profile, rate_table):
        result = compute_taxes(zh_profile, "zg", rate_table)
        assert [b.canton for b in result] == ["ZG"]

    def test_unknown_canton_filter_raises(self, zh_profile, rate_table):
        with pytest.raises(CantonNotFoundError):
            compute_taxes(zh_profile, "XX", rate_table)

    def test_zero_profit_has_zero_effective_rate(self, rate_table):
        profile = CompanyProfile(
            name="Startup GmbH",
            legal_form="GmbH",
            canton="ZH",
            revenue=Decimal("50000"),
            profit=Decimal("0"),
        )
        breakdown = compute_taxes(profile, "ZH", rate_table)[0]
        assert breakdown.effective_rate == Decimal("0")
        assert breakdown.federal_tax == Decimal("0")
        # Capital tax still applies to the revenue-based estimate
        assert breakdown.capital_tax == Decimal("10")
        assert breakdown.total_tax_burden == Decimal("10")

    def test_loss_still_yields_breakdown(self, rate_table):
        """Profiles from other sources may carry a loss; the rate stays 0."""
        loss_making = SimpleNamespace(revenue=Decimal("100000"), profit=Decimal("-20000"))
        breakdown = compute_taxes(loss_making, "ZH", rate_table)[0]
        assert breakdown.effective_rate == Decimal("0")
        assert breakdown.federal_tax < 0

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "n/a"])
    def test_non_finite_profit_rejected(self, rate_table, value):
        profile = SimpleNamespace(revenue=Decimal("100000"), profit=value)
        with pytest.raises(ProfileValidationError) as exc_info:
            compute_taxes(profile, rate_table=rate_table)
        assert exc_info.value.field == "profit"

    def test_default_table_is_loaded(self, zh_profile):
        assert len(compute_taxes(zh_profile)) == 26


class TestOrdering:

    def test_sort_by_burden_ascending(self, zh_profile, rate_table):
        ranked = sort_by_burden(compute_taxes(zh_profile, rate_table=rate_table))
        totals = [b.total_tax_burden for b in ranked]
        assert totals == sorted(totals)
        assert ranked[0].canton == "GE"
        assert ranked[-1].canton == "TI"

    def test_ties_ordered_by_canton_code(self, make_canton):
        table = CantonRateTable([make_canton("UR"), make_canton("AI"), make_canton("NW")])
        profile = SimpleNamespace(revenue=Decimal("500000"), profit=Decimal("100000"))
        ranked = sort_by_burden(compute_taxes(profile, rate_table=table))
        assert [b.canton for b in ranked] == ["AI", "NW", "UR"]

    def test_top_cantons(self, zh_profile, rate_table):
        top = top_cantons(zh_profile, 3, rate_table)
        assert [b.canton for b in top] == ["GE", "VD", "NE"]

    def test_top_cantons_zero_and_negative(self, zh_profile, rate_table):
        assert top_cantons(zh_profile, 0, rate_table) == []
        with pytest.raises(ValueError):
            top_cantons(zh_profile, -1, rate_table)


def test_get_canton(rate_table):
    assert get_canton("zh", rate_table).name == "Zurich"
    assert get_canton("XX", rate_table) is None
