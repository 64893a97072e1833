"""Tests for CompanyProfile validation and payload parsing."""

import pytest
from decimal import Decimal

from calculator.exceptions import ProfileValidationError
from calculator.models import UNNAMED_COMPANY, CompanyProfile, LegalForm


def _valid(**overrides):
    values = dict(
        name="Muster AG",
        legal_form="AG",
        canton="zh",
        revenue=1000000,
        profit=100000,
    )
    values.update(overrides)
    return values


class TestValidation:

    def test_normalizes_values(self):
        profile = CompanyProfile(**_valid(industry="  Retail "))
        assert profile.canton == "ZH"
        assert profile.legal_form is LegalForm.AG
        assert profile.revenue == Decimal("1000000")
        assert profile.industry == "Retail"

    def test_legal_form_is_case_insensitive(self):
        assert CompanyProfile(**_valid(legal_form="gmbh")).legal_form is LegalForm.GMBH

    @pytest.mark.parametrize("overrides,field", [
        ({"name": "  "}, "name"),
        ({"legal_form": "Stiftung"}, "legal_form"),
        ({"revenue": -1, "profit": 0}, "revenue"),
        ({"profit": -5}, "profit"),
        ({"profit": 2000000}, "profit"),
        ({"revenue": float("inf")}, "revenue"),
        ({"revenue": "lots"}, "revenue"),
        ({"employees": 0}, "employees"),
        ({"employees": 2.5}, "employees"),
        ({"vat_registered": "yes"}, "vat_registered"),
        ({"canton": ""}, "canton"),
    ])
    def test_rejects_invalid_values(self, overrides, field):
        with pytest.raises(ProfileValidationError) as exc_info:
            CompanyProfile(**_valid(**overrides))
        assert exc_info.value.field == field

    def test_profit_equal_to_revenue_is_allowed(self):
        profile = CompanyProfile(**_valid(revenue=50000, profit=50000))
        assert profile.profit_margin == Decimal("1")

    def test_profit_margin_without_revenue(self):
        assert CompanyProfile(**_valid(revenue=0, profit=0)).profit_margin == Decimal("0")

    def test_is_immutable(self):
        profile = CompanyProfile(**_valid())
        with pytest.raises(AttributeError):
            profile.canton = "ZG"


class TestFromDict:

    def test_camel_case_payload(self, zh_payload):
        profile = CompanyProfile.from_dict(zh_payload)
        assert profile.legal_form is LegalForm.GMBH
        assert profile.vat_registered is True
        assert profile.employees == 8

    def test_snake_case_payload(self):
        profile = CompanyProfile.from_dict({
            "company_name": "Snake GmbH",
            "legal_form": "GmbH",
            "canton": "BE",
            "revenue": "250000",
            "profit": "25000",
            "vat_registered": False,
        })
        assert profile.name == "Snake GmbH"
        assert profile.revenue == Decimal("250000")

    def test_defaults(self):
        profile = CompanyProfile.from_dict({"legalForm": "AG", "canton": "ZG", "revenue": 100000})
        assert profile.name == UNNAMED_COMPANY
        assert profile.profit == Decimal("0")
        assert profile.employees == 1
        assert profile.vat_registered is False

    def test_missing_fields_are_listed(self):
        with pytest.raises(ProfileValidationError) as exc_info:
            CompanyProfile.from_dict({"name": "Nothing AG"})
        assert str(exc_info.value) == "Missing required fields: revenue, legalForm, canton"
        assert exc_info.value.field == "revenue"

    def test_zero_revenue_is_not_missing(self):
        profile = CompanyProfile.from_dict({"legalForm": "AG", "canton": "ZG", "revenue": 0})
        assert profile.revenue == Decimal("0")

    def test_canton_optional_when_not_required(self):
        profile = CompanyProfile.from_dict({"legalForm": "AG", "revenue": 100000}, require_canton=False)
        assert profile.canton is None
        with pytest.raises(ProfileValidationError):
            profile.require_canton()

    def test_to_dict(self, zh_profile):
        data = zh_profile.to_dict()
        assert data["legalForm"] == "GmbH"
        assert data["revenue"] == 1200000.0
        assert data["vatRegistered"] is True
