"""Pytest configuration and fixtures for test suite."""

import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Set test environment BEFORE any other imports
# AI calls must never leave the test process
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ["OPENROUTER_API_KEY"] = ""

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def rate_table():
    """The shipped 2025 canton rate table."""
    from config.tax_config_loader import TaxConfigLoader
    return TaxConfigLoader().load_rate_table(2025)


@pytest.fixture
def zh_profile():
    """Zurich GmbH used throughout the worked examples (total burden 54'804 CHF)."""
    from calculator.models import CompanyProfile, LegalForm
    return CompanyProfile(
        name="Muster GmbH",
        legal_form=LegalForm.GMBH,
        canton="ZH",
        revenue=Decimal("1200000"),
        profit=Decimal("240000"),
        employees=8,
        industry="Software",
        vat_registered=True,
    )


@pytest.fixture
def zh_payload():
    """Wire representation of zh_profile."""
    return {
        "name": "Muster GmbH",
        "legalForm": "GmbH",
        "canton": "ZH",
        "revenue": 1200000,
        "profit": 240000,
        "employees": 8,
        "industry": "Software",
        "vatRegistered": True,
    }


@pytest.fixture
def make_canton():
    """Factory for CantonTaxParameters with neutral defaults."""
    from calculator.canton_rates import CantonTaxParameters

    def _make(code, corporate_rate="6.5", multiplier="1.0", **overrides):
        values = dict(
            code=code,
            name=f"Canton {code}",
            name_de=f"Kanton {code}",
            name_fr=f"Canton {code}",
            name_it=f"Cantone {code}",
            corporate_income_tax_rate=Decimal(corporate_rate),
            capital_tax_rate=Decimal("0.001"),
            municipal_multiplier=Decimal(multiplier),
            vat_threshold=Decimal("100000"),
            federal_tax_rate=Decimal("8.5"),
        )
        values.update(overrides)
        return CantonTaxParameters(**values)

    return _make


@pytest.fixture
def client(rate_table):
    """TestClient for the full app with the AI provider disabled."""
    from fastapi.testclient import TestClient

    from config.settings import AISettings
    from recommendation.ai_recommendations import AIRecommendationGenerator
    from web.app import create_app
    from web.routers import calculator as calculator_routes

    calculator_routes.set_dependencies(
        rate_table=rate_table,
        recommendation_generator=AIRecommendationGenerator(AISettings(api_key=None)),
    )
    yield TestClient(create_app())
    calculator_routes.set_dependencies()
