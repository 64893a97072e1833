from .exceptions import (
    TaxPilotError,
    ProfileValidationError,
    CantonNotFoundError,
    ConfigurationError,
    CalculationError,
)
from .models import CompanyProfile, LegalForm, TaxBreakdown, SavingsAnalysis, HealthScore
from .canton_rates import CantonTaxParameters, CantonRateTable
from .tax_calculator import CantonTaxCalculator, compute_taxes, sort_by_burden, top_cantons, get_canton
from .savings import analyze_savings
from .health_score import TaxHealthScorer, score_health, score_factors, grade_for_score

__all__ = [
    "TaxPilotError",
    "ProfileValidationError",
    "CantonNotFoundError",
    "ConfigurationError",
    "CalculationError",
    "CompanyProfile",
    "LegalForm",
    "TaxBreakdown",
    "SavingsAnalysis",
    "HealthScore",
    "CantonTaxParameters",
    "CantonRateTable",
    "CantonTaxCalculator",
    "compute_taxes",
    "sort_by_burden",
    "top_cantons",
    "get_canton",
    "analyze_savings",
    "TaxHealthScorer",
    "score_health",
    "score_factors",
    "grade_for_score",
]
