"""
Domain models for the canton tax engine.

CompanyProfile is the caller-supplied input; TaxBreakdown, SavingsAnalysis and
HealthScore are derived results. All models are immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from calculator.decimal_math import to_decimal, to_float, ZERO
from calculator.exceptions import ProfileValidationError


# Used when an API caller omits the company name
UNNAMED_COMPANY = "Unnamed company"


class LegalForm(str, Enum):
    """Swiss legal forms supported by the calculator."""
    GMBH = "GmbH"
    AG = "AG"
    EINZELFIRMA = "Einzelfirma"
    KOLLEKTIVGESELLSCHAFT = "Kollektivgesellschaft"

    @classmethod
    def _missing_(cls, value: object) -> Optional["LegalForm"]:
        """Case-insensitive lookup ("gmbh" -> GmbH)."""
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None

    @property
    def is_incorporated(self) -> bool:
        return self in (LegalForm.GMBH, LegalForm.AG)


def _parse_amount(name: str, value: Any) -> Decimal:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ProfileValidationError(f"{name} must be a number", field=name)
    if not amount.is_finite():
        raise ProfileValidationError(f"{name} must be a finite number", field=name)
    return amount


@dataclass(frozen=True)
class CompanyProfile:
    """
    A company as described by the user.

    Validated on construction: revenue is non-negative, profit lies between
    zero and revenue, and there is at least one employee. Invalid values are
    rejected, never clamped.
    """
    name: str
    legal_form: LegalForm
    canton: Optional[str]
    revenue: Decimal
    profit: Decimal
    employees: int = 1
    industry: str = ""
    vat_registered: bool = False

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ProfileValidationError("Company name is required", field="name")

        try:
            legal_form = LegalForm(self.legal_form)
        except ValueError:
            allowed = ", ".join(member.value for member in LegalForm)
            raise ProfileValidationError(
                f"Unknown legal form {self.legal_form!r} (expected one of: {allowed})",
                field="legal_form",
            )
        object.__setattr__(self, "legal_form", legal_form)

        # A missing canton is allowed for comparisons across all cantons
        if self.canton is not None:
            if not isinstance(self.canton, str) or not self.canton.strip():
                raise ProfileValidationError("Canton must be a canton code", field="canton")
            object.__setattr__(self, "canton", self.canton.strip().upper())

        revenue = _parse_amount("revenue", self.revenue)
        profit = _parse_amount("profit", self.profit)
        if revenue < ZERO:
            raise ProfileValidationError("Revenue cannot be negative", field="revenue")
        if profit < ZERO:
            raise ProfileValidationError("Profit cannot be negative", field="profit")
        if profit > revenue:
            raise ProfileValidationError("Profit cannot exceed revenue", field="profit")
        object.__setattr__(self, "revenue", revenue)
        object.__setattr__(self, "profit", profit)

        if isinstance(self.employees, bool) or not isinstance(self.employees, int):
            if isinstance(self.employees, float) and self.employees.is_integer():
                object.__setattr__(self, "employees", int(self.employees))
            else:
                raise ProfileValidationError("Employees must be a whole number", field="employees")
        if self.employees < 1:
            raise ProfileValidationError("Must have at least 1 employee", field="employees")

        if not isinstance(self.vat_registered, bool):
            raise ProfileValidationError("vatRegistered must be true or false", field="vat_registered")

        object.__setattr__(self, "industry", (self.industry or "").strip())

    def require_canton(self) -> str:
        """Canton code, or ProfileValidationError when the profile has none."""
        if self.canton is None:
            raise ProfileValidationError("Canton is required", field="canton")
        return self.canton

    @property
    def profit_margin(self) -> Decimal:
        """Profit as a fraction of revenue (0 when there is no revenue)."""
        if self.revenue == ZERO:
            return ZERO
        return self.profit / self.revenue

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], require_canton: bool = True) -> "CompanyProfile":
        """
        Build a profile from an API payload.

        Accepts the camelCase keys used on the wire (legalForm, vatRegistered)
        as well as snake_case.

        Raises:
            ProfileValidationError: If a required field is missing or invalid
        """
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        required_fields = [("revenue", ("revenue",)), ("legalForm", ("legalForm", "legal_form"))]
        if require_canton:
            required_fields.append(("canton", ("canton",)))

        missing = [name for name, keys in required_fields if pick(*keys) is None]
        if missing:
            raise ProfileValidationError(
                f"Missing required fields: {', '.join(missing)}",
                field=missing[0],
            )

        return cls(
            name=pick("name", "companyName", "company_name", default=UNNAMED_COMPANY),
            legal_form=pick("legalForm", "legal_form"),
            canton=pick("canton"),
            revenue=pick("revenue"),
            profit=pick("profit", default=0),
            employees=pick("employees", default=1),
            industry=pick("industry", default=""),
            vat_registered=pick("vatRegistered", "vat_registered", default=False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "legalForm": self.legal_form.value,
            "canton": self.canton,
            "revenue": to_float(self.revenue),
            "profit": to_float(self.profit),
            "employees": self.employees,
            "industry": self.industry,
            "vatRegistered": self.vat_registered,
        }


@dataclass(frozen=True)
class TaxBreakdown:
    """Tax burden of one company in one canton (CHF)."""
    canton: str
    federal_tax: Decimal
    cantonal_tax: Decimal
    municipal_tax: Decimal
    capital_tax: Decimal
    total_tax_burden: Decimal
    effective_rate: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "canton": self.canton,
            "federalTax": to_float(self.federal_tax),
            "cantonalTax": to_float(self.cantonal_tax),
            "municipalTax": to_float(self.municipal_tax),
            "capitalTax": to_float(self.capital_tax),
            "totalTaxBurden": to_float(self.total_tax_burden),
            "effectiveRate": to_float(self.effective_rate),
        }


@dataclass(frozen=True)
class SavingsAnalysis:
    """Difference between the current canton and the cheapest one."""
    savings: Decimal
    best_canton: str
    current_tax: Decimal
    best_tax: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "savings": to_float(self.savings),
            "bestCanton": self.best_canton,
            "currentTax": to_float(self.current_tax),
            "bestTax": to_float(self.best_tax),
        }


@dataclass(frozen=True)
class HealthScore:
    """Composite 0-100 tax efficiency score with findings."""
    score: int
    grade: str
    issues: Tuple[str, ...] = field(default_factory=tuple)
    recommendations: Tuple[str, ...] = field(default_factory=tuple)
    potential_savings: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "grade": self.grade,
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
            "potentialSavings": to_float(self.potential_savings),
        }
