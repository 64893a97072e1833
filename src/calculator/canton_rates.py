"""Canton tax parameters and the immutable per-year rate table."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from calculator.decimal_math import to_decimal, is_finite, ZERO
from calculator.exceptions import CantonNotFoundError, ConfigurationError


# Language codes accepted by CantonRateTable.canton_name
SUPPORTED_LANGUAGES = ("EN", "DE", "FR", "IT")


@dataclass(frozen=True)
class CantonTaxParameters:
    """
    Corporate tax parameters for one canton.

    Rates follow the FTA conventions used in the product:
    - corporate_income_tax_rate and federal_tax_rate are percentages (6.5 = 6.5%)
    - capital_tax_rate is a fraction applied directly to estimated capital
    - municipal_multiplier scales the cantonal tax to approximate communal tax
    """
    code: str
    name: str
    name_de: str
    name_fr: str
    name_it: str
    corporate_income_tax_rate: Decimal
    capital_tax_rate: Decimal
    municipal_multiplier: Decimal
    vat_threshold: Decimal
    federal_tax_rate: Decimal

    def localized_name(self, language: str = "EN") -> str:
        """Canton name in EN, DE, FR or IT (falls back to English)."""
        return {
            "DE": self.name_de,
            "FR": self.name_fr,
            "IT": self.name_it,
        }.get(language.upper(), self.name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CantonTaxParameters":
        """Create parameters from a YAML/JSON mapping."""
        try:
            code = str(data["code"]).strip().upper()
            name = data["name"]
            params = cls(
                code=code,
                name=name,
                name_de=data.get("name_de", name),
                name_fr=data.get("name_fr", name),
                name_it=data.get("name_it", name),
                corporate_income_tax_rate=to_decimal(data["corporate_income_tax_rate"]),
                capital_tax_rate=to_decimal(data["capital_tax_rate"]),
                municipal_multiplier=to_decimal(data["municipal_multiplier"]),
                vat_threshold=to_decimal(data["vat_threshold"]),
                federal_tax_rate=to_decimal(data["federal_tax_rate"]),
            )
        except KeyError as e:
            raise ConfigurationError(f"Canton entry missing field {e.args[0]!r}: {dict(data)}") from e
        except (ArithmeticError, ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid numeric value in canton entry {data.get('code')!r}: {e}") from e

        params.validate()
        return params

    def validate(self) -> None:
        """Reject codes and rates that would corrupt the calculation."""
        if len(self.code) != 2 or not self.code.isalpha():
            raise ConfigurationError(f"Invalid canton code: {self.code!r}")

        for field_name in (
            "corporate_income_tax_rate",
            "capital_tax_rate",
            "vat_threshold",
            "federal_tax_rate",
        ):
            value = getattr(self, field_name)
            if not is_finite(value) or value < ZERO:
                raise ConfigurationError(f"{self.code}: {field_name} must be a non-negative number, got {value}")

        if not is_finite(self.municipal_multiplier) or self.municipal_multiplier <= ZERO:
            raise ConfigurationError(
                f"{self.code}: municipal_multiplier must be positive, got {self.municipal_multiplier}"
            )

    def to_dict(self, language: str = "EN") -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.localized_name(language),
            "corporateIncomeTaxRate": float(self.corporate_income_tax_rate),
            "capitalTaxRate": float(self.capital_tax_rate),
            "municipalMultiplier": float(self.municipal_multiplier),
            "vatThreshold": float(self.vat_threshold),
            "federalTaxRate": float(self.federal_tax_rate),
        }


class CantonRateTable:
    """
    Immutable, ordered set of canton parameters for one tax year.

    The table is injected into the calculator so a different year (or a test
    fixture) can be swapped in without touching calculation code.
    """

    def __init__(self, cantons: Iterable[CantonTaxParameters], tax_year: Optional[int] = None):
        entries: Tuple[CantonTaxParameters, ...] = tuple(cantons)
        if not entries:
            raise ConfigurationError("Canton rate table must contain at least one canton")

        index: Dict[str, CantonTaxParameters] = {}
        for entry in entries:
            if entry.code in index:
                raise ConfigurationError(f"Duplicate canton code in rate table: {entry.code}")
            index[entry.code] = entry

        self._cantons = entries
        self._index = MappingProxyType(index)
        self._tax_year = tax_year

    @property
    def tax_year(self) -> Optional[int]:
        return self._tax_year

    @property
    def codes(self) -> Tuple[str, ...]:
        """Canton codes in canonical order."""
        return tuple(entry.code for entry in self._cantons)

    def get(self, code: str) -> Optional[CantonTaxParameters]:
        """Look up a canton by code (case-insensitive)."""
        if not isinstance(code, str):
            return None
        return self._index.get(code.strip().upper())

    def require(self, code: str) -> CantonTaxParameters:
        """Look up a canton, raising CantonNotFoundError when absent."""
        entry = self.get(code)
        if entry is None:
            raise CantonNotFoundError(code)
        return entry

    def canton_name(self, code: str, language: str = "EN") -> str:
        """Localized canton name; unknown codes are returned unchanged."""
        entry = self.get(code)
        if entry is None:
            return code
        return entry.localized_name(language)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.get(code) is not None

    def __iter__(self) -> Iterator[CantonTaxParameters]:
        return iter(self._cantons)

    def __len__(self) -> int:
        return len(self._cantons)

    def __repr__(self) -> str:
        return f"CantonRateTable(tax_year={self._tax_year}, cantons={len(self)})"

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        tax_year: Optional[int] = None,
    ) -> "CantonRateTable":
        """Build a table from raw mappings (e.g. parsed YAML)."""
        return cls((CantonTaxParameters.from_dict(record) for record in records), tax_year=tax_year)
