"""
Tax Configuration Loader.

Loads canton tax parameters from YAML configuration files, enabling:
- Annual rate updates without code changes
- Environment-specific overrides
- Validation of the 26-canton dataset before it reaches the calculator
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from calculator.canton_rates import CantonRateTable
from calculator.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Default config directory
CONFIG_DIR = Path(__file__).parent / "tax_parameters"

EARLIEST_TAX_YEAR = 2020

SWISS_CANTON_CODES = frozenset({
    "AG", "AI", "AR", "BE", "BL", "BS", "FR", "GE", "GL", "GR", "JU", "LU", "NE",
    "NW", "OW", "SG", "SH", "SO", "SZ", "TG", "TI", "UR", "VD", "VS", "ZG", "ZH",
})

_OVERRIDABLE_FIELDS = (
    "corporate_income_tax_rate",
    "capital_tax_rate",
    "municipal_multiplier",
    "vat_threshold",
    "federal_tax_rate",
)

_YEAR_FILE_PATTERN = re.compile(r"^cantons_(\d{4})\.yaml$")


@dataclass
class ConfigMetadata:
    """Metadata about a configuration file."""
    version: str
    tax_year: int
    effective_date: str
    source: str
    notes: str = ""


def is_valid_tax_year(year: int, today: Optional[date] = None) -> bool:
    """Tax years from 2020 up to next calendar year are accepted."""
    current_year = (today or date.today()).year
    return EARLIEST_TAX_YEAR <= year <= current_year + 1


class TaxConfigLoader:
    """
    Loads and caches canton rate tables from YAML files.

    Files are named ``cantons_<year>.yaml`` and hold a ``cantons`` list plus
    optional ``_metadata``. Environment variables of the form
    ``TAX_<year>_<CODE>_<FIELD>`` override single values, e.g.
    ``TAX_2025_ZH_MUNICIPAL_MULTIPLIER=1.2``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the config loader.

        Args:
            config_dir: Directory containing YAML config files.
                       Defaults to src/config/tax_parameters/
        """
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self._tables: Dict[int, CantonRateTable] = {}
        self._metadata: Dict[int, ConfigMetadata] = {}

    def load_rate_table(self, tax_year: int) -> CantonRateTable:
        """
        Load the canton rate table for a tax year.

        Raises:
            ConfigurationError: If the year is out of range, the file is
                missing or the data fails validation.
        """
        if tax_year in self._tables:
            return self._tables[tax_year]

        if not is_valid_tax_year(tax_year):
            raise ConfigurationError(f"Unsupported tax year: {tax_year}")

        records = self._load_from_file(tax_year)
        records = self._apply_env_overrides(records, tax_year)
        table = CantonRateTable.from_records(records, tax_year=tax_year)
        self._validate_table(table, tax_year)

        self._tables[tax_year] = table
        logger.info(f"Loaded canton rate table for {tax_year} ({len(table)} cantons)")
        return table

    def _load_from_file(self, tax_year: int) -> List[Dict[str, Any]]:
        """Read the raw canton records for a year."""
        year_file = self.config_dir / f"cantons_{tax_year}.yaml"
        if not year_file.exists():
            raise ConfigurationError(f"No canton tax parameters found for {tax_year} ({year_file})")

        logger.info(f"Loading canton tax config from {year_file}")
        try:
            with open(year_file, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML in {year_file}: {e}") from e

        if not isinstance(content, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {year_file}")

        if "_metadata" in content:
            try:
                self._metadata[tax_year] = ConfigMetadata(**content.pop("_metadata"))
            except TypeError as e:
                raise ConfigurationError(f"Invalid _metadata block in {year_file}: {e}") from e

        records = content.get("cantons")
        if not isinstance(records, list):
            raise ConfigurationError(f"{year_file} must define a 'cantons' list")

        return [dict(record) for record in records]

    def _apply_env_overrides(self, records: List[Dict[str, Any]], tax_year: int) -> List[Dict[str, Any]]:
        """Apply TAX_<year>_<CODE>_<FIELD> environment overrides."""
        prefix = f"TAX_{tax_year}_"
        by_code = {str(record.get("code", "")).upper(): record for record in records}

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            code, _, field_name = key[len(prefix):].partition("_")
            field_name = field_name.lower()
            if code not in by_code or field_name not in _OVERRIDABLE_FIELDS:
                logger.warning(f"Ignoring unknown tax override: {key}")
                continue
            by_code[code][field_name] = value
            logger.info(f"Applied env override: {code}.{field_name}={value}")

        return records

    def _validate_table(self, table: CantonRateTable, tax_year: int) -> None:
        """The published dataset must cover exactly the 26 cantons."""
        codes = set(table.codes)
        missing = sorted(SWISS_CANTON_CODES - codes)
        unknown = sorted(codes - SWISS_CANTON_CODES)
        if missing or unknown:
            raise ConfigurationError(
                f"Canton table for {tax_year} is inconsistent "
                f"(missing: {missing or 'none'}, unknown: {unknown or 'none'})"
            )

    def get_metadata(self, tax_year: int) -> Optional[ConfigMetadata]:
        """Get metadata for a tax year's configuration."""
        self.load_rate_table(tax_year)
        return self._metadata.get(tax_year)

    def available_years(self) -> List[int]:
        """Tax years with a parameter file in the config directory."""
        if not self.config_dir.exists():
            return []
        years = []
        for path in self.config_dir.iterdir():
            match = _YEAR_FILE_PATTERN.match(path.name)
            if match:
                years.append(int(match.group(1)))
        return sorted(years)


# Global singleton
_config_loader: Optional[TaxConfigLoader] = None


def get_config_loader() -> TaxConfigLoader:
    """Get the global config loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = TaxConfigLoader()
    return _config_loader


def get_rate_table(tax_year: int) -> CantonRateTable:
    """Rate table for a given year from the global loader."""
    return get_config_loader().load_rate_table(tax_year)


def get_default_rate_table() -> CantonRateTable:
    """
    Rate table for the configured default tax year.

    This is the recommended way to obtain the table when no explicit one is
    injected.
    """
    from config.settings import get_settings

    return get_rate_table(get_settings().default_tax_year)


def clear_config_cache() -> None:
    """Clear the configuration cache (useful for testing)."""
    global _config_loader
    _config_loader = None
