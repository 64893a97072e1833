"""
Root pytest configuration.

This conftest is loaded before test collection to ensure
src is in the Python path for all imports.
"""

import sys
from pathlib import Path

# Add src to path IMMEDIATELY when this file is loaded
src_path = Path(__file__).parent / "src"
src_str = str(src_path.absolute())

# Ensure it's at the very front
if src_str in sys.path:
    sys.path.remove(src_str)
sys.path.insert(0, src_str)


import pytest


@pytest.fixture(autouse=True)
def _reset_cached_services():
    """Drop cached settings, rate tables and singletons between tests."""
    yield
    from config.settings import get_settings
    from config.tax_config_loader import clear_config_cache
    from recommendation.ai_recommendations import reset_recommendation_generator
    from web.routers import calculator as calculator_routes

    get_settings.cache_clear()
    clear_config_cache()
    reset_recommendation_generator()
    calculator_routes.set_dependencies()


def pytest_configure(config):
    """Additional path setup during pytest configuration."""
    if src_str not in sys.path:
        sys.path.insert(0, src_str)
