"""
Pytest configuration and fixtures.

Ensures PYTHONPATH is set correctly for imports.
"""
from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Dict

import pytest

# Add src/ to Python path if not already present
repo_root = Path(__file__).parent.parent
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from formwizard.config import clear_config_caches  # noqa: E402
from formwizard.services import InMemorySink, create_checkout_wizard  # noqa: E402

FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0)


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2026-10-18 12:00 so expiry checks are deterministic."""
    return lambda: FIXED_NOW


@pytest.fixture
def personal_values() -> Dict[str, str]:
    return {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"}


@pytest.fixture
def address_values() -> Dict[str, str]:
    return {"address": "12 Analytical Row", "city": "London", "postalCode": "123456"}


@pytest.fixture
def payment_values() -> Dict[str, str]:
    return {"cardNumber": "4111111111111111", "expiryDate": "12/30", "cvv": "123"}


@pytest.fixture
def all_values(personal_values, address_values, payment_values) -> Dict[str, str]:
    return {**personal_values, **address_values, **payment_values}


@pytest.fixture
def sink() -> InMemorySink:
    return InMemorySink()


@pytest.fixture
def wizard(sink, fixed_clock):
    return create_checkout_wizard(sink=sink, clock=fixed_clock)


@pytest.fixture
def repo_configs() -> Path:
    return repo_root / "configs"


@pytest.fixture(autouse=True)
def _fresh_config_caches():
    clear_config_caches()
    yield
    clear_config_caches()
