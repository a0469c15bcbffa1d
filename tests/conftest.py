import copy
import logging
import os
import sys
from datetime import datetime

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from edifact_config import EdifactConfig

# ==============================================================================
# PYTEST CONFIGURATION & HOOKS
# ==============================================================================

def pytest_configure(config):
    """Configure pytest settings and markers."""
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies.")
    config.addinivalue_line("markers", "integration: Tests that run the full validate -> assemble -> decode flow.")
    config.addinivalue_line("markers", "format: Tests for specific output format validation.")

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment(pytestconfig):
    """Set up test environment with logging configuration."""
    log_level = pytestconfig.getoption("log_cli_level") or "INFO"
    logging.basicConfig(
        level=log_level.upper(),
        format="[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
        stream=sys.stdout,
        force=True,
    )
    logging.info(f"Test logging configured with level: {log_level.upper()}")
    yield

# ==============================================================================
# UNIT TEST FIXTURES
# ==============================================================================

SAMPLE_ORDER = {
    "message_ref": "ORD0001",
    "order_number": "2025-0509-A",
    "order_date": "20250509",
    "parties": [
        {
            "qualifier": "BY",
            "id": "1234567890123",
            "name": "Buyer Corp",
            "contact": "+123456789",
        },
        {
            "qualifier": "SU",
            "id": "3210987654321",
            "address": "Industrial?Park",
            "contact": "supplier@example.com",
            "contact_type": "EM",
        },
    ],
    "items": [
        {
            "product_code": "ITEM001",
            "description": "Widget A (Special)",
            "quantity": "10",
            "price": "12.50",
            "unit": "EA",
        },
    ],
    "delivery_date": "20250515",
    "currency": "USD",
    "delivery_location": "WAREHOUSE1",
    "payment_terms": "NET30",
    "tax_rate": "7.5",
    "special_instructions": "Please deliver during business hours 9AM-5PM. Contact John Doe at extension 123 for delivery coordination.",
    "incoterms": "FOB",
}

MINIMAL_ORDER = {
    "message_ref": "ORD0002",
    "order_number": "PO-2",
    "order_date": "20250509",
    "parties": [
        {"qualifier": "BY", "id": "BUYER1"},
        {"qualifier": "SU", "id": "SUPPLIER1"},
    ],
    "items": [
        {"product_code": "ITEM001", "quantity": "10.00", "price": "12.50"},
    ],
}


@pytest.fixture
def sample_order() -> dict:
    """A fully populated order; a fresh deep copy per test so tests may mutate it."""
    return copy.deepcopy(SAMPLE_ORDER)


@pytest.fixture
def minimal_order() -> dict:
    """Two parties (buyer + supplier) and one 10.00 x 12.50 item, nothing optional."""
    return copy.deepcopy(MINIMAL_ORDER)


@pytest.fixture
def config() -> EdifactConfig:
    return EdifactConfig()


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2025, 5, 9, 12, 30)
