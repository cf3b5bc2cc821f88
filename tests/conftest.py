"""
Shared test fixtures for the validation test suite.
"""
import copy
import json
from datetime import date, datetime

import pytest

from src.config.schemas import ORDER_REQUEST_DEFINITION
from src.testing.mock_responses import MockChatModel
from src.validation.pipeline import ValidationPipeline
from src.validation.recovery import RecoveryEngine
from src.validation.registry import build_target_schema
from src.validation.stats import RunStatistics

TODAY = date(2024, 6, 1)
NOW = datetime(2024, 6, 1, 12, 0, 0)


# ==========================================================================
# Clock
# ==========================================================================

@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def fixed_clock():
    return lambda: NOW


# ==========================================================================
# Schemas
# ==========================================================================

@pytest.fixture
def order_definition():
    return copy.deepcopy(ORDER_REQUEST_DEFINITION)


@pytest.fixture
def order_schema(order_definition):
    return build_target_schema(order_definition)


# ==========================================================================
# Orders
# ==========================================================================

@pytest.fixture
def valid_order():
    return {
        "orderId": "ORD-482910",
        "customerEmail": "jane.doe@example.com",
        "orderDate": "2024-01-15",
        "items": [
            {
                "productId": "SKU-1001",
                "productName": "Laptop",
                "quantity": 3,
                "unitPrice": 1500.0,
            },
        ],
        "totalAmount": 4500.0,
        "shippingAddress": {
            "street": "350 Fifth Avenue",
            "city": "New York",
            "state": "NY",
            "zipCode": "10118",
            "country": "US",
        },
        "paymentMethod": "CREDIT_CARD",
    }


@pytest.fixture
def valid_order_json(valid_order):
    return json.dumps(valid_order)


# ==========================================================================
# Pipeline components
# ==========================================================================

@pytest.fixture
def recovery_engine():
    return RecoveryEngine(today=lambda: TODAY)


@pytest.fixture
def pipeline(recovery_engine, fixed_clock):
    return ValidationPipeline(
        recovery_engine=recovery_engine,
        today=lambda: TODAY,
        clock=fixed_clock,
    )


@pytest.fixture
def mock_chat():
    return MockChatModel()


@pytest.fixture
def run_stats():
    return RunStatistics()
