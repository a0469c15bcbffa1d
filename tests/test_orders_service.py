"""
Unit tests for the ORDERS service facade.
"""

import pytest
from unittest.mock import patch

from edifact_config import EdifactConfig
from orders_service import OrdersService, ValidationResult, GenerationResult

pytestmark = pytest.mark.unit

class TestOrdersService:
    """Test cases for the ORDERS service."""

    def setup_method(self):
        """Set up test fixtures."""
        self.service = OrdersService("/tmp/test_profiles_missing")

    def test_service_init(self):
        """Test service initialization."""
        assert self.service is not None
        assert self.service.profile_manager is not None

    def test_default_config_without_profile(self):
        assert self.service.resolve_config() == EdifactConfig()

    def test_unknown_profile_raises(self):
        """A missing profile is a caller error, not a codec finding."""
        with patch.object(self.service.profile_manager, 'get_profile', return_value=None):
            with pytest.raises(ValueError, match="Profile not found"):
                self.service.generate({}, profile_name="nonexistent.json")

    def test_partner_profile_is_resolved(self):
        partner_config = EdifactConfig(receiver_id="PARTNER")
        with patch.object(self.service.profile_manager, 'get_profile', return_value=partner_config) as get_profile:
            assert self.service.resolve_config("orders.json", "p1") is partner_config
            get_profile.assert_called_once_with("orders.json", "p1")

    def test_check_valid_order(self, minimal_order):
        result = self.service.check_order(minimal_order)
        assert isinstance(result, ValidationResult)
        assert result.valid
        assert result.findings == []

    def test_check_invalid_order_returns_finding(self, minimal_order):
        minimal_order["order_date"] = "20250230"
        result = self.service.check_order(minimal_order)
        assert not result.valid
        assert len(result.findings) == 1
        assert result.findings[0].code == "VALID_003"
        assert result.findings[0].level == "error"

    def test_generate_success(self, sample_order, fixed_time):
        result = self.service.generate(sample_order, prepared_at=fixed_time)
        assert isinstance(result, GenerationResult)
        assert result.ok
        assert result.message.split("\n")[-1] == "UNZ+1+ORD0001'"

    def test_generate_with_profile(self, minimal_order):
        unoa = EdifactConfig(charset="UNOA")
        with patch.object(self.service.profile_manager, 'get_profile', return_value=unoa):
            result = self.service.generate(minimal_order, profile_name="unoa.json")
        assert result.ok
        assert "MOA+79:125,00'" in result.message.split("\n")

    def test_generate_failure_carries_code_and_details(self, minimal_order):
        minimal_order["items"][0]["quantity"] = "0"
        result = self.service.generate(minimal_order)
        assert not result.ok
        assert result.message is None
        assert result.findings[0].code == "VALID_010"
        assert result.findings[0].details["item_index"] == 0

    def test_generate_batch(self, minimal_order, sample_order, fixed_time):
        result = self.service.generate_batch([minimal_order, sample_order], batch_ref="B42", prepared_at=fixed_time)
        assert result.ok
        assert result.message.split("\n")[-1] == "UNZ+2+B42'"

    def test_generate_batch_failure(self, minimal_order):
        result = self.service.generate_batch([minimal_order, {"message_ref": "X"}])
        assert not result.ok
        assert result.findings[0].code == "BATCH_001"
        assert result.findings[0].details["order_index"] == 1
        assert result.findings[0].details["cause_code"] == "SCHEMA_001"

    def test_oversized_quantity_is_reported_as_finding(self, minimal_order):
        minimal_order["items"][0]["quantity"] = "1" * 70
        result = self.service.generate(minimal_order)
        assert not result.ok
        assert result.findings[0].code == "VALID_005"

    def test_arithmetic_overflow_is_reported_as_finding(self, minimal_order):
        minimal_order["items"][0].update(quantity="9" * 28, price="9" * 28)
        minimal_order["tax_rate"] = "9" * 28
        result = self.service.generate(minimal_order)
        assert not result.ok
        assert result.message is None
        assert result.findings[0].code == "DECIMAL_001"

    def test_base_profile_lookup_passes_no_partner(self):
        with patch.object(self.service.profile_manager, 'get_profile', return_value=EdifactConfig()) as get_profile:
            self.service.resolve_config("orders.json")
            get_profile.assert_called_once_with("orders.json", None)
