from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
import logging

from batch_assembler import assemble_batch
from edifact_config import EdifactConfig
from edifact_errors import EdifactError
from message_assembler import generate_edifact_orders
from order_validator import validate_order_data
from profile_manager import ProfileManager

logger = logging.getLogger(__name__)


class ValidationFinding:
    """Container for one codec failure, keyed by its stable code."""
    def __init__(self, level: str, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.level = level
        self.code = code
        self.message = message
        self.details = details or {}

    @classmethod
    def from_error(cls, error: EdifactError) -> "ValidationFinding":
        return cls(level="error", code=error.code, message=error.message, details=error.details)


class ValidationResult:
    """Container for validation results."""
    def __init__(self, valid: bool, findings: List[ValidationFinding]):
        self.valid = valid
        self.findings = findings


class GenerationResult:
    """Container for generation results; `message` is None whenever `ok` is False."""
    def __init__(self, ok: bool, message: Optional[str], findings: List[ValidationFinding]):
        self.ok = ok
        self.message = message
        self.findings = findings


class OrdersService:
    """
    Result-returning facade over the ORDERS codec.
    Codec failures come back as findings instead of exceptions; anything else propagates.
    """

    def __init__(self, profile_base_path: str = "profiles"):
        self.profile_manager = ProfileManager(profile_base_path)

    def resolve_config(self, profile_name: Optional[str] = None, partner_id: Optional[str] = None) -> EdifactConfig:
        if not profile_name:
            return EdifactConfig()
        config = self.profile_manager.get_profile(profile_name, partner_id)
        if config is None:
            raise ValueError(f"Profile not found: {profile_name}")
        return config

    def check_order(
        self,
        data: Any,
        profile_name: Optional[str] = None,
        partner_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Validate raw order data without generating segments.

        Args:
            data: The raw order mapping
            profile_name: Optional profile to validate against (default config otherwise)
            partner_id: Optional trading partner for profile overrides

        Returns:
            ValidationResult containing validation status and findings
        """
        config = self.resolve_config(profile_name, partner_id)
        try:
            validate_order_data(data, config)
        except EdifactError as e:
            return ValidationResult(valid=False, findings=[ValidationFinding.from_error(e)])
        logger.info("Order validation completed: valid=True")
        return ValidationResult(valid=True, findings=[])

    def generate(
        self,
        data: Any,
        profile_name: Optional[str] = None,
        partner_id: Optional[str] = None,
        prepared_at: Optional[datetime] = None,
    ) -> GenerationResult:
        config = self.resolve_config(profile_name, partner_id)
        try:
            message = generate_edifact_orders(data, config, prepared_at=prepared_at)
        except EdifactError as e:
            logger.error(f"ORDERS generation failed: {e.code} - {e.message}")
            return GenerationResult(ok=False, message=None, findings=[ValidationFinding.from_error(e)])
        return GenerationResult(ok=True, message=message, findings=[])

    def generate_batch(
        self,
        orders: Sequence[Any],
        profile_name: Optional[str] = None,
        partner_id: Optional[str] = None,
        batch_ref: Optional[str] = None,
        prepared_at: Optional[datetime] = None,
    ) -> GenerationResult:
        config = self.resolve_config(profile_name, partner_id)
        try:
            message = assemble_batch(orders, config, batch_ref=batch_ref, prepared_at=prepared_at)
        except EdifactError as e:
            logger.error(f"ORDERS batch generation failed: {e.code} - {e.message}")
            return GenerationResult(ok=False, message=None, findings=[ValidationFinding.from_error(e)])
        return GenerationResult(ok=True, message=message, findings=[])
