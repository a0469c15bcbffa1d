from typing import Any, Dict, Optional


class EdifactError(Exception):
    """
    Base class for every failure raised by the ORDERS codec.
    Carries a stable code, a human-readable message and a bounded details mapping.
    """
    default_code = "EDIFACT_001"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(f"{self.code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


class SchemaError(EdifactError):
    default_code = "SCHEMA_001"


class DateFormatError(EdifactError):
    default_code = "VALID_003"


class NumericRangeError(EdifactError):
    default_code = "VALID_005"


class UnknownQualifierError(EdifactError):
    default_code = "VALID_008"


class MissingRoleError(EdifactError):
    default_code = "VALID_012"


class InvalidDecimal(EdifactError):
    default_code = "DECIMAL_001"


class DivisionByZero(EdifactError):
    default_code = "DECIMAL_002"


class PrecisionExceededError(EdifactError):
    default_code = "VALID_009"


class SegmentTooLongError(EdifactError):
    default_code = "SEGMENT_001"


class MissingHeaderError(EdifactError):
    default_code = "GEN_001"


class StructuralIntegrityError(EdifactError):
    default_code = "GEN_002"


class BatchMemberError(EdifactError):
    """Wraps the failure of one order inside a batch, keeping its position."""
    default_code = "BATCH_001"

    def __init__(self, index: int, cause: EdifactError):
        self.index = index
        self.cause = cause
        super().__init__(
            f"Order {index} in batch failed: {cause.message}",
            details={"order_index": index, "cause_code": cause.code, "cause_details": dict(cause.details)},
        )
