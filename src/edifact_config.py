from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

import decimal_engine
from edifact_errors import InvalidDecimal

UNA_TAG = "UNA"
ORDERS_MSG_TYPE = "ORDERS"
DATE_FORMAT = "102"

# EDIFACT date/time format qualifiers mapped to strptime patterns.
DATE_FORMATS = {
    "102": "%Y%m%d",
    "203": "%Y%m%d%H%M",
    "101": "%y%m%d",
    "204": "%Y%m%d%H%M%S",
}

BUYER_QUALIFIER = "BY"
SUPPLIER_QUALIFIER = "SU"


class EdifactConfig(BaseModel):
    """
    Immutable generation parameters for an ORDERS interchange.
    Validated once at construction; safe to share between concurrent assemblies.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    charset: Literal["UNOA", "UNOB", "UNOC"] = "UNOC"
    syntax_version: str = "3"
    message_type: str = ORDERS_MSG_TYPE
    date_format: Literal["102", "203", "101", "204"] = DATE_FORMAT
    version: str = "D"
    release: str = "96A"
    controlling_agency: str = "UN"
    decimal_rounding: str = "0.01"
    line_ending: str = "\n"
    include_una: bool = True

    component_separator: str = Field(":", min_length=1, max_length=1)
    element_separator: str = Field("+", min_length=1, max_length=1)
    release_character: str = Field("?", min_length=1, max_length=1)
    segment_terminator: str = Field("'", min_length=1, max_length=1)

    sender_id: str = "SENDER"
    receiver_id: str = "RECEIVER"
    max_segment_length: int = 2000
    max_field_length: int = Field(70, ge=1)
    allowed_qualifiers: Tuple[str, ...] = ("BY", "SU", "DP", "IV", "CB")

    application_ref: Optional[str] = None
    ack_request: Optional[str] = None
    agreement_id: Optional[str] = None
    test_indicator: Optional[str] = None

    @field_validator("allowed_qualifiers")
    @classmethod
    def _qualifiers_are_two_chars(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not all(len(q) == 2 for q in value):
            raise ValueError("All qualifiers must be 2 characters")
        return value

    @field_validator("max_segment_length")
    @classmethod
    def _segment_length_floor(cls, value: int) -> int:
        if value < 10:
            raise ValueError("max_segment_length must be at least 10")
        return value

    @field_validator("decimal_rounding")
    @classmethod
    def _rounding_is_decimal(cls, value: str) -> str:
        try:
            decimal_engine.parse(value)
        except InvalidDecimal as e:
            raise ValueError(f"decimal_rounding must be a decimal template such as '0.01': {e.message}")
        return value

    @model_validator(mode="after")
    def _delimiters_are_usable(self) -> "EdifactConfig":
        delimiters = self.delimiters
        if len(set(delimiters)) != len(delimiters):
            raise ValueError("component, element, release and terminator characters must all differ")
        # UNOA/UNOB print "." as "," after escaping, so neither may delimit.
        marks = {".", ","} if self.charset in decimal_engine.COMMA_DECIMAL_CHARSETS else {"."}
        clashes = sorted(marks.intersection(delimiters))
        if clashes:
            raise ValueError(f"delimiters must not include the decimal mark characters {clashes} for {self.charset}")
        return self

    @property
    def delimiters(self) -> Tuple[str, str, str, str]:
        return (self.component_separator, self.element_separator, self.release_character, self.segment_terminator)

    @property
    def decimal_mark(self) -> str:
        return "," if self.charset in decimal_engine.COMMA_DECIMAL_CHARSETS else "."

    @property
    def scale(self) -> int:
        return decimal_engine.scale_of(self.decimal_rounding)

    @property
    def message_identifier(self) -> str:
        return self.component_separator.join(
            [self.message_type, self.version, self.release, self.controlling_agency]
        )
