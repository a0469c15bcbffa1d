import logging
import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

import decimal_engine
from edifact_config import EdifactConfig
from edifact_errors import SegmentTooLongError, PrecisionExceededError
from decimal_engine import DecimalLike

logger = logging.getLogger(__name__)

CONTROL_CHAR_REGEX = re.compile(r'[\x00-\x1F\x7F]')
PREVIEW_LENGTH = 100


class SegmentKind(str, Enum):
    """Closed set of segment roles the ORDERS codec emits, keyed by tag."""
    SERVICE_STRING_ADVICE = "UNA"
    INTERCHANGE_HEADER = "UNB"
    INTERCHANGE_TRAILER = "UNZ"
    MESSAGE_HEADER = "UNH"
    MESSAGE_TRAILER = "UNT"
    DOCUMENT_REFERENCE = "BGM"
    DATE_TIME = "DTM"
    PARTY = "NAD"
    CONTACT = "COM"
    LINE_ITEM = "LIN"
    ITEM_DESCRIPTION = "IMD"
    QUANTITY = "QTY"
    PRICE = "PRI"
    MONETARY_AMOUNT = "MOA"
    TAX = "TAX"
    LOCATION = "LOC"
    PAYMENT_TERMS = "PAI"
    DELIVERY_TERMS = "TOD"
    FREE_TEXT = "FTX"
    CURRENCY = "CUX"

    @property
    def tag(self) -> str:
        return self.value


class EncodedSegment(BaseModel):
    """One finished segment string together with the role it was built for."""
    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    text: str


# --- Cross-cutting rules ---
def escape_edifact(value: Optional[str], config: EdifactConfig) -> str:
    """
    Escapes one data value for the configured delimiters.
    Control characters are dropped, reserved characters get the release prefix,
    and UNOA/UNOB rewrite every '.' as ','.
    """
    if value is None:
        return ""
    text = CONTROL_CHAR_REGEX.sub('', str(value))
    release = config.release_character
    reserved = set(config.delimiters)
    result = []
    for char in text:
        if char in reserved:
            result.append(release)
        result.append(char)
    escaped = ''.join(result)
    if config.charset in decimal_engine.COMMA_DECIMAL_CHARSETS:
        escaped = escaped.replace('.', ',')
    return escaped


def truncate_field(value: str, config: EdifactConfig) -> str:
    if len(value) > config.max_field_length:
        logger.debug(f"Truncating free text from {len(value)} to {config.max_field_length} characters")
        return value[:config.max_field_length]
    return value


def validate_segment_length(segment: str, config: EdifactConfig) -> None:
    if len(segment) > config.max_segment_length:
        raise SegmentTooLongError(
            f"Segment too long: {len(segment)} > {config.max_segment_length}",
            "SEGMENT_001",
            {"length": len(segment), "max_length": config.max_segment_length, "preview": segment[:PREVIEW_LENGTH]},
        )


def validate_decimal_precision(value: DecimalLike, config: EdifactConfig) -> None:
    if not decimal_engine.validate_precision(value, config.decimal_rounding):
        raise PrecisionExceededError(
            f"Decimal value {value} exceeds configured precision {config.decimal_rounding}",
            "VALID_009",
            {"value": str(value)[:50], "precision": config.decimal_rounding},
        )


def _number(value: DecimalLike, config: EdifactConfig) -> str:
    validate_decimal_precision(value, config)
    return decimal_engine.format_for_charset(value, config.charset, config.scale)


def _composite(config: EdifactConfig, *components: str) -> str:
    return config.component_separator.join(components)


def _segment(config: EdifactConfig, kind: SegmentKind, *elements: str) -> str:
    """Joins already-escaped elements behind the tag, terminates and length-checks the segment."""
    segment = config.element_separator.join([kind.tag, *elements]) + config.segment_terminator
    validate_segment_length(segment, config)
    return segment


# --- Envelope ---
def service_string_advice(config: EdifactConfig) -> str:
    return (
        f"{SegmentKind.SERVICE_STRING_ADVICE.tag}{config.component_separator}{config.element_separator}"
        f"{config.decimal_mark}{config.release_character} {config.segment_terminator}"
    )


def interchange_header(config: EdifactConfig, interchange_ref: str, prepared_at: Optional[datetime] = None) -> str:
    prepared_at = prepared_at or datetime.now()
    elements: List[str] = [
        _composite(config, config.charset, config.syntax_version),
        escape_edifact(config.sender_id, config),
        escape_edifact(config.receiver_id, config),
        _composite(config, prepared_at.strftime("%y%m%d"), prepared_at.strftime("%H%M")),
        escape_edifact(interchange_ref, config),
        "",  # recipient reference/password
        escape_edifact(config.application_ref, config),
        "",  # processing priority
        escape_edifact(config.ack_request, config),
        escape_edifact(config.agreement_id, config),
        escape_edifact(config.test_indicator, config),
    ]
    while elements and not elements[-1]:
        elements.pop()
    return _segment(config, SegmentKind.INTERCHANGE_HEADER, *elements)


def interchange_trailer(config: EdifactConfig, message_count: int, interchange_ref: str) -> str:
    return _segment(config, SegmentKind.INTERCHANGE_TRAILER, str(message_count), escape_edifact(interchange_ref, config))


def message_header(config: EdifactConfig, message_ref: str) -> str:
    return _segment(config, SegmentKind.MESSAGE_HEADER, escape_edifact(message_ref, config), config.message_identifier)


def message_trailer(config: EdifactConfig, segment_count: int, message_ref: str) -> str:
    return _segment(config, SegmentKind.MESSAGE_TRAILER, str(segment_count), escape_edifact(message_ref, config))


# --- Heading ---
def document_reference(config: EdifactConfig, order_number: str, document_type: str = "220") -> str:
    return _segment(config, SegmentKind.DOCUMENT_REFERENCE, document_type, escape_edifact(order_number, config), "9")


def date_time(config: EdifactConfig, qualifier: str, date: str) -> str:
    return _segment(
        config, SegmentKind.DATE_TIME,
        _composite(config, qualifier, escape_edifact(date, config), config.date_format),
    )


def currency(config: EdifactConfig, currency_code: str) -> str:
    return _segment(config, SegmentKind.CURRENCY, _composite(config, "2", escape_edifact(currency_code, config), "9"))


def party(config: EdifactConfig, qualifier: str, party_id: str, name: Optional[str] = None) -> str:
    elements = [
        escape_edifact(qualifier, config),
        _composite(config, escape_edifact(party_id, config), "", "91"),
    ]
    if name:
        elements.extend(["", escape_edifact(truncate_field(name, config), config)])
    return _segment(config, SegmentKind.PARTY, *elements)


def contact(config: EdifactConfig, value: str, contact_type: str = "TE") -> str:
    return _segment(
        config, SegmentKind.CONTACT,
        _composite(config, escape_edifact(value, config), escape_edifact(contact_type, config)),
    )


# --- Detail ---
def line_item(config: EdifactConfig, line_number: int, product_code: str) -> str:
    return _segment(
        config, SegmentKind.LINE_ITEM,
        str(line_number), "", _composite(config, escape_edifact(product_code, config), "EN"),
    )


def item_description(config: EdifactConfig, description: str) -> str:
    return _segment(
        config, SegmentKind.ITEM_DESCRIPTION,
        "F", "", _composite(config, "", "", "", escape_edifact(truncate_field(description, config), config)),
    )


def quantity(config: EdifactConfig, value: DecimalLike, unit: str = "EA") -> str:
    return _segment(config, SegmentKind.QUANTITY, _composite(config, "21", _number(value, config), escape_edifact(unit, config)))


def price(config: EdifactConfig, value: DecimalLike, unit: str = "EA") -> str:
    return _segment(config, SegmentKind.PRICE, _composite(config, "AAA", _number(value, config), escape_edifact(unit, config)))


# --- Summary ---
def monetary_amount(config: EdifactConfig, qualifier: str, amount: DecimalLike) -> str:
    return _segment(config, SegmentKind.MONETARY_AMOUNT, _composite(config, escape_edifact(qualifier, config), _number(amount, config)))


def tax(config: EdifactConfig, rate: DecimalLike, tax_type: str = "VAT") -> str:
    return _segment(
        config, SegmentKind.TAX,
        "7", escape_edifact(tax_type, config), "", "", _composite(config, "", "", "", _number(rate, config)),
    )


def location(config: EdifactConfig, qualifier: str, place: str) -> str:
    return _segment(config, SegmentKind.LOCATION, escape_edifact(qualifier, config), _composite(config, escape_edifact(place, config), "92"))


def payment_terms(config: EdifactConfig, terms: str) -> str:
    return _segment(config, SegmentKind.PAYMENT_TERMS, _composite(config, escape_edifact(terms, config), "3"))


def delivery_terms(config: EdifactConfig, incoterms: str) -> str:
    return _segment(config, SegmentKind.DELIVERY_TERMS, "5", "", escape_edifact(incoterms, config))


def free_text(config: EdifactConfig, text: str, sequence: int = 1, qualifier: str = "AAI") -> str:
    return _segment(
        config, SegmentKind.FREE_TEXT,
        qualifier, str(sequence), "", "", escape_edifact(truncate_field(text, config), config),
    )
