import logging
import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, List, Optional

import decimal_engine
from edifact_config import EdifactConfig, DATE_FORMATS, BUYER_QUALIFIER, SUPPLIER_QUALIFIER
from edifact_errors import (
    EdifactError, SchemaError, DateFormatError, NumericRangeError,
    UnknownQualifierError, MissingRoleError, InvalidDecimal,
)
from order_models import Order, OrderItem, OrderParty

logger = logging.getLogger(__name__)

CONTROL_CHAR_REGEX = re.compile(r'[\x00-\x1F\x7F]')

REQUIRED_FIELDS = ["message_ref", "order_number", "order_date", "parties", "items"]

# Optional top-level fields with a length ceiling; checked only when non-empty.
OPTIONAL_FIELD_LIMITS = {
    "currency": 3,
    "delivery_location": 35,
    "payment_terms": 35,
    "incoterms": 3,
}

OPTIONAL_TEXT_FIELDS = [
    "delivery_date", "currency", "delivery_location", "payment_terms",
    "special_instructions", "incoterms",
]

PREVIEW_LENGTH = 50


# --- Structural Validation ---
def validate_field_length(field_name: str, value: Any, max_length: int) -> None:
    text = str(value)
    if len(text) > max_length:
        raise SchemaError(
            f"Field '{field_name}' exceeds maximum length of {max_length}",
            "VALID_014",
            {"field": field_name, "value": text[:PREVIEW_LENGTH], "length": len(text), "max_length": max_length},
        )


def _present(data: Mapping, key: str) -> bool:
    return data.get(key) is not None and data.get(key) != ""


def validate_with_schema(data: Any) -> None:
    """Structural checks on the raw mapping: required keys, list shapes and length ceilings."""
    if not isinstance(data, Mapping):
        raise SchemaError("Order data must be a mapping", "SCHEMA_000", {"type": type(data).__name__})

    for field in REQUIRED_FIELDS:
        if data.get(field) is None:
            raise SchemaError(f"Missing required field: {field}", "SCHEMA_001", {"missing_field": field})

    validate_field_length("message_ref", data["message_ref"], 14)
    validate_field_length("order_number", data["order_number"], 35)
    for field, limit in OPTIONAL_FIELD_LIMITS.items():
        if _present(data, field):
            validate_field_length(field, data[field], limit)

    parties = data["parties"]
    if not isinstance(parties, list) or len(parties) < 2:
        raise SchemaError(
            "At least 2 parties are required",
            "SCHEMA_002",
            {"parties_count": len(parties) if isinstance(parties, list) else 0},
        )
    for idx, party in enumerate(parties):
        if not isinstance(party, Mapping):
            raise SchemaError(f"Party {idx} must be a mapping", "SCHEMA_003", {"party_index": idx})
        if party.get("qualifier") is None or party.get("id") is None:
            raise SchemaError(f"Party {idx} must contain qualifier and id", "SCHEMA_004", {"party_index": idx})
        validate_field_length("qualifier", party["qualifier"], 2)
        validate_field_length("id", party["id"], 35)

    items = data["items"]
    if not isinstance(items, list) or len(items) < 1:
        raise SchemaError(
            "At least one item is required",
            "SCHEMA_005",
            {"items_count": len(items) if isinstance(items, list) else 0},
        )
    for idx, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise SchemaError(f"Item {idx} must be a mapping", "SCHEMA_006", {"item_index": idx})
        if any(item.get(key) is None for key in ("product_code", "quantity", "price")):
            raise SchemaError(
                f"Item {idx} must contain product_code, quantity, and price",
                "SCHEMA_007",
                {"item_index": idx},
            )
        validate_field_length("product_code", item["product_code"], 35)


# --- Semantic Validation ---
def validate_date(date_str: Any, date_format: str) -> bool:
    """The text must parse with the qualifier's pattern and print back identically."""
    pattern = DATE_FORMATS.get(date_format)
    if not pattern or not isinstance(date_str, str):
        return False
    try:
        return datetime.strptime(date_str, pattern).strftime(pattern) == date_str
    except ValueError:
        return False


def _parse_numeric(value: Any, field: str, context: Dict[str, Any]):
    try:
        number = decimal_engine.parse(value)
    except InvalidDecimal:
        raise NumericRangeError(
            f"Invalid numeric format for {field}",
            "VALID_005",
            {**context, "field": field, "value": str(value)[:PREVIEW_LENGTH]},
        ) from None
    digits = len(number.as_tuple().digits)
    if digits > decimal_engine.MAX_INPUT_DIGITS:
        raise NumericRangeError(
            f"Too many digits for {field}: {digits} > {decimal_engine.MAX_INPUT_DIGITS}",
            "VALID_005",
            {**context, "field": field, "value": str(value)[:PREVIEW_LENGTH], "digits": digits},
        )
    return number


def validate_semantics(data: Mapping, config: EdifactConfig) -> None:
    if not validate_date(data["order_date"], config.date_format):
        raise DateFormatError(
            f"Invalid order_date format for {config.date_format}",
            "VALID_003",
            {"date": str(data["order_date"])[:PREVIEW_LENGTH], "format": config.date_format},
        )
    if _present(data, "delivery_date") and not validate_date(data["delivery_date"], config.date_format):
        raise DateFormatError(
            f"Invalid delivery_date format for {config.date_format}",
            "VALID_004",
            {"date": str(data["delivery_date"])[:PREVIEW_LENGTH], "format": config.date_format},
        )

    for idx, item in enumerate(data["items"]):
        quantity = _parse_numeric(item["quantity"], "quantity", {"item_index": idx})
        if quantity <= 0:
            raise NumericRangeError(
                f"Item {idx} quantity must be positive",
                "VALID_010",
                {"item_index": idx, "quantity": str(item["quantity"])},
            )
        price = _parse_numeric(item["price"], "price", {"item_index": idx})
        if price < 0:
            raise NumericRangeError(
                f"Item {idx} price must be non-negative",
                "VALID_011",
                {"item_index": idx, "price": str(item["price"])},
            )

    if _present(data, "tax_rate"):
        rate = _parse_numeric(data["tax_rate"], "tax_rate", {})
        if rate < 0:
            raise NumericRangeError("Tax rate must be non-negative", "VALID_015", {"tax_rate": str(data["tax_rate"])})

    buyer_count = 0
    supplier_count = 0
    for idx, party in enumerate(data["parties"]):
        qualifier = str(party["qualifier"])
        if qualifier not in config.allowed_qualifiers:
            raise UnknownQualifierError(
                f"Invalid qualifier '{qualifier}' in party {idx}",
                "VALID_008",
                {"party_index": idx, "qualifier": qualifier, "allowed": list(config.allowed_qualifiers)},
            )
        if qualifier == BUYER_QUALIFIER:
            buyer_count += 1
        elif qualifier == SUPPLIER_QUALIFIER:
            supplier_count += 1

    if buyer_count == 0:
        raise MissingRoleError(
            f"At least one buyer ({BUYER_QUALIFIER}) party is required", "VALID_012", {"role": BUYER_QUALIFIER}
        )
    if supplier_count == 0:
        raise MissingRoleError(
            f"At least one supplier ({SUPPLIER_QUALIFIER}) party is required", "VALID_013", {"role": SUPPLIER_QUALIFIER}
        )


# --- Sanitizing & Model Construction ---
def sanitize_input(data: Any) -> Any:
    """Returns a copy with control characters stripped from every string, at any depth."""
    if isinstance(data, str):
        return CONTROL_CHAR_REGEX.sub('', data)
    if isinstance(data, Mapping):
        return {key: sanitize_input(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [sanitize_input(value) for value in data]
    return data


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def _decimal_text(value: Any) -> str:
    return format(decimal_engine.parse(value), 'f')


def build_order(data: Mapping) -> Order:
    parties: List[OrderParty] = [
        OrderParty(
            qualifier=str(party["qualifier"]),
            id=str(party["id"]),
            name=_optional_text(party.get("name")),
            address=_optional_text(party.get("address")),
            contact=_optional_text(party.get("contact")),
            contact_type=_optional_text(party.get("contact_type")),
        )
        for party in data["parties"]
    ]
    items: List[OrderItem] = [
        OrderItem(
            product_code=str(item["product_code"]),
            quantity=_decimal_text(item["quantity"]),
            price=_decimal_text(item["price"]),
            description=_optional_text(item.get("description")),
            unit=_optional_text(item.get("unit")) or "EA",
        )
        for item in data["items"]
    ]
    optional = {field: _optional_text(data.get(field)) for field in OPTIONAL_TEXT_FIELDS}
    tax_rate = _decimal_text(data["tax_rate"]) if _present(data, "tax_rate") else None
    return Order(
        message_ref=str(data["message_ref"]),
        order_number=str(data["order_number"]),
        order_date=str(data["order_date"]),
        parties=tuple(parties),
        items=tuple(items),
        tax_rate=tax_rate,
        **optional,
    )


def validate_order_data(data: Any, config: EdifactConfig) -> Order:
    """
    Validates raw order input and builds the immutable Order model.
    Phases run in a fixed order: structural -> semantic -> sanitize -> build.
    """
    order_number = data.get("order_number", "Unknown") if isinstance(data, Mapping) else "Unknown"
    try:
        validate_with_schema(data)
        validate_semantics(data, config)
    except EdifactError as e:
        logger.error(f"Validation failed for order {order_number}: {e.code} - {e.message}")
        if e.details:
            logger.error(f"Details: {e.details}")
        raise

    order = build_order(sanitize_input(data))
    logger.debug(f"Order {order.order_number} validated: {len(order.parties)} parties, {len(order.items)} items")
    return order
