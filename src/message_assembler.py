import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, List, Optional

import decimal_engine
import segment_encoder as enc
from edifact_config import EdifactConfig
from order_models import Order
from order_validator import validate_order_data
from segment_encoder import SegmentKind
from segment_sequence import SegmentSequence
from structure_validator import ensure_structure

logger = logging.getLogger(__name__)

ORDER_DATE_QUALIFIER = "137"
DELIVERY_DATE_QUALIFIER = "2"
TAX_AMOUNT_QUALIFIER = "124"
TOTAL_AMOUNT_QUALIFIER = "79"
DELIVERY_LOCATION_QUALIFIER = "11"


def split_free_text(text: str, chunk_size: int) -> List[str]:
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


def _append_message_body(sequence: SegmentSequence, order: Order, config: EdifactConfig) -> None:
    """UNH through UNT for one order, in business order."""
    scale = config.scale
    rounding = config.decimal_rounding

    sequence.append(SegmentKind.MESSAGE_HEADER, enc.message_header(config, order.message_ref))
    sequence.append(SegmentKind.DOCUMENT_REFERENCE, enc.document_reference(config, order.order_number))
    sequence.append(SegmentKind.DATE_TIME, enc.date_time(config, ORDER_DATE_QUALIFIER, order.order_date))
    if order.delivery_date is not None:
        sequence.append(SegmentKind.DATE_TIME, enc.date_time(config, DELIVERY_DATE_QUALIFIER, order.delivery_date))
    if order.currency is not None:
        sequence.append(SegmentKind.CURRENCY, enc.currency(config, order.currency))

    for party in order.parties:
        sequence.append(SegmentKind.PARTY, enc.party(config, party.qualifier, party.id, party.name))
        if party.address is not None:
            sequence.append(SegmentKind.CONTACT, enc.contact(config, party.address, "AD"))
        if party.contact is not None:
            sequence.append(SegmentKind.CONTACT, enc.contact(config, party.contact, party.contact_type or "TE"))

    total_amount = decimal_engine.round_decimal("0", rounding)
    for line_number, item in enumerate(order.items, 1):
        line_total = decimal_engine.multiply(item.price, item.quantity, scale)
        sequence.append(SegmentKind.LINE_ITEM, enc.line_item(config, line_number, item.product_code))
        if item.description is not None:
            sequence.append(SegmentKind.ITEM_DESCRIPTION, enc.item_description(config, item.description))
        sequence.append(SegmentKind.QUANTITY, enc.quantity(config, item.quantity, item.unit))
        sequence.append(SegmentKind.PRICE, enc.price(config, item.price, item.unit))
        total_amount = decimal_engine.add(total_amount, line_total, scale)

    if order.tax_rate is not None:
        tax_amount = decimal_engine.divide(decimal_engine.multiply(total_amount, order.tax_rate), "100", scale)
        sequence.append(SegmentKind.TAX, enc.tax(config, order.tax_rate))
        sequence.append(SegmentKind.MONETARY_AMOUNT, enc.monetary_amount(config, TAX_AMOUNT_QUALIFIER, tax_amount))
        total_amount = decimal_engine.add(total_amount, tax_amount, scale)

    if order.delivery_location is not None:
        sequence.append(SegmentKind.LOCATION, enc.location(config, DELIVERY_LOCATION_QUALIFIER, order.delivery_location))
    if order.payment_terms is not None:
        sequence.append(SegmentKind.PAYMENT_TERMS, enc.payment_terms(config, order.payment_terms))
    if order.incoterms is not None:
        sequence.append(SegmentKind.DELIVERY_TERMS, enc.delivery_terms(config, order.incoterms))
    if order.special_instructions is not None:
        for sequence_number, chunk in enumerate(split_free_text(order.special_instructions, config.max_field_length), 1):
            sequence.append(SegmentKind.FREE_TEXT, enc.free_text(config, chunk, sequence_number))

    sequence.append(SegmentKind.MONETARY_AMOUNT, enc.monetary_amount(config, TOTAL_AMOUNT_QUALIFIER, total_amount))
    sequence.append(
        SegmentKind.MESSAGE_TRAILER,
        enc.message_trailer(config, sequence.compute_trailer_count(), order.message_ref),
    )


def build_order_sequence(
    order: Order,
    config: EdifactConfig,
    interchange_ref: Optional[str] = None,
    prepared_at: Optional[datetime] = None,
) -> SegmentSequence:
    """Assembles a complete single-message interchange for an already validated order."""
    interchange_ref = interchange_ref or order.message_ref
    sequence = SegmentSequence(config)
    sequence.prepend_envelope_open()
    sequence.append(SegmentKind.INTERCHANGE_HEADER, enc.interchange_header(config, interchange_ref, prepared_at))
    _append_message_body(sequence, order, config)
    sequence.append(SegmentKind.INTERCHANGE_TRAILER, enc.interchange_trailer(config, 1, interchange_ref))
    return sequence


def assemble_segments(
    order: Order,
    config: EdifactConfig,
    interchange_ref: Optional[str] = None,
    prepared_at: Optional[datetime] = None,
) -> List[str]:
    sequence = build_order_sequence(order, config, interchange_ref, prepared_at)
    ensure_structure(sequence.entries)
    return sequence.segments


def generate_edifact_orders(
    data: Any,
    config: Optional[EdifactConfig] = None,
    prepared_at: Optional[datetime] = None,
) -> str:
    """Validates raw order data and returns the rendered ORDERS interchange."""
    config = config or EdifactConfig()
    order_number = data.get("order_number", "Unknown") if isinstance(data, Mapping) else "Unknown"
    logger.info(f"Starting EDIFACT generation for order {order_number}")

    order = validate_order_data(data, config)
    sequence = build_order_sequence(order, config, prepared_at=prepared_at)
    ensure_structure(sequence.entries)

    logger.info(f"Generated {len(sequence)} segments for order {order.order_number}")
    return sequence.render()
