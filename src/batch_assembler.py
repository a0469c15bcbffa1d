import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional, Sequence

import segment_encoder as enc
from edifact_config import EdifactConfig
from edifact_errors import EdifactError, BatchMemberError, SchemaError
from message_assembler import build_order_sequence
from order_models import Order
from order_validator import validate_order_data
from segment_encoder import SegmentKind
from segment_sequence import SegmentSequence
from structure_validator import ensure_structure

logger = logging.getLogger(__name__)


def generate_batch_ref() -> str:
    return uuid.uuid4().hex[:14].upper()


def build_batch_sequence(
    orders: Sequence[Any],
    config: EdifactConfig,
    batch_ref: Optional[str] = None,
    prepared_at: Optional[datetime] = None,
) -> SegmentSequence:
    """
    Wraps every order's UNH..UNT block in one shared UNA/UNB ... UNZ envelope.
    All orders are validated before anything is assembled; any failure aborts the batch.
    """
    if not orders:
        raise SchemaError("At least one order is required for a batch", "SCHEMA_008", {"orders_count": 0})

    validated: List[Order] = []
    for index, data in enumerate(orders):
        try:
            validated.append(validate_order_data(data, config))
        except EdifactError as e:
            logger.error(f"Batch aborted: order {index} failed validation with {e.code}")
            raise BatchMemberError(index, e) from e

    batch_ref = batch_ref or generate_batch_ref()
    sequence = SegmentSequence(config)
    sequence.prepend_envelope_open()
    sequence.append(SegmentKind.INTERCHANGE_HEADER, enc.interchange_header(config, batch_ref, prepared_at))

    for index, order in enumerate(validated):
        try:
            member = build_order_sequence(order, config, interchange_ref=batch_ref, prepared_at=prepared_at)
            sequence.extend(member.message_entries())
        except EdifactError as e:
            logger.error(f"Batch aborted: order {index} failed encoding with {e.code}")
            raise BatchMemberError(index, e) from e

    sequence.append(SegmentKind.INTERCHANGE_TRAILER, enc.interchange_trailer(config, len(validated), batch_ref))
    ensure_structure(sequence.entries)
    logger.info(f"Batch {batch_ref} assembled: {len(validated)} messages, {len(sequence)} segments")
    return sequence


def assemble_batch(
    orders: Sequence[Any],
    config: Optional[EdifactConfig] = None,
    batch_ref: Optional[str] = None,
    prepared_at: Optional[datetime] = None,
) -> str:
    config = config or EdifactConfig()
    return build_batch_sequence(orders, config, batch_ref, prepared_at).render()
