import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from decoded_models import DecodedElement, DecodedItem, DecodedOrder, DecodedParty, DecodedSegment
from segment_encoder import SegmentKind

logger = logging.getLogger(__name__)

DEFAULT_DELIMITERS = (":", "+", "?", "'")
UNA_LENGTH = 9

ORDER_DATE_QUALIFIER = "137"
DELIVERY_DATE_QUALIFIER = "2"


def _split_escaped(text: str, separator: str, release: str) -> List[str]:
    """Splits on `separator` unless it is released; release pairs are kept for the next level."""
    parts: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == release and i + 1 < len(text):
            current.append(char)
            current.append(text[i + 1])
            i += 2
            continue
        if char == separator:
            parts.append(''.join(current))
            current = []
        else:
            current.append(char)
        i += 1
    parts.append(''.join(current))
    return parts


def _unescape(text: str, release: str) -> str:
    result: List[str] = []
    i = 0
    while i < len(text):
        if text[i] == release and i + 1 < len(text):
            result.append(text[i + 1])
            i += 2
        else:
            result.append(text[i])
            i += 1
    return ''.join(result)


class EdifactDecoder:
    """
    Best-effort, line-oriented reader for interchanges produced by this codec.
    Recovers a handful of header, party and line-item fields; it is a debugging aid,
    not a conformant EDIFACT parser. Unknown or malformed segments are skipped.
    """

    def __init__(self, edifact_string: str):
        delims = self._detect_delimiters(edifact_string)
        self.component_separator, self.element_separator, self.release_character, self.segment_terminator = delims
        self.all_segments: List[DecodedSegment] = self._segmentize(edifact_string)
        self._handlers: Dict[SegmentKind, Callable[[DecodedSegment, DecodedOrder], bool]] = {
            SegmentKind.MESSAGE_HEADER: self._decode_message_header,
            SegmentKind.DOCUMENT_REFERENCE: self._decode_document_reference,
            SegmentKind.DATE_TIME: self._decode_date_time,
            SegmentKind.CURRENCY: self._decode_currency,
            SegmentKind.PARTY: self._decode_party,
            SegmentKind.LINE_ITEM: self._decode_line_item,
        }
        logger.debug(f"Decoder initialized with {len(self.all_segments)} segments.")

    def _detect_delimiters(self, edifact_string: str) -> Tuple[str, str, str, str]:
        clean = edifact_string.lstrip()
        if clean.startswith(SegmentKind.SERVICE_STRING_ADVICE.tag) and len(clean) >= UNA_LENGTH:
            # UNA: component, element, decimal mark, release, reserved, terminator
            component, element, release, terminator = clean[3], clean[4], clean[6], clean[8]
            logger.debug(f"Delimiters detected from UNA: Component='{component}', Element='{element}', Release='{release}', Segment='{terminator}'")
            return component, element, release, terminator
        logger.debug("No UNA segment found. Using default delimiters (':', '+', '?', \"'\").")
        return DEFAULT_DELIMITERS

    def _segmentize(self, edifact_string: str) -> List[DecodedSegment]:
        content = edifact_string.strip()
        if content.startswith(SegmentKind.SERVICE_STRING_ADVICE.tag) and len(content) >= UNA_LENGTH:
            content = content[UNA_LENGTH:]

        segments: List[DecodedSegment] = []
        raw_segments = _split_escaped(content, self.segment_terminator, self.release_character)
        for i, seg_str in enumerate(raw_segments):
            clean_seg = seg_str.strip()
            if not clean_seg:
                continue
            parts = _split_escaped(clean_seg, self.element_separator, self.release_character)
            elements = [
                DecodedElement(
                    components=[
                        _unescape(c, self.release_character)
                        for c in _split_escaped(part, self.component_separator, self.release_character)
                    ],
                    position=idx + 1,
                )
                for idx, part in enumerate(parts[1:])
            ]
            segments.append(DecodedSegment(segment_id=parts[0], elements=elements, line_number=i + 1, raw_segment=clean_seg))
        return segments

    # --- Segment handlers: each returns False when the segment lacks the expected fields ---
    def _decode_message_header(self, segment: DecodedSegment, result: DecodedOrder) -> bool:
        message_ref = segment.get_value(1)
        if not message_ref:
            return False
        result.message_ref = message_ref
        result.message_type = segment.get_value(2)
        return True

    def _decode_document_reference(self, segment: DecodedSegment, result: DecodedOrder) -> bool:
        order_number = segment.get_value(2)
        if not order_number:
            return False
        result.order_number = order_number
        return True

    def _decode_date_time(self, segment: DecodedSegment, result: DecodedOrder) -> bool:
        qualifier, value = segment.get_value(1, 1), segment.get_value(1, 2)
        if not value:
            return False
        if qualifier == ORDER_DATE_QUALIFIER:
            result.order_date = value
        elif qualifier == DELIVERY_DATE_QUALIFIER:
            result.delivery_date = value
        return True

    def _decode_currency(self, segment: DecodedSegment, result: DecodedOrder) -> bool:
        value = segment.get_value(1, 2)
        if not value:
            return False
        result.currency = value
        return True

    def _decode_party(self, segment: DecodedSegment, result: DecodedOrder) -> bool:
        qualifier, party_id = segment.get_value(1), segment.get_value(2)
        if not qualifier or not party_id:
            return False
        result.parties.append(DecodedParty(qualifier=qualifier, id=party_id, name=segment.get_value(4) or None))
        return True

    def _decode_line_item(self, segment: DecodedSegment, result: DecodedOrder) -> bool:
        line_number, product_code = segment.get_value(1), segment.get_value(3)
        if not line_number or not product_code:
            return False
        result.items.append(DecodedItem(line_number=line_number, product_code=product_code))
        return True

    def decode(self) -> DecodedOrder:
        result = DecodedOrder()
        for segment in self.all_segments:
            try:
                kind = SegmentKind(segment.segment_id)
            except ValueError:
                logger.debug(f"Skipping unknown segment '{segment.segment_id}' (line {segment.line_number})")
                result.skipped_segments += 1
                continue
            handler = self._handlers.get(kind)
            if handler is None:
                continue
            if not handler(segment, result):
                logger.debug(f"Skipping malformed {kind.tag} segment (line {segment.line_number}): {segment.raw_segment[:80]}")
                result.skipped_segments += 1
        logger.info(f"Decoded order {result.order_number or 'Unknown'}: {len(result.parties)} parties, {len(result.items)} items")
        return result


def decode_orders(edifact_string: str) -> Dict[str, Any]:
    """Diagnostic reconstruction of known ORDERS fields as a plain mapping."""
    return EdifactDecoder(edifact_string).decode().model_dump(exclude_none=True)
