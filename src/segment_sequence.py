import logging
from typing import List, Optional, Tuple

import segment_encoder
from edifact_config import EdifactConfig
from edifact_errors import MissingHeaderError
from segment_encoder import EncodedSegment, SegmentKind

logger = logging.getLogger(__name__)


class SegmentSequence:
    """
    Append-only accumulator for the segments of one interchange.
    Remembers where the first message header and the message trailer sit so the
    trailer count and the message body can be derived by position.
    One instance per assembly call; not shared between threads.
    """

    def __init__(self, config: EdifactConfig):
        self.config = config
        self._entries: List[EncodedSegment] = []
        self.header_index: Optional[int] = None
        self.trailer_index: Optional[int] = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[EncodedSegment, ...]:
        return tuple(self._entries)

    @property
    def segments(self) -> List[str]:
        return [entry.text for entry in self._entries]

    def append(self, kind: SegmentKind, segment: str) -> None:
        segment_encoder.validate_segment_length(segment, self.config)
        if kind == SegmentKind.MESSAGE_HEADER and self.header_index is None:
            self.header_index = len(self._entries)
        elif kind == SegmentKind.MESSAGE_TRAILER:
            self.trailer_index = len(self._entries)
        self._entries.append(EncodedSegment(kind=kind, text=segment))
        logger.debug(f"Appended {kind.tag} segment #{len(self._entries)}: {segment[:80]}")

    def extend(self, entries: List[EncodedSegment]) -> None:
        for entry in entries:
            self.append(entry.kind, entry.text)

    def prepend_envelope_open(self) -> None:
        if not self.config.include_una:
            return
        if self._entries and self._entries[0].kind == SegmentKind.SERVICE_STRING_ADVICE:
            return
        una = segment_encoder.service_string_advice(self.config)
        self._entries.insert(0, EncodedSegment(kind=SegmentKind.SERVICE_STRING_ADVICE, text=una))
        if self.header_index is not None:
            self.header_index += 1
        if self.trailer_index is not None:
            self.trailer_index += 1

    def compute_trailer_count(self, include_trailer: bool = True) -> int:
        """Number of segments from the message header to the end, plus the trailer about to be added."""
        if self.header_index is None:
            raise MissingHeaderError("UNH segment missing", "GEN_001", {"segment_count": len(self._entries)})
        count = len(self._entries) - self.header_index
        return count + 1 if include_trailer else count

    def message_entries(self) -> List[EncodedSegment]:
        """The UNH..UNT block of this sequence, located by recorded position."""
        if self.header_index is None:
            raise MissingHeaderError("UNH segment missing", "GEN_001", {"segment_count": len(self._entries)})
        end = self.trailer_index + 1 if self.trailer_index is not None else len(self._entries)
        return self._entries[self.header_index:end]

    def render(self, line_ending: Optional[str] = None) -> str:
        separator = self.config.line_ending if line_ending is None else line_ending
        return separator.join(entry.text for entry in self._entries)
