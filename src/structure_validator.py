import logging
from typing import List, Sequence

from pydantic import BaseModel

from edifact_errors import StructuralIntegrityError
from segment_encoder import EncodedSegment, SegmentKind

logger = logging.getLogger(__name__)

OPENING_KINDS = (SegmentKind.SERVICE_STRING_ADVICE, SegmentKind.INTERCHANGE_HEADER)
CLOSING_KINDS = (SegmentKind.MESSAGE_TRAILER, SegmentKind.INTERCHANGE_TRAILER)


class StructureFinding(BaseModel):
    code: str
    message: str
    segment_index: int = -1


def collect_structure_errors(entries: Sequence[EncodedSegment]) -> List[StructureFinding]:
    """
    Post-assembly envelope checks over the finished segment list.
    Works on segment kinds only; never inspects segment text.
    """
    errors: List[StructureFinding] = []

    def add_error(code: str, message: str, segment_index: int = -1):
        if not any(e.code == code for e in errors):
            errors.append(StructureFinding(code=code, message=message, segment_index=segment_index))

    if not entries:
        add_error("STRUCT_000", "Interchange contains no segments")
        return errors

    if entries[0].kind not in OPENING_KINDS:
        add_error("STRUCT_001", f"Interchange must open with UNA or UNB, found {entries[0].kind.tag}", 0)

    if entries[-1].kind not in CLOSING_KINDS:
        add_error("STRUCT_002", f"Interchange must close with UNT or UNZ, found {entries[-1].kind.tag}", len(entries) - 1)

    header_count = sum(1 for e in entries if e.kind == SegmentKind.MESSAGE_HEADER)
    trailer_count = sum(1 for e in entries if e.kind == SegmentKind.MESSAGE_TRAILER)
    if header_count != trailer_count:
        add_error("STRUCT_003", f"UNH/UNT imbalance: {header_count} headers, {trailer_count} trailers")

    return errors


def validate_structure(entries: Sequence[EncodedSegment]) -> bool:
    return not collect_structure_errors(entries)


def ensure_structure(entries: Sequence[EncodedSegment]) -> None:
    errors = collect_structure_errors(entries)
    if errors:
        for error in errors:
            logger.error(f"Structural check failed: {error.code} - {error.message}")
        raise StructuralIntegrityError(
            "Assembled interchange failed structural validation",
            "GEN_002",
            {"findings": [e.model_dump() for e in errors]},
        )
