import pytest

from edifact_errors import StructuralIntegrityError
from segment_encoder import EncodedSegment, SegmentKind
from structure_validator import collect_structure_errors, validate_structure, ensure_structure

pytestmark = pytest.mark.unit


def _entries(*kinds):
    return [EncodedSegment(kind=kind, text=f"{kind.tag}+x'") for kind in kinds]


def test_well_formed_interchange_passes():
    entries = _entries(
        SegmentKind.SERVICE_STRING_ADVICE, SegmentKind.INTERCHANGE_HEADER,
        SegmentKind.MESSAGE_HEADER, SegmentKind.DOCUMENT_REFERENCE, SegmentKind.MESSAGE_TRAILER,
        SegmentKind.INTERCHANGE_TRAILER,
    )
    assert validate_structure(entries) is True
    ensure_structure(entries)


def test_may_open_with_unb_and_close_with_unt():
    entries = _entries(SegmentKind.INTERCHANGE_HEADER, SegmentKind.MESSAGE_HEADER, SegmentKind.MESSAGE_TRAILER)
    assert validate_structure(entries) is True


def test_bad_opening_segment():
    entries = _entries(SegmentKind.MESSAGE_HEADER, SegmentKind.MESSAGE_TRAILER)
    errors = collect_structure_errors(entries)
    assert [e.code for e in errors] == ["STRUCT_001"]


def test_bad_closing_segment():
    entries = _entries(SegmentKind.INTERCHANGE_HEADER, SegmentKind.MESSAGE_HEADER, SegmentKind.MESSAGE_TRAILER, SegmentKind.FREE_TEXT)
    errors = collect_structure_errors(entries)
    assert [e.code for e in errors] == ["STRUCT_002"]
    assert errors[0].segment_index == 3


def test_header_without_trailer():
    entries = _entries(
        SegmentKind.INTERCHANGE_HEADER, SegmentKind.MESSAGE_HEADER, SegmentKind.MESSAGE_TRAILER,
        SegmentKind.MESSAGE_HEADER, SegmentKind.INTERCHANGE_TRAILER,
    )
    assert validate_structure(entries) is False
    with pytest.raises(StructuralIntegrityError) as exc:
        ensure_structure(entries)
    assert exc.value.code == "GEN_002"
    assert exc.value.details["findings"][0]["code"] == "STRUCT_003"


def test_free_text_that_looks_like_a_tag_is_not_an_envelope():
    entries = [
        EncodedSegment(kind=SegmentKind.INTERCHANGE_HEADER, text="UNB+x'"),
        EncodedSegment(kind=SegmentKind.MESSAGE_HEADER, text="UNH+1+ORDERS:D:96A:UN'"),
        EncodedSegment(kind=SegmentKind.FREE_TEXT, text="UNT+99+fake'"),
        EncodedSegment(kind=SegmentKind.MESSAGE_TRAILER, text="UNT+3+1'"),
    ]
    assert validate_structure(entries) is True


def test_empty_sequence_is_invalid():
    assert [e.code for e in collect_structure_errors([])] == ["STRUCT_000"]
