import pytest
from pydantic import ValidationError

from chat_segmenter.blocks.segment_schema import (
    DependencyManifest,
    ParsedResponse,
    Segment,
    SegmentSequence,
    parse_stored_response,
    response_from_dict,
)


def test_open_or_extend_merges_same_kind():
    seq = SegmentSequence()
    seq.open_or_extend("prose", "a")
    seq.open_or_extend("prose", "b")
    seq.open_or_extend("code", "c")
    seq.open_or_extend("prose", "d")

    assert [(s.kind, s.content) for s in seq] == [("prose", "ab"), ("code", "c"), ("prose", "d")]
    assert seq.to_plain_text() == "abcd"
    assert seq.last.content == "d"


def test_open_or_extend_ignores_empty_text():
    seq = SegmentSequence()

    assert seq.open_or_extend("code", "") is False
    assert len(seq) == 0
    assert seq.last is None


def test_snapshot_copies_segments():
    seq = SegmentSequence()
    seq.open_or_extend("prose", "a")
    copy = seq.snapshot()
    seq.open_or_extend("prose", "b")

    assert copy[0].content == "a"
    assert seq[0].content == "ab"


def test_segment_rejects_unknown_kind():
    with pytest.raises(ValidationError):
        Segment(kind="markdown", content="x")


def test_dependency_manifest_requires_string_versions():
    with pytest.raises(ValidationError):
        DependencyManifest.model_validate({"react": 18})


def test_parsed_response_normalizes_on_load():
    response = ParsedResponse(
        segments=[
            {"kind": "prose", "content": "a"},
            {"kind": "code", "content": ""},
            {"kind": "prose", "content": "b"},
            {"kind": "code", "content": "c"},
        ],
        dependencies={"react": "^18.2.0"},
    )

    assert response.model_dump() == {
        "segments": [{"kind": "prose", "content": "ab"}, {"kind": "code", "content": "c"}],
        "dependencies": {"react": "^18.2.0"},
    }


def test_parse_stored_response_round_trip():
    response = ParsedResponse(segments=[Segment(kind="code", content="x")], dependencies={})

    assert parse_stored_response(response.model_dump_json()) == response


@pytest.mark.parametrize("stored", ["not json", '{"segments": [{"kind": "video", "content": ""}]}'])
def test_parse_stored_response_invalid(stored):
    assert parse_stored_response(stored) is None


def test_response_from_dict_invalid_dependencies():
    assert response_from_dict({"segments": [], "dependencies": {"a": ["1"]}}) is None
