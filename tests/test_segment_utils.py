from chat_segmenter.blocks.segment_schema import Segment
from chat_segmenter.config import ParserConfig
from chat_segmenter.utils.segment_utils import (
    count_code_lines,
    extract_code,
    has_visible_content,
    parse_content,
    segments_to_markdown,
)


STORED = (
    '{"dependencies": {}}\n'
    "I'll create an \"Exoplanet Tracker\" app.\n"
    "```jsx\n"
    "import React from 'react';\n"
    "export default function App() {\n"
    "  return <h1>Exoplanets</h1>;\n"
    "}\n"
    "```\n"
    "This app features:\n- a list\n"
)


def test_parse_content_matches_streamed_parse(feed):
    streamed = feed([STORED[i:i + 3] for i in range(0, len(STORED), 3)]).result()

    assert parse_content(STORED) == streamed


def test_parse_content_splits_prose_and_code():
    parsed = parse_content(STORED)

    assert parsed.dependencies == {}
    assert [s.kind for s in parsed.segments] == ["prose", "code", "prose"]
    assert "Exoplanet Tracker" in parsed.segments[0].content
    assert parsed.segments[1].content.startswith("import React")
    assert parsed.segments[2].content == "This app features:\n- a list\n"


def test_parse_content_without_manifest_handling():
    parsed = parse_content('{"dependencies": {}}\nHi', ParserConfig(manifest_enabled=False))

    assert parsed.segments[0].content == '{"dependencies": {}}\nHi'


def test_segments_to_markdown_refences_code():
    segments = [
        Segment(kind="prose", content="Intro:"),
        Segment(kind="code", content="x = 1"),
        Segment(kind="prose", content="\nBye"),
    ]

    assert segments_to_markdown(segments) == "Intro:\n```jsx\nx = 1\n```\n\nBye"
    assert segments_to_markdown(segments, language="py").count("```py\n") == 1


def test_helpers_accept_stored_dicts():
    stored = [
        {"kind": "prose", "content": "Here:\n"},
        {"kind": "code", "content": "a\nb\n"},
        {"kind": "prose", "content": "More\n"},
        {"kind": "code", "content": "c"},
    ]

    assert extract_code(stored) == "a\nb\n"
    assert count_code_lines(stored) == 3
    assert has_visible_content(stored) is True


def test_helpers_on_empty_or_blank_segments():
    blank = [Segment(kind="prose", content="  \n")]

    assert extract_code([]) == ""
    assert count_code_lines(blank) == 0
    assert has_visible_content(blank) is False
    assert has_visible_content([]) is False
