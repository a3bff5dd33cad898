"""
Segment Utilities: Helper functions for consumers of parsed responses.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from ..blocks.segment_schema import CODE, PROSE, ParsedResponse, Segment
from ..config import ParserConfig
from ..streaming.incremental_parser import IncrementalSegmentParser


SegmentLike = Union[Segment, Dict[str, Any]]


def _kind_and_content(segment: SegmentLike):
    if isinstance(segment, Segment):
        return segment.kind, segment.content
    return segment.get("kind", PROSE), segment.get("content", "")


def parse_content(text: str, config: Optional[ParserConfig] = None) -> ParsedResponse:
    """
    Parse a complete stored response in one go.

    Args:
        text: Full raw response text
        config: Parser configuration (defaults apply when omitted)

    Returns:
        The segments and dependencies, exactly as streaming would produce them
    """
    parser = IncrementalSegmentParser(config)
    parser.write(text)
    parser.end()
    return parser.result()


def segments_to_markdown(segments: Iterable[SegmentLike], language: str = "jsx") -> str:
    """
    Convert segments back to markdown for fallback rendering.

    Args:
        segments: Segment instances or their dict form
        language: Tag put on re-created code fences

    Returns:
        Markdown with code segments fenced
    """
    parts: List[str] = []
    for segment in segments:
        kind, content = _kind_and_content(segment)
        if kind == CODE:
            if parts and not parts[-1].endswith("\n"):
                parts.append("\n")
            parts.append(f"```{language}\n")
            parts.append(content)
            if not content.endswith("\n"):
                parts.append("\n")
            parts.append("```\n")
        else:
            parts.append(content)
    return "".join(parts)


def extract_code(segments: Iterable[SegmentLike]) -> str:
    """Content of the first code segment, or an empty string."""
    for segment in segments:
        kind, content = _kind_and_content(segment)
        if kind == CODE:
            return content
    return ""


def count_code_lines(segments: Iterable[SegmentLike]) -> int:
    """Total number of lines across all code segments."""
    total = 0
    for segment in segments:
        kind, content = _kind_and_content(segment)
        if kind == CODE and content:
            total += len(content.rstrip("\n").split("\n"))
    return total


def has_visible_content(segments: Iterable[SegmentLike]) -> bool:
    # Whitespace-only segments render as nothing
    return any(content.strip() for _, content in map(_kind_and_content, segments))
