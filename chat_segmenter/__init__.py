"""Incremental prose/code segmentation of streamed LLM responses."""

from .blocks import (
    Segment,
    SegmentSequence,
    ParsedResponse,
    ProseDeltaEvent,
    CodeDeltaEvent,
    ManifestResolvedEvent,
    CompleteEvent,
    parse_stored_response,
)
from .config import ParserConfig, SegmenterSettings
from .errors import SegmenterError, InvalidStateError, ManifestMalformedError, StreamTransportError
from .streaming import IncrementalSegmentParser, NotificationHub, StreamingHandler, feed_chunks
from .utils.segment_utils import (
    parse_content,
    segments_to_markdown,
    extract_code,
    count_code_lines,
    has_visible_content,
)

__all__ = [
    "Segment",
    "SegmentSequence",
    "ParsedResponse",
    "ProseDeltaEvent",
    "CodeDeltaEvent",
    "ManifestResolvedEvent",
    "CompleteEvent",
    "parse_stored_response",
    "ParserConfig",
    "SegmenterSettings",
    "SegmenterError",
    "InvalidStateError",
    "ManifestMalformedError",
    "StreamTransportError",
    "IncrementalSegmentParser",
    "NotificationHub",
    "StreamingHandler",
    "feed_chunks",
    "parse_content",
    "segments_to_markdown",
    "extract_code",
    "count_code_lines",
    "has_visible_content",
]
