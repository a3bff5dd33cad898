"""Pydantic segment models for streamed chat responses."""

from .segment_schema import (
    Segment,
    SegmentKind,
    SegmentSequence,
    DependencyManifest,
    ParsedResponse,
    ProseDeltaEvent,
    CodeDeltaEvent,
    ManifestResolvedEvent,
    CompleteEvent,
    ParserEvent,
    PROSE,
    CODE,
    parse_stored_response,
    response_from_dict,
)

__all__ = [
    "Segment",
    "SegmentKind",
    "SegmentSequence",
    "DependencyManifest",
    "ParsedResponse",
    "ProseDeltaEvent",
    "CodeDeltaEvent",
    "ManifestResolvedEvent",
    "CompleteEvent",
    "ParserEvent",
    "PROSE",
    "CODE",
    "parse_stored_response",
    "response_from_dict",
]
