"""
Segment Schema: Pydantic models for segmented model responses.

This module provides the data model that the incremental parser builds while
a response streams in, the persisted envelope handed to storage, and the
typed notification events raised toward renderers.

Key Features:
- Ordered prose/code segments with a no-adjacent-same-kind invariant
- Append-only current segment, immutable history
- Dependency manifest validation (name -> version strings)
- Discriminated notification events
"""

from typing import List, Dict, Any, Optional, Literal, Union, Annotated, Iterator
from pydantic import BaseModel, Field, RootModel, model_validator


# =============================================================================
# Segment Kinds
# =============================================================================

SegmentKind = Literal["prose", "code"]

PROSE: SegmentKind = "prose"
CODE: SegmentKind = "code"

SEGMENT_KINDS: List[str] = [PROSE, CODE]


# =============================================================================
# Segment
# =============================================================================

class Segment(BaseModel):
    """A contiguous run of classified content of one kind."""
    kind: SegmentKind = Field(..., description="prose or code")
    content: str = Field("", description="Segment text, fence lines excluded")


class DependencyManifest(RootModel[Dict[str, str]]):
    """
    Validates a dependency mapping of package name to version specifier.

    Example:
        >>> DependencyManifest.model_validate({"left-pad": "1.0.0"}).root
        {'left-pad': '1.0.0'}
    """
    root: Dict[str, str] = Field(default_factory=dict)


class SegmentSequence:
    """
    Ordered, extend-only sequence of segments.

    Only the last segment ever grows. Adjacent runs of the same kind are
    merged as they are appended, so no two neighbours share a kind.

    Example:
        >>> seq = SegmentSequence()
        >>> seq.open_or_extend("prose", "Hello ")
        True
        >>> seq.open_or_extend("prose", "world")
        True
        >>> seq.open_or_extend("code", "")
        False
        >>> [(s.kind, s.content) for s in seq]
        [('prose', 'Hello world')]
    """

    def __init__(self):
        self._segments: List[Segment] = []

    def open_or_extend(self, kind: SegmentKind, text: str) -> bool:
        """
        Append text to the current segment, or open a new one.

        Args:
            kind: Kind of the incoming text
            text: Text to append

        Returns:
            True if the sequence changed, False for an empty-text no-op
        """
        if not text:
            return False
        if self._segments and self._segments[-1].kind == kind:
            self._segments[-1].content += text
        else:
            self._segments.append(Segment(kind=kind, content=text))
        return True

    def to_plain_text(self) -> str:
        """Concatenate all segment contents in order."""
        return "".join(segment.content for segment in self._segments)

    @property
    def last(self) -> Optional[Segment]:
        return self._segments[-1] if self._segments else None

    def snapshot(self) -> List[Segment]:
        """Copies of the current segments, safe to hand to consumers."""
        return [segment.model_copy() for segment in self._segments]

    def clear(self) -> None:
        self._segments = []

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> Segment:
        return self._segments[index]


# =============================================================================
# Persisted Envelope
# =============================================================================

class ParsedResponse(BaseModel):
    """
    The shape that crosses the core/storage boundary.

    Loading normalizes stored data: empty segments are dropped and adjacent
    segments of the same kind are merged.

    Example:
        >>> response = ParsedResponse(
        ...     segments=[{"kind": "prose", "content": "a"}, {"kind": "prose", "content": "b"}],
        ...     dependencies={"react": "^18.2.0"},
        ... )
        >>> response.model_dump()
        {'segments': [{'kind': 'prose', 'content': 'ab'}], 'dependencies': {'react': '^18.2.0'}}
    """
    segments: List[Segment] = Field(default_factory=list, description="Ordered segments")
    dependencies: Dict[str, str] = Field(default_factory=dict, description="Package -> version")

    @model_validator(mode='after')
    def merge_adjacent(self) -> 'ParsedResponse':
        """Enforce the no-empty, no-adjacent-same-kind invariant."""
        sequence = SegmentSequence()
        for segment in self.segments:
            sequence.open_or_extend(segment.kind, segment.content)
        self.segments = list(sequence)
        return self


# =============================================================================
# Notification Events
# =============================================================================

class ProseDeltaEvent(BaseModel):
    """Prose text appended to the current (or a newly opened) prose segment."""
    event: Literal["prose_delta"] = "prose_delta"
    text: str = Field(..., description="Incremental prose text")


class CodeDeltaEvent(BaseModel):
    """Code text appended to the current (or a newly opened) code segment."""
    event: Literal["code_delta"] = "code_delta"
    text: str = Field(..., description="Incremental code text")


class ManifestResolvedEvent(BaseModel):
    """The dependency mapping is final (possibly empty)."""
    event: Literal["manifest_resolved"] = "manifest_resolved"
    manifest: Dict[str, str] = Field(default_factory=dict)


class CompleteEvent(BaseModel):
    """Terminal snapshot, raised once per response."""
    event: Literal["complete"] = "complete"
    segments: List[Segment] = Field(default_factory=list)
    manifest: Dict[str, str] = Field(default_factory=dict)

    def to_response(self) -> ParsedResponse:
        return ParsedResponse(segments=self.segments, dependencies=self.manifest)


# Union type for all parser notifications
ParserEvent = Annotated[
    Union[ProseDeltaEvent, CodeDeltaEvent, ManifestResolvedEvent, CompleteEvent],
    Field(discriminator="event")
]

EVENT_NAMES: List[str] = ["prose_delta", "code_delta", "manifest_resolved", "complete"]


def delta_event(kind: SegmentKind, text: str) -> Union[ProseDeltaEvent, CodeDeltaEvent]:
    """Build the delta event matching a segment kind."""
    if kind == CODE:
        return CodeDeltaEvent(text=text)
    return ProseDeltaEvent(text=text)


def parse_stored_response(json_str: str) -> Optional[ParsedResponse]:
    """
    Parse a persisted ``{segments, dependencies}`` document.

    Args:
        json_str: JSON text as written by storage

    Returns:
        ParsedResponse if the document is valid, None otherwise
    """
    try:
        return ParsedResponse.model_validate_json(json_str)
    except ValueError:
        return None


def response_from_dict(data: Dict[str, Any]) -> Optional[ParsedResponse]:
    """Like parse_stored_response, for documents already decoded to a dict."""
    try:
        return ParsedResponse.model_validate(data)
    except ValueError:
        return None
