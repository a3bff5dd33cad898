"""
Incremental Segment Parser: Turns streamed model output into segments.

This module handles the challenge of rendering an LLM response while it is
still streaming: tokens arrive incrementally, code fences and the leading
dependency manifest may be split across any number of chunks, and the UI
needs a usable prose/code breakdown after every chunk.

Key Features:
- Chunk-invariant results (any chunking of a response parses the same)
- Leading dependency manifest extraction
- Held-back partial fence markers
- Typed delta/manifest/complete notifications
- Never raises on malformed model output
"""

import logging
from typing import List, Dict, Literal, Optional, Union

from ..blocks.segment_schema import (
    CompleteEvent,
    ManifestResolvedEvent,
    ParsedResponse,
    Segment,
    SegmentSequence,
    CodeDeltaEvent,
    ProseDeltaEvent,
    delta_event,
)
from ..config import ParserConfig
from ..errors import InvalidStateError, ParserDiagnostic
from .fence_scanner import FenceScanner
from .manifest_extractor import ManifestExtractor
from .notifications import NotificationHub


logger = logging.getLogger(__name__)


ParserState = Literal["empty", "manifest_pending", "classifying", "finalized"]

Event = Union[ProseDeltaEvent, CodeDeltaEvent, ManifestResolvedEvent, CompleteEvent]


class IncrementalSegmentParser:
    """
    Parses one in-flight response, chunk by chunk.

    Each response gets its own parser (or a ``reset()`` one); instances are
    never shared between concurrent responses. Calls must arrive in stream
    order: ``write`` zero or more times, then ``end`` once.

    Example:
        >>> parser = IncrementalSegmentParser()
        >>> [e.event for e in parser.write('{"dependencies": {"left-pad": "1.0.0"}}')]
        ['manifest_resolved']
        >>> [e.text for e in parser.write('\\nUse it:\\n``')]
        ['\\nUse it:\\n']
        >>> [e.text for e in parser.write('`js\\nleftPad(1)\\n```\\n')]
        ['leftPad(1)\\n']
        >>> final = parser.end()[-1]
        >>> [(s.kind, s.content) for s in final.segments], final.manifest
        ([('prose', '\\nUse it:\\n'), ('code', 'leftPad(1)\\n')], {'left-pad': '1.0.0'})
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        hub: Optional[NotificationHub] = None,
    ):
        self.config = config or ParserConfig()
        self.hub = hub or NotificationHub()
        self.segments = SegmentSequence()
        self._scanner = FenceScanner()
        self._extractor = ManifestExtractor(self.config)
        self.reset()

    def reset(self) -> None:
        """Return to the initial state for the next response. Raises no notifications."""
        self.raw_buffer = ""
        self.segments.clear()
        self._scanner.reset()
        self._extractor.reset()
        self._position = 0
        self.state: ParserState = "empty"
        self.diagnostics: List[ParserDiagnostic] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def finalized(self) -> bool:
        return self.state == "finalized"

    @property
    def in_code_block(self) -> bool:
        return self._scanner.in_code_block

    @property
    def manifest_resolved(self) -> bool:
        return self._extractor.resolved

    @property
    def manifest(self) -> Dict[str, str]:
        return dict(self._extractor.manifest)

    @property
    def classified_position(self) -> int:
        """Offset in ``raw_buffer`` up to which text has been classified."""
        return self._position

    @property
    def pending_text(self) -> str:
        """Text received but not yet classified (manifest candidate or partial fence)."""
        return self.raw_buffer[self._position:]

    def to_plain_text(self) -> str:
        return self.segments.to_plain_text()

    def snapshot(self) -> List[Segment]:
        return self.segments.snapshot()

    def result(self) -> ParsedResponse:
        """Current segments and manifest in the persisted shape."""
        return ParsedResponse(segments=self.snapshot(), dependencies=self.manifest)

    # -------------------------------------------------------------------------
    # Stream input
    # -------------------------------------------------------------------------

    def write(self, chunk: str) -> List[Event]:
        """
        Push a chunk of streamed text.

        Args:
            chunk: Raw text chunk from the model stream

        Returns:
            Events raised by this chunk, in order (also published to the hub)

        Raises:
            InvalidStateError: If called after end()
        """
        if self.finalized:
            raise InvalidStateError("write() called after end(); reset() the parser before reuse")
        if not chunk:
            return []

        self.raw_buffer += chunk
        events = self._advance(final=False)
        self._publish(events)
        return events

    def end(self) -> List[Event]:
        """
        Finalize the response.

        Commits any held-back text, resolves a pending manifest to empty and
        raises the terminal ``complete`` event. A second call does nothing.

        Returns:
            Events raised while finalizing, ending with the CompleteEvent
        """
        if self.finalized:
            return []

        events = self._advance(final=True)
        if self._scanner.in_code_block:
            self.diagnostics.append("unterminated_fence")
            logger.debug("Stream ended inside a code fence; closing code segment as-is")

        self._transition("finalized")
        events.append(CompleteEvent(segments=self.snapshot(), manifest=self.manifest))
        self._publish(events)
        return events

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _advance(self, final: bool) -> List[Event]:
        events: List[Event] = []

        if not self._extractor.resolved:
            if self.config.manifest_enabled:
                self._extractor.feed(self.raw_buffer, final=final)
            else:
                self._extractor.skip()

            if not self._extractor.resolved:
                self._transition("manifest_pending")
                return events

            outcome = self._extractor.outcome
            if outcome == "malformed":
                self.diagnostics.append("manifest_malformed")
            elif outcome == "abandoned":
                self.diagnostics.append("manifest_abandoned")
            self._position = self._extractor.content_start
            events.append(ManifestResolvedEvent(manifest=self.manifest))

        self._transition("classifying")
        scan = self._scanner.scan(self.raw_buffer, self._position, final=final)
        self._position = scan.position
        for kind, text in scan.instructions:
            if self.segments.open_or_extend(kind, text):
                events.append(delta_event(kind, text))
        return events

    def _transition(self, state: ParserState) -> None:
        if state != self.state:
            logger.debug("Parser %s -> %s (%d chars)", self.state, state, len(self.raw_buffer))
            self.state = state

    def _publish(self, events: List[Event]) -> None:
        for event in events:
            self.hub.publish(event)
