"""
Segmenter Errors: Exception taxonomy for the response segmenter.

Only programmer misuse is raised to callers. Data-shape problems in the
model output are absorbed by the parser and recorded as diagnostics.
"""

from typing import Literal


class SegmenterError(Exception):
    """Base class for all segmenter errors."""


class InvalidStateError(SegmenterError):
    """Raised when a parser is used after it has been finalized."""


class ManifestMalformedError(SegmenterError):
    """A balanced manifest object that is not a valid name -> version mapping.

    Raised internally by the manifest parser and always handled by the
    extractor. Never escapes ``write`` or ``end``.
    """


# Non-fatal irregularities recorded on the parser instead of raised
ParserDiagnostic = Literal[
    "manifest_malformed",
    "manifest_abandoned",
    "unterminated_fence",
]


class StreamTransportError(SegmenterError):
    """The LLM stream failed, timed out or sent nothing.

    Reported separately from the parsed content; the parser is still
    finalized with whatever arrived before the failure.
    """
