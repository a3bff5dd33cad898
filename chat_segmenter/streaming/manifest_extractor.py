"""
Manifest Extractor: Recognizes a leading dependency object in a stream.

App-generation prompts ask the model to open its answer with a JSON object
such as ``{"dependencies": {"left-pad": "1.0.0"}}`` before any prose or
code. The extractor decides, chunk by chunk, whether such an object is
there, using a balanced-brace scan so it can tell "not complete yet" from
"complete but malformed".

Key Features:
- Incremental brace counting that respects string literals and escapes
- Optional caller-seeded prefix (assistant pre-fill)
- Size bound that abandons pathological input
- Never raises on bad data; degrades to an empty manifest
"""

import json
import logging
from typing import Dict, Literal, Optional

from pydantic import ValidationError

from ..blocks.segment_schema import DependencyManifest
from ..config import ParserConfig
from ..errors import ManifestMalformedError


logger = logging.getLogger(__name__)


ManifestOutcome = Literal["pending", "resolved", "absent", "malformed", "abandoned"]


def parse_manifest_object(text: str, manifest_key: Optional[str] = None) -> Dict[str, str]:
    """
    Parse a balanced manifest object into a name -> version mapping.

    Args:
        text: Text of one balanced JSON object
        manifest_key: If the object is exactly {manifest_key: {...}},
            the inner object is the manifest

    Returns:
        Validated dependency mapping

    Raises:
        ManifestMalformedError: If the text is not JSON or not a string mapping

    Example:
        >>> parse_manifest_object('{"dependencies": {"react": "^18.2.0"}}', "dependencies")
        {'react': '^18.2.0'}
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestMalformedError(f"Manifest is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise ManifestMalformedError(f"Manifest must be an object, got {type(data).__name__}")

    if manifest_key is not None and list(data) == [manifest_key] and isinstance(data[manifest_key], dict):
        data = data[manifest_key]

    try:
        return DependencyManifest.model_validate(data).root
    except ValidationError as e:
        raise ManifestMalformedError(
            f"Manifest must map package names to version strings ({e.error_count()} errors)"
        ) from e


class ManifestExtractor:
    """
    Decides whether a response opens with a dependency manifest.

    Call ``feed`` with the whole buffer after each chunk until ``resolved``
    is True. Afterwards ``content_start`` is the buffer offset where
    ordinary content begins.

    Example:
        >>> extractor = ManifestExtractor(ParserConfig())
        >>> extractor.feed('{"left-pad": "1.')
        False
        >>> extractor.feed('{"left-pad": "1.0.0"}\\nHi')
        True
        >>> extractor.manifest, extractor.content_start
        ({'left-pad': '1.0.0'}, 21)
    """

    def __init__(self, config: ParserConfig):
        self.prefix = config.manifest_prefix
        self.manifest_key = config.manifest_key
        self.max_chars = config.manifest_max_chars
        self.reset()

    def reset(self) -> None:
        self.resolved = False
        self.outcome: ManifestOutcome = "pending"
        self.manifest: Dict[str, str] = {}
        self.content_start = 0
        # Scan state over prefix + buffer
        self._scanned = 0
        self._object_start: Optional[int] = None
        self._depth = 0
        self._in_string = False
        self._escape = False

    def feed(self, buffer: str, final: bool = False) -> bool:
        """
        Continue the balanced-brace scan over the grown buffer.

        Args:
            buffer: Full accumulated response text
            final: End of stream; give up if still unbalanced

        Returns:
            True if the manifest resolved during this call
        """
        if self.resolved:
            return False

        text = self.prefix + buffer
        limit = min(len(text), self.max_chars)
        i = self._scanned

        if self._object_start is None:
            while i < limit and text[i].isspace():
                i += 1
            if i < limit:
                if text[i] != "{":
                    return self._conclude("absent")
                self._object_start = i

        while self._object_start is not None and i < limit:
            ch = text[i]
            if self._in_string:
                if self._escape:
                    self._escape = False
                elif ch == "\\":
                    self._escape = True
                elif ch == '"':
                    self._in_string = False
            elif ch == '"':
                self._in_string = True
            elif ch == "{":
                self._depth += 1
            elif ch == "}":
                self._depth -= 1
                if self._depth == 0:
                    return self._complete(text[self._object_start:i + 1], i + 1)
            i += 1
        self._scanned = i

        if len(text) >= self.max_chars:
            logger.warning(
                "Abandoning manifest: no balanced object within %d chars", self.max_chars
            )
            return self._conclude("abandoned")
        if final:
            if self._object_start is None:
                return self._conclude("absent")
            logger.debug("Stream ended before manifest balanced (%d chars scanned)", i)
            return self._conclude("abandoned")
        return False

    def skip(self) -> bool:
        """Resolve to an empty manifest without scanning."""
        if self.resolved:
            return False
        return self._conclude("absent")

    def _complete(self, object_text: str, end: int) -> bool:
        try:
            manifest = parse_manifest_object(object_text, self.manifest_key)
        except ManifestMalformedError as e:
            logger.warning("Ignoring malformed manifest (%d chars): %s", len(object_text), e)
            return self._conclude("malformed")

        self.manifest = manifest
        self.content_start = max(0, end - len(self.prefix))
        logger.debug("Resolved manifest with %d dependencies", len(manifest))
        return self._conclude("resolved")

    def _conclude(self, outcome: ManifestOutcome) -> bool:
        self.outcome = outcome
        self.resolved = True
        if outcome != "resolved":
            self.manifest = {}
            self.content_start = 0
        return True
