"""
Fence Scanner: Classifies a growing buffer into prose and code spans.

Markdown code fences arrive token by token, so a fence line may be split
across any number of chunks. The scanner works line by line over the
unclassified tail of the buffer and only commits text once it knows the
text cannot turn into a fence line.

Key Features:
- Fence lines are structural and never appear in segment content
- Partial fence candidates are held back until a newline (or end of stream)
- Lines that cannot become fences stream out immediately, mid-line
- Only bare fences close a code block; tagged fences open one
"""

import logging
import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from ..blocks.segment_schema import SegmentKind, PROSE, CODE


logger = logging.getLogger(__name__)


# =============================================================================
# Fence line patterns
# =============================================================================

# Up to three spaces of indent, then three or more backticks
FENCE_INDENT_MAX = 3
FENCE_MIN_BACKTICKS = 3
FENCE_MAX_BACKTICKS = 16

# Bounds keep held-back fence candidates short
FENCE_TAG_MAX = 32
FENCE_TRAILING_MAX = 16

# What may follow the backtick run on an opening line: ```jsx, ```c++ ...
OPEN_TAIL_PATTERN = re.compile(
    r"[A-Za-z0-9_+#.\-]{0,%d}[ \t\r]{0,%d}" % (FENCE_TAG_MAX, FENCE_TRAILING_MAX)
)
# Closing lines are bare
CLOSE_TAIL_PATTERN = re.compile(r"[ \t\r]{0,%d}" % FENCE_TRAILING_MAX)


Instruction = Tuple[SegmentKind, str]


class ScanResult(BaseModel):
    """Output of one scan over the unclassified tail."""
    instructions: List[Instruction] = Field(default_factory=list)
    in_code_block: bool = False
    position: int = Field(0, description="Buffer offset classified so far")


class FenceScanner:
    """
    Stateful fence detector over an append-only buffer.

    Example:
        >>> scanner = FenceScanner()
        >>> scanner.scan("Intro\\n``", 0).instructions
        [('prose', 'Intro\\n')]
        >>> result = scanner.scan("Intro\\n```jsx\\nlet a;\\n", 6)
        >>> result.instructions, result.in_code_block
        ([('code', 'let a;\\n')], True)
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.in_code_block = False
        self.language: Optional[str] = None
        # True once part of the current line was committed as content
        self._mid_line = False

    @property
    def kind(self) -> SegmentKind:
        return CODE if self.in_code_block else PROSE

    def scan(self, buffer: str, start: int, final: bool = False) -> ScanResult:
        """
        Classify ``buffer[start:]`` as far as currently possible.

        Args:
            buffer: Full accumulated text
            start: Offset up to which the buffer is already classified
            final: End of stream; commit any held-back tail

        Returns:
            ScanResult with instructions for the segment model and the new position
        """
        instructions: List[Instruction] = []
        pos = start
        size = len(buffer)

        while pos < size:
            newline = buffer.find("\n", pos)

            if self._mid_line:
                end = size if newline == -1 else newline + 1
                self._emit(instructions, buffer[pos:end])
                pos = end
                if newline != -1:
                    self._mid_line = False
                continue

            if newline == -1:
                tail = buffer[pos:]
                if final:
                    if self.is_fence_line(tail):
                        self._toggle(tail)
                    else:
                        self._emit(instructions, tail)
                elif self.could_be_fence_line(tail):
                    # Wait for the newline before deciding
                    break
                else:
                    self._emit(instructions, tail)
                    self._mid_line = True
                pos = size
                break

            line = buffer[pos:newline]
            if self.is_fence_line(line):
                self._toggle(line)
            else:
                self._emit(instructions, buffer[pos:newline + 1])
            pos = newline + 1

        return ScanResult(
            instructions=instructions,
            in_code_block=self.in_code_block,
            position=pos,
        )

    def is_fence_line(self, line: str) -> bool:
        """Whether a complete line (no newline) is a fence in the current state."""
        tail = self._split_backticks(line)
        if tail is None:
            return False
        ticks, rest = tail
        if ticks < FENCE_MIN_BACKTICKS:
            return False
        return self._tail_pattern().fullmatch(rest) is not None

    def could_be_fence_line(self, partial: str) -> bool:
        """Whether more characters could still turn ``partial`` into a fence line."""
        tail = self._split_backticks(partial)
        if tail is None:
            return False
        ticks, rest = tail
        if ticks < FENCE_MIN_BACKTICKS:
            return rest == ""
        return self._tail_pattern().fullmatch(rest) is not None

    def _split_backticks(self, line: str) -> Optional[Tuple[int, str]]:
        stripped = line.lstrip(" ")
        if len(line) - len(stripped) > FENCE_INDENT_MAX:
            return None
        rest = stripped.lstrip("`")
        ticks = len(stripped) - len(rest)
        if ticks > FENCE_MAX_BACKTICKS:
            return None
        return ticks, rest

    def _tail_pattern(self) -> "re.Pattern[str]":
        return CLOSE_TAIL_PATTERN if self.in_code_block else OPEN_TAIL_PATTERN

    def _toggle(self, line: str) -> None:
        if self.in_code_block:
            self.in_code_block = False
            logger.debug("Closed %s code fence", self.language or "untagged")
            self.language = None
        else:
            self.in_code_block = True
            self.language = line.strip().strip("`") or None
            logger.debug("Opened %s code fence", self.language or "untagged")

    def _emit(self, instructions: List[Instruction], text: str) -> None:
        if not text:
            return
        kind = self.kind
        if instructions and instructions[-1][0] == kind:
            instructions[-1] = (kind, instructions[-1][1] + text)
        else:
            instructions.append((kind, text))
