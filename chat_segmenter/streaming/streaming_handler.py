"""
Streaming Handler: Feeds Server-Sent Events (SSE) from an LLM API into a parser.

This module reads OpenAI/OpenRouter-style streaming chat completions with
httpx and hands the text deltas, in order, to an IncrementalSegmentParser.

Key Features:
- SSE format parsing (data lines, comments, [DONE])
- Timeout management (first chunk, between chunks, total duration)
- Transport errors kept out of parsed content (raised or passed to on_error)
- Parser always finalized, including on cancellation
"""

import asyncio
import json
import logging
import time
from typing import AsyncIterable, AsyncIterator, Callable, Optional, Tuple

import httpx

from ..blocks.segment_schema import ParsedResponse
from ..errors import StreamTransportError
from .incremental_parser import IncrementalSegmentParser


logger = logging.getLogger(__name__)


SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


def parse_sse_line(line: str) -> Tuple[str, bool]:
    """
    Extract the content delta from one SSE line.

    Blank lines, comments (``: OPENROUTER PROCESSING``) and undecodable data
    lines yield no content.

    Args:
        line: One line of the event stream, without its newline

    Returns:
        (content, done) where done is True on [DONE] or a finish_reason

    Example:
        >>> parse_sse_line('data: {"choices": [{"delta": {"content": "Hi"}}]}')
        ('Hi', False)
        >>> parse_sse_line('data: [DONE]')
        ('', True)
    """
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return "", False

    data_str = line[len(SSE_DATA_PREFIX):].strip()
    if data_str == SSE_DONE:
        return "", True

    try:
        data = json.loads(data_str)
    except json.JSONDecodeError:
        logger.debug("Skipping undecodable SSE data line (%d chars)", len(data_str))
        return "", False

    choices = data.get("choices") if isinstance(data, dict) else None
    if not choices or not isinstance(choices[0], dict):
        return "", False

    delta = choices[0].get("delta") or {}
    content = delta.get("content") or ""
    return content, bool(choices[0].get("finish_reason"))


async def feed_chunks(
    chunks: AsyncIterable[str],
    parser: IncrementalSegmentParser,
) -> ParsedResponse:
    """
    Write every chunk to the parser in order, then finalize it.

    ``end()`` runs even when the consuming task is cancelled, so the parser
    always holds a complete snapshot of what arrived before the abort.

    Args:
        chunks: Text chunks in delivery order
        parser: A fresh or reset parser owned by this response

    Returns:
        The final segments and dependencies
    """
    try:
        async for chunk in chunks:
            parser.write(chunk)
    finally:
        parser.end()
    return parser.result()


class StreamingHandler:
    """
    Handles streaming responses from the LLM service (SSE format).

    Example:
        >>> handler = StreamingHandler(
        ...     stream_timeout=30.0,
        ...     chunk_timeout=5.0,
        ...     max_duration=120.0
        ... )
        >>> parsed = await handler.feed_parser(response, IncrementalSegmentParser())
        >>> parsed.dependencies
        {'react': '^18.2.0'}
    """

    def __init__(
        self,
        stream_timeout: float = 30.0,
        chunk_timeout: float = 5.0,
        max_duration: float = 120.0
    ):
        """
        Initialize streaming handler.

        Args:
            stream_timeout: Timeout for first chunk in seconds
            chunk_timeout: Timeout between chunks in seconds
            max_duration: Maximum total stream duration in seconds
        """
        self.stream_timeout = stream_timeout
        self.chunk_timeout = chunk_timeout
        self.max_duration = max_duration

    async def feed_parser(
        self,
        response: httpx.Response,
        parser: IncrementalSegmentParser,
        on_error: Optional[Callable[[StreamTransportError], None]] = None
    ) -> ParsedResponse:
        """
        Stream ``response`` into ``parser`` and return the final result.

        Transport failures never reach ``parser.write``. The parser is
        finalized with the content received so far, then the error is handed
        to ``on_error`` (and the partial result returned) or raised.

        Raises:
            StreamTransportError: On HTTP errors, timeouts or an empty stream
                when no ``on_error`` callback is given
        """
        try:
            return await feed_chunks(self.iter_content(response), parser)
        except StreamTransportError as e:
            if on_error is None:
                raise
            on_error(e)
            return parser.result()

    async def process_stream(
        self,
        response: httpx.Response
    ) -> AsyncIterator[str]:
        """
        Process streaming response from the LLM service (SSE format).

        For plain-text consumers; use ``feed_parser`` to build segments.

        Args:
            response: httpx.Response opened with stream=True

        Yields:
            Content deltas as they arrive; a single "Error: ..." chunk on failure
        """
        try:
            async for content in self.iter_content(response):
                yield content
        except StreamTransportError as e:
            yield f"Error: {e}"

    async def iter_content(
        self,
        response: httpx.Response
    ) -> AsyncIterator[str]:
        """
        Yield content deltas from an SSE response.

        Raises:
            StreamTransportError: On HTTP error status, timeout, transport
                failure, or a stream that carried no content
        """
        if response.status_code >= 400:
            logger.warning("LLM stream returned HTTP %d", response.status_code)
            raise StreamTransportError(f"HTTP error! Status: {response.status_code}")

        stream_start_time = time.time()
        buffer = ""
        received_content = False

        try:
            async for raw in self._stream_with_timeout(response, stream_start_time):
                buffer += raw
                # SSE events are newline-delimited; keep the partial last line
                while "\n" in buffer:
                    line, buffer = buffer.split("\n", 1)
                    content, done = parse_sse_line(line)
                    if content:
                        received_content = True
                        yield content
                    if done:
                        return
        except TimeoutError as e:
            logger.warning("LLM stream timed out after %.1fs: %s", time.time() - stream_start_time, e)
            raise StreamTransportError(str(e)) from e
        except httpx.HTTPError as e:
            logger.exception("LLM stream failed")
            raise StreamTransportError(f"Error generating response: {e}") from e

        # Trailing line without newline
        content, _ = parse_sse_line(buffer)
        if content:
            received_content = True
            yield content

        if not received_content:
            raise StreamTransportError(
                "The LLM service did not send any response data. "
                "The service may be overloaded or unresponsive. Please try again."
            )

    async def _stream_with_timeout(
        self,
        response: httpx.Response,
        stream_start_time: float
    ) -> AsyncIterator[str]:
        """
        Stream raw text with timeout protection.

        Raises:
            TimeoutError: If the first chunk, a gap between chunks, or the
                whole stream takes too long
        """
        chunk_iter = response.aiter_text()
        received_first_chunk = False

        while True:
            elapsed = time.time() - stream_start_time
            if elapsed > self.max_duration:
                raise TimeoutError(
                    f"Stream exceeded maximum duration of {self.max_duration}s. "
                    f"Total elapsed: {elapsed:.1f}s"
                )

            timeout = self.chunk_timeout if received_first_chunk else self.stream_timeout
            try:
                chunk = await asyncio.wait_for(chunk_iter.__anext__(), timeout=timeout)
            except StopAsyncIteration:
                return
            except asyncio.TimeoutError:
                elapsed = time.time() - stream_start_time
                if not received_first_chunk:
                    raise TimeoutError(
                        f"The request to the LLM service timed out after {elapsed:.1f} seconds. "
                        f"Please try again."
                    )
                raise TimeoutError(
                    f"No chunk received for {self.chunk_timeout}s. "
                    f"The LLM service may have stopped responding. "
                    f"Total elapsed: {elapsed:.1f}s"
                )

            received_first_chunk = True
            yield chunk
