"""Incremental segment parsing and stream handling."""

from .incremental_parser import IncrementalSegmentParser
from .fence_scanner import FenceScanner, ScanResult
from .manifest_extractor import ManifestExtractor, parse_manifest_object
from .notifications import NotificationHub
from .streaming_handler import StreamingHandler, feed_chunks, parse_sse_line

__all__ = [
    "IncrementalSegmentParser",
    "FenceScanner",
    "ScanResult",
    "ManifestExtractor",
    "parse_manifest_object",
    "NotificationHub",
    "StreamingHandler",
    "feed_chunks",
    "parse_sse_line",
]
