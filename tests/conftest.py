import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from chat_segmenter.streaming.incremental_parser import IncrementalSegmentParser  # noqa: E402


class EventRecorder:
    """Collects every notification a parser publishes, in order."""

    def __init__(self, parser):
        self.events = []
        for name in ("prose_delta", "code_delta", "manifest_resolved", "complete"):
            parser.hub.subscribe(name, self.events.append)

    @property
    def names(self):
        return [event.event for event in self.events]

    def texts(self, name):
        return [event.text for event in self.events if event.event == name]


@pytest.fixture
def parser():
    return IncrementalSegmentParser()


@pytest.fixture
def recorder(parser):
    return EventRecorder(parser)


def run_chunks(chunks, config=None):
    parser = IncrementalSegmentParser(config)
    for chunk in chunks:
        parser.write(chunk)
    parser.end()
    return parser


@pytest.fixture
def feed():
    """Run a fresh parser over the given chunks and return it finalized."""
    return run_chunks
