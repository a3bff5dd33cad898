import pytest

from chat_segmenter.blocks.segment_schema import (
    CodeDeltaEvent,
    CompleteEvent,
    ManifestResolvedEvent,
    ProseDeltaEvent,
    Segment,
)
from chat_segmenter.streaming.notifications import NotificationHub


def test_subscribe_rejects_unknown_event():
    with pytest.raises(ValueError):
        NotificationHub().subscribe("token", lambda event: None)


def test_events_reach_only_matching_subscribers():
    hub = NotificationHub()
    prose, code = [], []
    hub.on_prose_delta(prose.append)
    hub.on_code_delta(code.append)

    hub.publish(ProseDeltaEvent(text="Hi "))
    hub.publish(CodeDeltaEvent(text="x = 1"))
    hub.publish(ProseDeltaEvent(text="there"))

    assert prose == ["Hi ", "there"]
    assert code == ["x = 1"]


def test_payload_helpers_unwrap_manifest_and_complete():
    hub = NotificationHub()
    manifests, completions = [], []
    hub.on_manifest_resolved(manifests.append)
    hub.on_complete(lambda segments, manifest: completions.append((segments, manifest)))

    segments = [Segment(kind="prose", content="done")]
    hub.publish(ManifestResolvedEvent(manifest={"react": "^18.2.0"}))
    hub.publish(CompleteEvent(segments=segments, manifest={"react": "^18.2.0"}))

    assert manifests == [{"react": "^18.2.0"}]
    assert completions == [(segments, {"react": "^18.2.0"})]


def test_unsubscribe_handle_stops_delivery():
    hub = NotificationHub()
    seen = []
    unsubscribe = hub.subscribe("prose_delta", seen.append)

    hub.publish(ProseDeltaEvent(text="a"))
    unsubscribe()
    hub.publish(ProseDeltaEvent(text="b"))

    assert [event.text for event in seen] == ["a"]
    assert hub.has_subscribers("prose_delta") is False


def test_callback_may_unsubscribe_itself_during_publish():
    hub = NotificationHub()
    seen = []

    def once(event):
        seen.append(event.text)
        hub.unsubscribe("prose_delta", once)

    hub.subscribe("prose_delta", once)
    hub.subscribe("prose_delta", lambda event: seen.append("second:" + event.text))
    hub.publish(ProseDeltaEvent(text="x"))
    hub.publish(ProseDeltaEvent(text="y"))

    assert seen == ["x", "second:x", "second:y"]


def test_subscriber_errors_propagate_to_writer(parser):
    def broken(event):
        raise RuntimeError("renderer failed")

    parser.hub.subscribe("prose_delta", broken)
    with pytest.raises(RuntimeError):
        parser.write("Hello")
