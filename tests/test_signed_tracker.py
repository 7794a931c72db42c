import hashlib
import hmac
import json

import pytest

from event_tracker import (
    BufferedEventTracker,
    InvalidIdentifierError,
    MissingArgumentError,
    SerializedWireFormat,
    SignedEventTracker,
    TransportRequest,
    hmac_sha256,
    static_context,
)
from event_tracker.wire import local_utc_offset

pytestmark = pytest.mark.unit


class FakeTimer:
    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.timers = []

    def schedule(self, delay, callback):
        timer = FakeTimer(callback)
        self.timers.append(timer)
        return timer


def fake_sign(secret, data):
    return f"{secret}:{len(data)}"


def build_tracker(post_data, sign=fake_sign, context_provider=None, **config):
    settings = {"appendClientContext": False, "bufferLength": 2, "bufferTimeout": 500}
    settings.update(config)
    return SignedEventTracker(
        "client-key",
        "s3cret",
        post_data,
        "https://events.example.com/collect",
        "ModTools",
        sign,
        settings,
        context_provider=context_provider,
        scheduler=FakeScheduler(),
        clock=lambda: 1700000000.25,
    )


def test_signed_batch_carries_mac_and_key():
    requests_seen = []
    tracker = build_tracker(requests_seen.append)
    tracker.track("t", "a", {})
    tracker.track("t", "b", {})
    assert len(requests_seen) == 1
    request = requests_seen[0]
    assert isinstance(request, TransportRequest)
    assert request.url == "https://events.example.com/collect"
    assert request.headers == {"Content-Type": "text/plain"}
    assert request.query == {"key": "client-key", "mac": fake_sign("s3cret", request.data)}


def test_hmac_sha256_signer_matches_stdlib():
    requests_seen = []
    tracker = build_tracker(requests_seen.append, sign=hmac_sha256, bufferLength=1)
    tracker.track("t", "a", {"foo": 1})
    request = requests_seen[0]
    expected = hmac.new(b"s3cret", request.data, hashlib.sha256).hexdigest()
    assert request.query["mac"] == expected


def test_serialized_batch_shape_and_order():
    requests_seen = []
    tracker = build_tracker(requests_seen.append)
    first = tracker.track("modTopic", "ban", {"foo": 1})
    tracker.track("modTopic", "unban", {"foo": 2})
    records = json.loads(requests_seen[0].data.decode("utf-8"))
    assert [r["event_type"] for r in records] == ["ban", "unban"]
    assert list(records[0]) == ["event_topic", "event_type", "event_ts", "uuid", "payload"]
    assert records[0]["event_ts"] == 1700000000250
    assert records[0]["uuid"] == first.uuid
    assert records[0]["payload"] == {
        "foo": 1,
        "app_name": "ModTools",
        "utc_offset": local_utc_offset(),
    }


def test_context_lands_in_payload():
    requests_seen = []
    tracker = build_tracker(
        requests_seen.append,
        context_provider=static_context(
            "Mozilla/5.0", "www.example.com", "https://www.example.com/r/all"
        ),
        appendClientContext=True,
        bufferLength=1,
    )
    payload = {"foo": 1, "domain": "caller.example"}
    tracker.track("t", "a", payload)
    record = json.loads(requests_seen[0].data)[0]
    assert record["payload"]["user_agent"] == "Mozilla/5.0"
    assert record["payload"]["base_url"] == "https://www.example.com/r/all"
    assert record["payload"]["domain"] == "caller.example"
    assert "user_agent" not in record
    # enrichment mutates the caller's mapping in place
    assert payload["app_name"] == "ModTools"


def test_done_is_handed_to_transport():
    requests_seen = []
    tracker = build_tracker(requests_seen.append)
    tracker.track("t", "a")

    def done():
        return None

    tracker.send(done)
    assert requests_seen[0].done is done


def test_app_name_must_be_alphanumeric():
    with pytest.raises(InvalidIdentifierError):
        SignedEventTracker(
            "client-key",
            "s3cret",
            lambda request: None,
            "https://events.example.com/collect",
            "mod-tools",
            fake_sign,
        )


@pytest.mark.parametrize("missing", range(6))
def test_missing_arguments_fail_fast(missing):
    args = [
        "client-key",
        "s3cret",
        lambda request: None,
        "https://events.example.com/collect",
        "ModTools",
        fake_sign,
    ]
    args[missing] = None
    with pytest.raises(MissingArgumentError):
        SignedEventTracker(*args)


def test_serialized_wire_without_authentication():
    requests_seen = []
    wire = SerializedWireFormat(
        post_data=requests_seen.append,
        url="https://events.example.com/open",
        app_name="ModTools",
        utc_offset=lambda: 2,
    )
    tracker = BufferedEventTracker(
        wire, {"appendClientContext": False, "bufferTimeout": 0}, scheduler=FakeScheduler()
    )
    tracker.track("t", "a", {})
    request = requests_seen[0]
    assert request.query == {}
    assert json.loads(request.data)[0]["payload"]["utc_offset"] == 2
