from __future__ import annotations

import pytest

from driveflow.exceptions import InvalidPayloadError
from driveflow.models.events import ObjectEvent


def test_parse_plain_payload() -> None:
    assert ObjectEvent.parse_payload({"bucket": "in", "name": "demo.mp4"}) == [ObjectEvent("in", "demo.mp4")]


def test_parse_cloudevent_envelope() -> None:
    events = ObjectEvent.parse_payload({"specversion": "1.0", "data": {"bucket": "in", "name": "a b.mp4"}})
    assert events == [ObjectEvent("in", "a b.mp4")]


def test_parse_s3_notification_decodes_keys() -> None:
    payload = {
        "EventName": "s3:ObjectCreated:Put",
        "Records": [
            {"s3": {"bucket": {"name": "in"}, "object": {"key": "my+video%281%29.mp4", "size": 10}}},
            {"s3": {"bucket": {"name": "out"}, "object": {"key": "my+video%281%29.mp4.json"}}},
            {"eventName": "no s3 block"},
        ],
    }
    assert ObjectEvent.parse_payload(payload) == [
        ObjectEvent("in", "my video(1).mp4"),
        ObjectEvent("out", "my video(1).mp4.json"),
    ]


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"bucket": "in"},
        {"name": "x.mp4"},
        {"Records": []},
        {"Records": [{"s3": {"bucket": {"name": ""}, "object": {"key": "x"}}}]},
    ],
)
def test_parse_rejects_unusable_payloads(payload) -> None:
    with pytest.raises(InvalidPayloadError):
        ObjectEvent.parse_payload(payload)


def test_retried_round_trips_through_dict() -> None:
    event = ObjectEvent("in", "demo.mp4").retried().retried()
    assert event.attempt == 2
    assert ObjectEvent.from_dict(event.to_dict()) == event
