from __future__ import annotations

import json

from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError

INPUT_BUCKET = "audio-input"
TRANSCRIPT_BUCKET = "transcripts"


def test_plain_event_submits_transcription(client, seed, transcriber) -> None:
    seed(INPUT_BUCKET, "clip.mp4", b"video")

    resp = client.post("/events/storage", json={"bucket": INPUT_BUCKET, "name": "clip.mp4"})

    assert resp.status_code == 200
    assert resp.json() == {"results": [{"bucket": INPUT_BUCKET, "name": "clip.mp4", "outcome": "submitted"}]}
    assert transcriber.requests[0].input_uri.endswith("audio-input/clip.mp4")

    again = client.post("/events/storage", json={"bucket": INPUT_BUCKET, "name": "clip.mp4"})
    assert again.json()["results"][0]["outcome"] == "duplicate"


def test_s3_records_payload(client, seed, mailer) -> None:
    output = {
        "annotationResults": [
            {
                "speechTranscriptions": [
                    {"alternatives": [{"transcript": "too short", "words": []}]},
                ]
            }
        ]
    }
    seed(TRANSCRIPT_BUCKET, "my clip.mp4.json", json.dumps(output).encode("utf-8"))
    payload = {
        "Records": [
            {"s3": {"bucket": {"name": TRANSCRIPT_BUCKET}, "object": {"key": "my+clip.mp4.json"}}},
            {"s3": {"bucket": {"name": "unrelated"}, "object": {"key": "x.mp4"}}},
        ]
    }

    resp = client.post("/events/storage", json=payload)

    assert resp.status_code == 200
    assert [r["outcome"] for r in resp.json()["results"]] == ["notified_insufficient", "ignored"]
    assert mailer.sent[0].subject == "No Usable Speech Detected: my clip.mp4"


def test_invalid_payload_is_a_bad_request(client) -> None:
    assert client.post("/events/storage", json=["not", "an", "object"]).status_code == 400
    assert client.post("/events/storage", json={"bucket": INPUT_BUCKET}).status_code == 400


def test_stage_failure_asks_for_redelivery(client, seed, transcriber) -> None:
    seed(INPUT_BUCKET, "clip.mp4", b"video")
    transcriber.error = ProviderError(
        "video_intelligence", "HTTP 503", error_code=ErrorCode.TRANSCRIPTION_SUBMIT_FAILED
    )

    resp = client.post("/events/storage", json={"bucket": INPUT_BUCKET, "name": "clip.mp4"})

    assert resp.status_code == 500
    assert "clip.mp4" in resp.json()["detail"]


def test_health(client) -> None:
    data = client.get("/health").json()
    assert data["status"] == "ok"
    assert data["storage_backend"] == "local"
    assert data["drive_folder_configured"] is False
