"""
Service Tests
=============

End-to-end tests for the FastAPI service using TestClient.
"""

import json

import numpy as np
import pytest
from fastapi.testclient import TestClient

from collage_studio.config import settings
from collage_studio.main import app


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setattr(settings.collage, "throttle_window_seconds", 0.0)
    monkeypatch.setattr(settings.fingerprint, "strategy", "sha256")
    monkeypatch.setattr(settings.persistence, "output_dir", str(tmp_path))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def candidate_message(encode_b64):
    def _message(index: int, width: int = 40, height: int = 30) -> str:
        rng = np.random.default_rng(index)
        pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
        return json.dumps({"image_id": f"IMG_{index:04d}", "image": encode_b64(pixels)})

    return _message


def send_candidates(client, messages):
    with client.websocket_connect("/ws/candidates") as ws:
        for message in messages:
            ws.send_text(message)
        ws.send_text(json.dumps({"event": "done"}))
        reply = ws.receive_json()
    assert reply["event"] == "session_complete"
    return reply


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_initial_state(client: TestClient):
    response = client.get("/state")
    assert response.status_code == 200
    body = response.json()
    assert body["revision"] == 0
    assert body["image_ids"] == []
    assert body["ui"]["title"] == "Collage"


def test_picker_session_admits_landscape_uniques(client: TestClient, candidate_message):
    reply = send_candidates(client, [
        candidate_message(1),
        candidate_message(2, width=30, height=40),
        candidate_message(1),
        candidate_message(3),
    ])

    assert reply["photo_count"] == 2

    body = client.get("/state").json()
    assert body["image_ids"] == ["IMG_0001", "IMG_0003"]
    assert body["ui"]["save_enabled"] is True


def test_session_closed_when_full(client: TestClient, candidate_message):
    with client.websocket_connect("/ws/candidates") as ws:
        for index in range(7):
            ws.send_text(candidate_message(index))
        assert ws.receive_json() == {"event": "session_closed", "reason": "capacity"}

    body = client.get("/state").json()
    assert len(body["image_ids"]) == 6
    assert body["ui"]["add_enabled"] is False

    metrics = client.get("/metrics").json()
    assert metrics["admission"]["rejected_capacity"] == 1
    assert metrics["session_open"] is False


def test_clear_then_readmit(client: TestClient, candidate_message):
    send_candidates(client, [candidate_message(1)])
    response = client.post("/clear")
    assert response.status_code == 200
    assert client.get("/state").json()["image_ids"] == []

    send_candidates(client, [candidate_message(1)])
    assert client.get("/state").json()["image_ids"] == ["IMG_0001"]


def test_save_requires_even_count(client: TestClient, candidate_message):
    send_candidates(client, [candidate_message(1)])
    response = client.post("/save")
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_save_writes_and_clears(client: TestClient, candidate_message, tmp_path):
    send_candidates(client, [candidate_message(1), candidate_message(2)])

    response = client.post("/save")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (tmp_path / f"{body['asset_id']}.png").exists()
    assert client.get("/state").json()["image_ids"] == []


def test_preview_png(client: TestClient):
    response = client.get("/preview.png")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")


def test_collage_stream_replays_latest(client: TestClient, candidate_message):
    send_candidates(client, [candidate_message(1)])

    with client.websocket_connect("/ws/collage") as ws:
        snapshot = ws.receive_json()

    assert snapshot["image_ids"] == ["IMG_0001"]
    assert snapshot["ui"]["title"] == "1 photos"


def test_picker_refused_until_clear(client: TestClient, candidate_message):
    with client.websocket_connect("/ws/candidates") as ws:
        for index in range(7):
            ws.send_text(candidate_message(index))
        ws.receive_json()

    with client.websocket_connect("/ws/candidates") as ws:
        assert ws.receive_json()["event"] == "session_closed"

    client.post("/clear")
    reply = send_candidates(client, [candidate_message(10)])
    assert reply["photo_count"] == 1


def test_binary_frame_does_not_end_session(client: TestClient, candidate_message):
    with client.websocket_connect("/ws/candidates") as ws:
        ws.send_bytes(b"\x00\x01")
        ws.send_text(candidate_message(1))
        ws.send_text(json.dumps({"event": "done"}))
        reply = ws.receive_json()

    assert reply == {"event": "session_complete", "photo_count": 1}
