"""Integration test for the reader websocket control surface."""

import uuid

import pytest
from fastapi.testclient import TestClient

from flowreader.application.api import app


@pytest.fixture
def client():
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def words():
    """Two short sentences padded out to fifty words."""
    return ["The", "cat", "sat.", "It", "was", "happy."] + [f"w{i}" for i in range(44)]


def receive_until(ws, predicate, limit=200):
    """Receive messages until one matches, returning it."""
    for _ in range(limit):
        message = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("Expected message never arrived")


def open_session(ws, **payload):
    """Open a document and return the session.opened and initial state messages."""
    ws.send_json({"type": "session.open", **payload})
    opened = ws.receive_json()
    state = ws.receive_json()
    return opened, state


def test_health(client):
    """Test the health check endpoint."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestReaderWebSocket:
    """End-to-end flows over the websocket."""

    def test_open_guest_document(self, client, words):
        with client.websocket_connect("/ws") as ws:
            opened, state = open_session(ws, words=words, title="Cats")

            assert opened["type"] == "session.opened"
            assert opened["document_id"] is None
            assert opened["word_count"] == 50
            assert state["type"] == "state"
            assert state["event"] == "document.loaded"
            assert state["state"] == "paused"
            assert state["word"] == "The"
            assert state["anchor"]["anchor"] == "h"
            assert state["pacing_preset"] == "smooth"

    def test_play_advances_and_pause_stops(self, client, words):
        with client.websocket_connect("/ws") as ws:
            open_session(ws, words=words)

            ws.send_json({"type": "playback.set_speed", "wpm": 1200})
            speed = ws.receive_json()
            assert speed["event"] == "speed.changed"
            assert speed["speed"] == 1200

            ws.send_json({"type": "playback.play"})
            started = ws.receive_json()
            assert started["event"] == "playback.started"
            assert started["state"] == "playing"

            advanced = receive_until(ws, lambda m: m.get("event") == "word.advanced")
            assert advanced["current_word_index"] >= 1

            ws.send_json({"type": "playback.pause"})
            paused = receive_until(ws, lambda m: m.get("event") == "playback.paused")
            assert paused["state"] == "paused"

    def test_navigation_commands(self, client, words):
        with client.websocket_connect("/ws") as ws:
            open_session(ws, words=words)

            ws.send_json({"type": "navigation.skip_forward"})
            assert ws.receive_json()["current_word_index"] == 3

            ws.send_json({"type": "playback.jump", "index": 40})
            jumped = ws.receive_json()
            assert jumped["event"] == "position.changed"
            assert jumped["current_word_index"] == 40

            # 300 wpm rewinds five words per second
            ws.send_json({"type": "playback.rewind", "seconds": 2})
            assert ws.receive_json()["current_word_index"] == 30

            ws.send_json({"type": "playback.set_pacing", "preset": "uniform"})
            pacing = ws.receive_json()
            assert pacing["event"] == "pacing.changed"
            assert pacing["pacing_preset"] == "uniform"

    def test_summary_prefix(self, client, words):
        with client.websocket_connect("/ws") as ws:
            open_session(ws, words=words, resume_index=3)

            ws.send_json({"type": "summary.prefix"})
            prefix = ws.receive_json()

            assert prefix["type"] == "summary.prefix"
            assert prefix["text"] == "The cat sat."
            assert prefix["word_count"] == 3

    def test_close_persists_progress(self, client, words):
        document_id = f"doc-{uuid.uuid4()}"
        response = client.post("/documents", json={"document_id": document_id, "title": "Cats", "words": words})
        assert response.status_code == 201

        with client.websocket_connect("/ws") as ws:
            opened, _ = open_session(ws, document_id=document_id)
            assert opened["title"] == "Cats"

            ws.send_json({"type": "playback.jump", "index": 20})
            ws.receive_json()

            ws.send_json({"type": "session.close"})
            ended = receive_until(ws, lambda m: m["type"] == "session.ended")
            assert ended["reason"] == "closed"

        progress = client.get(f"/documents/{document_id}/progress").json()
        assert progress["checkpoint"]["word_index"] == 20
        assert progress["sessions"] == []

        # Reopening resumes from the saved position
        with client.websocket_connect("/ws") as ws:
            opened, _ = open_session(ws, document_id=document_id)
            assert opened["current_word_index"] == 20

    def test_progress_for_unknown_document(self, client):
        progress = client.get("/documents/never-opened/progress").json()

        assert progress["checkpoint"] is None
        assert progress["sessions"] == []


class TestReaderWebSocketErrors:
    """Error reporting over the websocket."""

    def test_invalid_json(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("{not json")
            error = ws.receive_json()

            assert error["type"] == "error"
            assert error["code"] == "INVALID_MESSAGE"

    def test_unknown_message_type(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "playback.explode"})
            assert ws.receive_json()["code"] == "INVALID_MESSAGE"

    def test_control_without_document(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "playback.play"})
            assert ws.receive_json()["code"] == "NO_ACTIVE_DOCUMENT"

    def test_unknown_document(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "session.open", "document_id": "missing"})
            assert ws.receive_json()["code"] == "DOCUMENT_NOT_FOUND"

    def test_empty_words(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "session.open", "words": []})
            assert ws.receive_json()["code"] == "INVALID_INPUT"

    def test_negative_speed(self, client, words):
        with client.websocket_connect("/ws") as ws:
            open_session(ws, words=words)
            ws.send_json({"type": "playback.set_speed", "wpm": -5})
            assert ws.receive_json()["code"] == "INVALID_INPUT"

    def test_session_survives_errors(self, client, words):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("garbage")
            ws.receive_json()

            opened, _ = open_session(ws, words=words)
            assert opened["type"] == "session.opened"
