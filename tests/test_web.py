"""
Test Web Application
====================

End-to-end tests for the chat socket, page and API routes.
"""

import logging
import re

import pytest
from fastapi.testclient import TestClient

from core.config import Config
from core.logging import ContextFilter
from rules.engine import ResponseEngine
from ui.web.app import create_app
from ui.web.routes import parse_frame

STOCK = {
    "Sorry, come again.",
    "I do not understand.",
    "Can you repeat.",
    "No comprendo...",
    "Ne me quitte pas!",
}

HELP_REPLY = re.compile(
    r"^(Hmmm|Ah!|\.\.\.) I am (not|kind of) "
    r"(your toy|tired|busy|miserable|no|confused)(!|\.|\.\.\.)$"
)


class RecordingHandler(logging.Handler):
    """Keeps records after the context filter has run."""

    def __init__(self):
        super().__init__()
        self.records = []
        self.addFilter(ContextFilter())

    def emit(self, record):
        self.records.append(record)


def make_client(config=None):
    config = config or Config()
    config.engine.seed = 2016
    app = create_app(config=config, engine=ResponseEngine.from_config(config.engine))
    return TestClient(app)


class TestParseFrame:

    def test_event_frame(self):
        assert parse_frame('{"event": "message from human", "data": "hi"}', "x") == (
            "message from human", "hi"
        )

    def test_raw_text(self):
        assert parse_frame("can you fly?", "message from human") == ("message from human", "can you fly?")

    def test_missing_data(self):
        assert parse_frame('{"event": "typing"}', "x") == ("typing", None)


class TestChatSocket:
    """Tests for the WebSocket route."""

    def test_reply_broadcast_to_all_clients(self):
        with make_client() as client:
            with client.websocket_connect("/socket") as sender, \
                    client.websocket_connect("/socket") as listener:
                sender.send_json({"event": "message from human", "data": "hello there"})

                to_sender = sender.receive_json()
                to_listener = listener.receive_json()

        assert to_sender["event"] == "message from robot"
        assert to_sender["data"] in STOCK
        assert to_listener == to_sender

    def test_raw_text_frame_is_utterance(self):
        with make_client() as client:
            with client.websocket_connect("/socket") as ws:
                ws.send_text("Can you help me?")
                frame = ws.receive_json()

        assert HELP_REPLY.match(frame["data"])

    def test_missing_data_uses_default(self):
        with make_client() as client:
            with client.websocket_connect("/socket") as ws:
                ws.send_json({"event": "message from human"})
                frame = ws.receive_json()

        assert frame["data"] in STOCK

    def test_greeting_on_connect(self):
        config = Config()
        config.channel.greeting = "Hi! my name is Reihtuag!"

        with make_client(config) as client:
            with client.websocket_connect("/socket") as ws:
                frame = ws.receive_json()

        assert frame == {"event": "message from robot", "data": "Hi! my name is Reihtuag!"}

    def test_connection_context_on_every_channel_record(self):
        handler = RecordingHandler()
        channel_logger = logging.getLogger("reihtuag.services.channel")

        with make_client() as client:
            channel_logger.addHandler(handler)
            try:
                with client.websocket_connect("/socket") as ws:
                    ws.send_json({"event": "message from human", "data": "can you fly?"})
                    ws.receive_json()
            finally:
                channel_logger.removeHandler(handler)

        messages = [r.getMessage() for r in handler.records]
        assert messages[0].startswith("Client connected")
        ids = {getattr(r, "extra_data", {}).get("connection") for r in handler.records}
        assert len(ids) == 1
        assert None not in ids

    def test_registry_follows_connections(self):
        with make_client() as client:
            with client.websocket_connect("/socket") as ws:
                ws.send_json({"event": "message from human", "data": "can you fly?"})
                ws.receive_json()
                assert client.get("/api/status").json()["connected_clients"] == 1


class TestRoutes:
    """Tests for page and API routes."""

    def test_chat_page(self):
        with make_client() as client:
            response = client.get("/")

        assert response.status_code == 200
        assert "Reihtuag" in response.text
        assert "message from human" in response.text

    def test_respond_does_not_broadcast(self):
        with make_client() as client:
            response = client.post("/api/respond", json={"message": "can you help me?"})

        body = response.json()
        assert body["category"] == "request-help"
        assert HELP_REPLY.match(body["reply"])

    def test_respond_fallback(self):
        with make_client() as client:
            body = client.post("/api/respond", json={"message": "hello there"}).json()

        assert body["category"] is None
        assert body["reply"] in STOCK

    def test_status(self):
        with make_client() as client:
            body = client.get("/api/status").json()

        assert body["app_name"] == "Reihtuag"
        assert body["connected_clients"] == 0
        assert body["categories"] == ["request-help", "sympathy-check", "fantastical-claim"]


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
