"""Tests for the keep-alive health check and the Telegram webhook endpoint."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from telegram import Bot
from telegram.ext import Application

from hrbot.api import webhook
from hrbot.api.webhook import app, setup_webhook_route

MESSAGE_UPDATE = {
    "update_id": 1,
    "message": {
        "message_id": 1,
        "date": 1760000000,
        "chat": {"id": 123, "type": "private"},
        "from": {"id": 123, "is_bot": False, "first_name": "Иван"},
        "text": "/start",
    },
}


@pytest.fixture
def client():
    """Create test client for FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_bot_app():
    yield
    webhook._bot_app = None


@pytest.fixture
def mock_bot_app():
    """Create a mock Telegram bot application."""
    mock_app = MagicMock(spec=Application)
    mock_app.bot = MagicMock(spec=Bot)
    mock_app.process_update = AsyncMock()
    return mock_app


class TestHealthCheck:
    def test_returns_ok(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_available_without_bot(self, client):
        assert webhook._bot_app is None
        assert client.get("/health").status_code == 200


class TestTelegramWebhook:
    def test_bot_not_initialized(self, client):
        response = client.post("/webhook/telegram", json={"update_id": 1})

        assert response.status_code == 503
        assert "Bot not initialized" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_update_is_dispatched(self, client, mock_bot_app):
        await setup_webhook_route(mock_bot_app)

        response = client.post("/webhook/telegram", json=MESSAGE_UPDATE)

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        mock_bot_app.process_update.assert_called_once()
        update = mock_bot_app.process_update.call_args.args[0]
        assert update.effective_user.id == 123

    @pytest.mark.asyncio
    async def test_processing_error_returns_500(self, client, mock_bot_app):
        await setup_webhook_route(mock_bot_app)
        mock_bot_app.process_update.side_effect = Exception("Processing error")

        response = client.post("/webhook/telegram", json=MESSAGE_UPDATE)

        assert response.status_code == 500
        assert "Internal server error" in response.json()["detail"]
