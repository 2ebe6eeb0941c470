from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from conftest import make_message
from sueta.dependencies import get_assembler, get_store
from sueta.main import app

ADMIN_TOKEN = "admin-secret"


@pytest.fixture
def client(store, assembler):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_assembler] = lambda: assembler
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_settings():
    with patch("sueta.routers.admin.settings") as mock_settings:
        mock_settings.admin_token = ADMIN_TOKEN
        mock_settings.rag_recent_days = 3
        mock_settings.rag_max_relevant_messages = 5
        yield mock_settings


class TestChatMessages:
    def test_requires_token(self, client, admin_settings):
        response = client.get("/admin/chats/100/messages")
        assert response.status_code == 401

    def test_returns_last_messages_in_order(self, client, store, admin_settings):
        for i, minutes in enumerate([10, 30, 20]):
            store.insert_message(make_message(message_id=i + 1, text=f"m{i}", age=timedelta(minutes=minutes)))

        response = client.get(
            "/admin/chats/100/messages",
            params={"limit": 2},
            headers={"X-Admin-Token": ADMIN_TOKEN},
        )

        assert response.status_code == 200
        assert [m["text"] for m in response.json()] == ["m2", "m0"]


class TestChatContext:
    def test_shows_query_and_relevant(self, client, store, admin_settings):
        store.insert_message(make_message(message_id=1, text="думаешь о погоде завтра", age=timedelta(days=5)))
        store.insert_message(make_message(message_id=2, text="свежее", age=timedelta(hours=1)))

        response = client.get(
            "/admin/chats/100/context",
            params={"text": "Жорик, что думаешь о погоде?"},
            headers={"X-Admin-Token": ADMIN_TOKEN},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "думаешь погоде"
        assert [m["message_id"] for m in data["recent"]] == [2]
        assert [m["message_id"] for m in data["relevant"]] == [1]


class TestAlertsTest:
    @patch("sueta.routers.admin.send_alert", return_value=True)
    def test_sends_alert(self, mock_send_alert, client, admin_settings):
        response = client.post("/admin/alerts/test", headers={"X-Admin-Token": ADMIN_TOKEN})
        assert response.status_code == 200
        assert response.json()["success"] is True
        mock_send_alert.assert_called_once()

    def test_not_configured(self, client):
        with patch("sueta.routers.admin.settings") as mock_settings:
            mock_settings.admin_token = None
            response = client.post("/admin/alerts/test", headers={"X-Admin-Token": "x"})
        assert response.status_code == 500
