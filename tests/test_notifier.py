"""
Tests for message delivery: dispatcher isolation and the Telegram client.
"""

from unittest.mock import Mock

import pytest
import requests

from conftest import ADMIN_ID, FakeClient
from monitoring.notifier import DispatchError, NotificationDispatcher, TelegramClient


class TestBroadcast:

    def test_failure_does_not_stop_other_recipients(self, errors):
        client = FakeClient(failing={2})
        dispatcher = NotificationDispatcher(client, admin_id=ADMIN_ID, report_error=errors)

        delivered = dispatcher.broadcast([1, 2, 3], "hello")

        assert delivered == 2
        assert client.sent == [(1, "hello"), (3, "hello")]
        assert len(errors.errors) == 1
        error, context = errors.errors[0]
        assert isinstance(error, DispatchError)
        assert context == {"recipient": 2}

    def test_unexpected_client_error_is_isolated(self, errors):
        client = Mock()
        client.send_message.side_effect = [ConnectionResetError("reset"), None]
        dispatcher = NotificationDispatcher(client, report_error=errors)

        assert dispatcher.broadcast([1, 2], "hello") == 1
        assert isinstance(errors.errors[0][0], DispatchError)
        assert errors.errors[0][0].recipient == 1

    def test_empty_recipient_list(self, dispatcher, client):
        assert dispatcher.broadcast(set(), "hello") == 0
        assert client.sent == []


class TestAdminReport:

    def test_sent_to_admin_chat(self, dispatcher, client):
        assert dispatcher.send_admin_report("report") is True
        assert client.messages_to(ADMIN_ID) == ["report"]

    def test_without_admin_chat(self, client, errors):
        dispatcher = NotificationDispatcher(client, admin_id=None, report_error=errors)

        assert dispatcher.send_admin_report("report") is False
        assert client.sent == []


def make_response(ok=True, payload=None):
    response = Mock()
    response.ok = ok
    response.status_code = 200 if ok else 403
    response.json.return_value = payload if payload is not None else {"ok": True, "result": {}}
    return response


class TestTelegramClient:

    def test_send_message_posts_json(self):
        session = Mock()
        session.post.return_value = make_response(payload={"ok": True, "result": {"message_id": 5}})
        client = TelegramClient("TOKEN", base_url="https://api.telegram.org/", session=session)

        result = client.send_message(42, "hi")

        assert result == {"message_id": 5}
        url = session.post.call_args[0][0]
        assert url == "https://api.telegram.org/botTOKEN/sendMessage"
        assert session.post.call_args[1]["json"] == {"chat_id": 42, "text": "hi"}

    def test_api_rejection_raises(self):
        session = Mock()
        session.post.return_value = make_response(
            ok=False, payload={"ok": False, "description": "Forbidden: bot was blocked by the user"}
        )
        client = TelegramClient("TOKEN", session=session)

        with pytest.raises(DispatchError) as exc_info:
            client.send_message(42, "hi")

        assert exc_info.value.recipient == 42
        assert "blocked" in str(exc_info.value)

    def test_network_error_raises(self):
        session = Mock()
        session.post.side_effect = requests.ConnectionError("no route to host")
        client = TelegramClient("TOKEN", session=session)

        with pytest.raises(DispatchError):
            client.send_message(42, "hi")

    def test_send_photo_uploads_file(self, tmp_path):
        photo = tmp_path / "screenshot.jpg"
        photo.write_bytes(b"\xff\xd8")
        session = Mock()
        session.post.return_value = make_response()
        client = TelegramClient("TOKEN", session=session)

        client.send_photo(42, photo, caption="latest")

        kwargs = session.post.call_args[1]
        assert kwargs["data"] == {"chat_id": 42, "caption": "latest"}
        assert "photo" in kwargs["files"]

    def test_get_updates_passes_offset(self):
        session = Mock()
        session.post.return_value = make_response(payload={"ok": True, "result": [{"update_id": 7}]})
        client = TelegramClient("TOKEN", timeout=10, session=session)

        assert client.get_updates(offset=7, timeout=30) == [{"update_id": 7}]
        kwargs = session.post.call_args[1]
        assert kwargs["json"]["offset"] == 7
        assert kwargs["timeout"] == 40

    def test_get_updates_without_offset(self):
        session = Mock()
        session.post.return_value = make_response(payload={"ok": True, "result": []})
        client = TelegramClient("TOKEN", timeout=5, session=session)

        assert client.get_updates(timeout=20) == []
        kwargs = session.post.call_args[1]
        assert kwargs["json"] == {"timeout": 20, "allowed_updates": ["message"]}
        assert kwargs["timeout"] == 25

    def test_non_object_body_raises(self):
        session = Mock()
        session.post.return_value = make_response(payload=["unexpected"])
        client = TelegramClient("TOKEN", session=session)

        with pytest.raises(DispatchError) as exc_info:
            client.get_updates(offset=1)

        assert "unexpected body" in str(exc_info.value)
