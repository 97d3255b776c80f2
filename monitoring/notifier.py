"""
Notification Module

Delivers messages through the Telegram Bot API: fan-out to subscribers and
reports to the fixed admin (details) chat. A failed delivery to one chat is
reported and skipped, it never stops delivery to the others.
"""

import logging

import requests

from monitoring.telemetry import capture_error

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """A message could not be delivered to one recipient."""

    def __init__(self, recipient, message):
        super().__init__(message)
        self.recipient = recipient


class TelegramClient:
    """
    Minimal Telegram Bot API client.

    Args:
        api_key (str): Bot token
        base_url (str): API base URL
        timeout (float): Request timeout in seconds (long polls add their own wait)
    """

    def __init__(self, api_key, base_url="https://api.telegram.org", timeout=10, session=None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _call(self, method, recipient=None, request_timeout=None, files=None, **params):
        url = f"{self.base_url}/bot{self.api_key}/{method}"
        try:
            if files:
                resp = self.session.post(url, data=params, files=files, timeout=request_timeout or self.timeout)
            else:
                resp = self.session.post(url, json=params, timeout=request_timeout or self.timeout)
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DispatchError(recipient, f"{method} failed: {e}") from e

        if not isinstance(payload, dict):
            raise DispatchError(recipient, f"{method} returned an unexpected body")

        if not resp.ok or not payload.get("ok"):
            description = payload.get("description", resp.status_code)
            raise DispatchError(recipient, f"{method} rejected: {description}")

        return payload.get("result")

    def send_message(self, chat_id, text):
        return self._call("sendMessage", recipient=chat_id, chat_id=chat_id, text=text)

    def send_photo(self, chat_id, path, caption=None):
        params = {"chat_id": chat_id}
        if caption:
            params["caption"] = caption
        with open(path, "rb") as photo:
            return self._call("sendPhoto", recipient=chat_id, files={"photo": photo}, **params)

    def get_updates(self, offset=None, timeout=30):
        params = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            params["offset"] = offset
        return self._call("getUpdates", request_timeout=timeout + self.timeout, **params) or []


class NotificationDispatcher:
    """
    Sends messages to subscribers and to the admin chat.

    Args:
        client: Object with ``send_message(chat_id, text)``
        admin_id (int | None): Details chat id
        report_error: Called with ``(error, **context)`` for each failed delivery
    """

    def __init__(self, client, admin_id=None, report_error=capture_error):
        self.client = client
        self.admin_id = admin_id
        self.report_error = report_error

    def send(self, recipient, message):
        """
        Send one message.

        Returns:
            bool: True if delivered, False if the failure was reported instead
        """
        try:
            self.client.send_message(recipient, message)
            return True
        except Exception as e:
            error = e if isinstance(e, DispatchError) else DispatchError(recipient, str(e))
            self.report_error(error, recipient=recipient)
            return False

    def broadcast(self, recipients, message):
        """
        Send ``message`` to every recipient independently.

        Returns:
            int: Number of successful deliveries
        """
        recipients = list(recipients)
        delivered = sum(1 for recipient in recipients if self.send(recipient, message))

        logger.info(f"Broadcast delivered to {delivered}/{len(recipients)} recipients")
        return delivered

    def send_admin_report(self, message):
        if self.admin_id is None:
            logger.warning("DETAILS_CHAT_ID not configured, admin report dropped")
            return False
        return self.send(self.admin_id, message)
