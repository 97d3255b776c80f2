"""
Bot Daemon

Background service that long-polls the Telegram Bot API and answers the chat
commands: /start, /subscribe, /unsubscribe and /screenshot.
"""

import sys
import time
import logging
import signal
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from config import settings
from config.settings import MESSAGES
from config.subscribers import Outcome, RegistryIOError
from monitoring.notifier import DispatchError
from monitoring.telemetry import capture_error

logger = logging.getLogger(__name__)

# Seconds the API holds a getUpdates call open
POLL_TIMEOUT = 30
# Wait after a failed poll before retrying
ERROR_BACKOFF = 5


def display_name(chat):
    return f"{chat.get('first_name', '')} {chat.get('last_name', '')}".strip()


class CommandBot:
    """
    Answers chat commands.

    Args:
        client (TelegramClient): API client used for polling and replies
        orchestrator (Orchestrator): Registry operations and admin channel
        screenshot_path (Path): Latest screenshot from the artifact store
    """

    def __init__(self, client, orchestrator, screenshot_path, messages=MESSAGES):
        self.client = client
        self.orchestrator = orchestrator
        self.screenshot_path = Path(screenshot_path)
        self.messages = messages
        self.offset = None
        self.running = False
        self.handlers = {
            "/start": self.handle_start,
            "/subscribe": self.handle_subscribe,
            "/unsubscribe": self.handle_unsubscribe,
            "/screenshot": self.handle_screenshot,
        }

    def reply(self, chat_id, text):
        self.orchestrator.dispatcher.send(chat_id, text)

    def audit(self, outcome_text, chat):
        # Admin audit message is separate from the subscriber reply
        self.orchestrator.dispatcher.send_admin_report(f"{outcome_text}: {display_name(chat)}")

    def handle_start(self, chat):
        self.reply(chat["id"], self.messages["start"])

    def handle_subscribe(self, chat):
        try:
            outcome = self.orchestrator.subscribe(chat["id"])
        except RegistryIOError as e:
            capture_error(e, chat_id=chat["id"], command="subscribe")
            self.reply(chat["id"], self.messages["registry_error"])
            return

        if outcome == Outcome.ALREADY_PRESENT:
            self.reply(chat["id"], self.messages["already_subscribed"])
        else:
            self.reply(chat["id"], self.messages["subscribed"])
            self.audit(self.messages["subscribed"], chat)

    def handle_unsubscribe(self, chat):
        try:
            outcome = self.orchestrator.unsubscribe(chat["id"])
        except RegistryIOError as e:
            capture_error(e, chat_id=chat["id"], command="unsubscribe")
            self.reply(chat["id"], self.messages["registry_error"])
            return

        if outcome == Outcome.NOT_PRESENT:
            self.reply(chat["id"], self.messages["already_unsubscribed"])
        else:
            self.reply(chat["id"], self.messages["unsubscribed"])
            self.audit(self.messages["unsubscribed"], chat)

    def handle_screenshot(self, chat):
        try:
            self.client.send_photo(chat["id"], self.screenshot_path)
        except (OSError, DispatchError) as e:
            capture_error(e, chat_id=chat["id"], command="screenshot")
            self.reply(chat["id"], str(e))

    def handle_update(self, update):
        """Route one update to its command handler. Unknown text is ignored."""
        message = update.get("message") or {}
        text = (message.get("text") or "").strip()
        chat = message.get("chat")
        if not text.startswith("/") or not chat:
            return

        command = text.split()[0].split("@")[0]
        handler = self.handlers.get(command)
        if handler is None:
            return

        logger.info(f"Command {command} from chat {chat['id']}")
        try:
            handler(chat)
        except Exception as e:
            capture_error(e, chat_id=chat["id"], command=command)

    def poll_once(self):
        updates = self.client.get_updates(offset=self.offset, timeout=POLL_TIMEOUT)
        for update in updates:
            self.offset = update["update_id"] + 1
            self.handle_update(update)
        return len(updates)

    def run(self):
        """Poll until stop() is called."""
        self.running = True
        logger.info("Bot polling started")
        while self.running:
            try:
                self.poll_once()
            except KeyboardInterrupt:
                raise
            except Exception as e:
                logger.error(f"Error in polling loop: {e}")
                capture_error(e, stage="poll")
                time.sleep(ERROR_BACKOFF)
        logger.info("Bot polling stopped")

    def stop(self):
        self.running = False


def build_bot(orchestrator):
    return CommandBot(
        client=orchestrator.dispatcher.client,
        orchestrator=orchestrator,
        screenshot_path=orchestrator.config.screenshot_path,
    )


def main():
    """Run the bot in the foreground until SIGINT/SIGTERM."""
    from monitoring.orchestrator import build_orchestrator
    from monitoring.telemetry import init_telemetry

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler("bot_daemon.log"), logging.StreamHandler()],
    )
    init_telemetry(settings.SENTRY_DSN, settings.SENTRY_TRACES_SAMPLE_RATE, settings.SENTRY_ENVIRONMENT)

    orchestrator = build_orchestrator()
    bot = build_bot(orchestrator)

    def signal_handler(signum, frame):
        """Handle shutdown signals gracefully."""
        logger.info("Received shutdown signal. Stopping gracefully...")
        bot.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        bot.run()
    finally:
        orchestrator.shutdown()
        logger.info("Bot Daemon stopped")


if __name__ == "__main__":
    main()
