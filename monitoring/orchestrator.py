"""
Main Monitor Class

Runs the trigger pipelines: inspect the page, evaluate the signal, notify
subscribers and/or the admin chat. Triggers return an acknowledgement right
away; the pipeline itself runs on a background worker pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from config import settings
from config.settings import MESSAGES, resolve_url
from config.subscribers import SubscriberRegistry
from monitoring.change_detector import evaluate
from monitoring.notifier import NotificationDispatcher, TelegramClient
from monitoring.page_inspector import InspectionError, SeleniumPageInspector
from monitoring.telemetry import capture_error

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Composes the inspector, registry and dispatcher per trigger.

    Args:
        inspector (PageInspector): Page inspection capability
        registry (SubscriberRegistry): Subscriber store
        dispatcher (NotificationDispatcher): Message delivery
        config (InspectionConfig): Selectors, redirect pattern, timeouts
        urls (list, optional): URL table used by the ``request_*`` triggers
        max_workers (int): Background worker threads
    """

    def __init__(
        self,
        inspector,
        registry,
        dispatcher,
        config,
        urls=None,
        messages=MESSAGES,
        max_workers=4,
        report_error=capture_error,
    ):
        self.inspector = inspector
        self.registry = registry
        self.dispatcher = dispatcher
        self.config = config
        self.urls = urls or settings.TARGET_URLS
        self.messages = messages
        self.report_error = report_error
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="monitor")

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    def _inspect(self, url, stage):
        try:
            signal = self.inspector.inspect(url, self.config)
        except InspectionError as e:
            self.report_error(e, url=url, stage=stage)
            return None, e
        return evaluate(signal, self.config.selectors, self.messages), None

    def check_and_notify(self, url):
        """
        Inspect ``url`` and notify every subscriber if the page changed.

        Returns:
            NotabilityReport | None: None if the inspection failed
        """
        report, _ = self._inspect(url, "check")
        if report is None:
            return None

        if report.notable:
            subscribers = self.registry.list_ids()
            logger.info(f"Change detected on {url}, notifying {len(subscribers)} subscribers")
            self.dispatcher.broadcast(subscribers, f"{self.messages['notification']}\n\n{url}")
        else:
            logger.info(f"No change on {url}")

        return report

    def check_with_details(self, url):
        """
        Inspect ``url`` and send the full report to the admin chat.

        Subscribers are never notified from here.
        """
        report, error = self._inspect(url, "details")
        if report is None:
            self.dispatcher.send_admin_report(str(error))
            return None

        message = report.text
        if report.notable:
            message += f"\n\n{self.messages['notification']}"
        message += f"\n\n{url}"

        self.dispatcher.send_admin_report(message)
        return report

    def ping_all_subscribers(self):
        """Send the status message to every subscriber."""
        subscribers = self.registry.list_ids()
        logger.info(f"Pinging {len(subscribers)} subscribers")
        return self.dispatcher.broadcast(subscribers, self.messages["is_subscribed"])

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def subscribe(self, subscriber_id):
        """
        Returns:
            Outcome: ADDED or ALREADY_PRESENT

        Raises:
            RegistryIOError: If the registry file cannot be read or written
        """
        return self.registry.add(subscriber_id)

    def unsubscribe(self, subscriber_id):
        """
        Returns:
            Outcome: REMOVED or NOT_PRESENT

        Raises:
            RegistryIOError: If the registry file cannot be read or written
        """
        return self.registry.remove(subscriber_id)

    # ------------------------------------------------------------------
    # Background triggers
    # ------------------------------------------------------------------

    def submit(self, fn, *args):
        """Run ``fn(*args)`` on the worker pool; failures go to error reporting."""
        future = self.executor.submit(fn, *args)
        future.add_done_callback(lambda f: self._on_done(f, fn.__name__, args))
        return future

    def _on_done(self, future, name, args):
        if future.cancelled():
            logger.warning(f"Background task {name} cancelled")
            return
        error = future.exception()
        if error is not None:
            self.report_error(error, task=name, args=list(args))

    def request_check(self, target=None):
        url = resolve_url(target, self.urls)
        self.submit(self.check_and_notify, url)
        return {"message": "checked"}

    def request_details(self, target=None):
        url = resolve_url(target, self.urls)
        self.submit(self.check_with_details, url)
        return {"message": "details"}

    def request_status_ping(self):
        self.submit(self.ping_all_subscribers)
        return {"message": "issubscribed"}

    def shutdown(self, wait=True):
        self.executor.shutdown(wait=wait)


def build_orchestrator():
    """Create an orchestrator wired from the application settings."""
    client = TelegramClient(
        settings.TELEGRAM_API_KEY,
        base_url=settings.TELEGRAM_API_URL,
        timeout=settings.TELEGRAM_TIMEOUT,
    )
    return Orchestrator(
        inspector=SeleniumPageInspector(),
        registry=SubscriberRegistry(settings.IDS_PATH, settings.IDS_FILENAME),
        dispatcher=NotificationDispatcher(client, admin_id=settings.DETAILS_CHAT_ID),
        config=settings.build_inspection_config(),
        urls=settings.TARGET_URLS,
        max_workers=settings.WORKER_THREADS,
    )

