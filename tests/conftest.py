"""
Shared fixtures: fake page inspector, fake messaging client and a registry
stored in a temporary directory.
"""

import threading
from contextlib import contextmanager

import pytest

from config.subscribers import SubscriberRegistry
from monitoring.notifier import DispatchError, NotificationDispatcher
from monitoring.orchestrator import Orchestrator
from monitoring.page_inspector import InspectionConfig, PageInspector, PageSignal

ADMIN_ID = 999
TARGET_URL = "https://tickets.example.com/event/42"


class FakeInspector(PageInspector):
    """Returns a canned signal (or raises) and counts open sessions."""

    def __init__(self, signal=None, error=None):
        self.signal = signal or PageSignal(elements={".cta": False})
        self.error = error
        self.open_sessions = 0
        self.calls = []
        self._lock = threading.Lock()

    @contextmanager
    def session(self):
        with self._lock:
            self.open_sessions += 1
        try:
            yield
        finally:
            with self._lock:
                self.open_sessions -= 1

    def inspect(self, url, config):
        self.calls.append(url)
        with self.session():
            if self.error is not None:
                raise self.error
            return self.signal


class FakeClient:
    """Records sent messages; raises DispatchError for chats in ``failing``."""

    def __init__(self, failing=()):
        self.sent = []
        self.photos = []
        self.failing = set(failing)
        self.updates = []

    def send_message(self, chat_id, text):
        if chat_id in self.failing:
            raise DispatchError(chat_id, "Forbidden: bot was blocked by the user")
        self.sent.append((chat_id, text))

    def send_photo(self, chat_id, path, caption=None):
        with open(path, "rb"):
            self.photos.append((chat_id, str(path)))

    def get_updates(self, offset=None, timeout=30):
        updates, self.updates = self.updates, []
        return updates

    def messages_to(self, chat_id):
        return [text for recipient, text in self.sent if recipient == chat_id]


class ErrorCollector:
    def __init__(self):
        self.errors = []

    def __call__(self, error, **context):
        self.errors.append((error, context))


@pytest.fixture
def inspection_config(tmp_path):
    return InspectionConfig(
        selectors=(".cta",),
        redirect_pattern=r"/confirm",
        redirect_timeout=0,
        files_dir=tmp_path / "files",
    )


@pytest.fixture
def registry(tmp_path):
    return SubscriberRegistry(tmp_path / "data", "ids.json")


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def errors():
    return ErrorCollector()


@pytest.fixture
def dispatcher(client, errors):
    return NotificationDispatcher(client, admin_id=ADMIN_ID, report_error=errors)


@pytest.fixture
def make_orchestrator(registry, dispatcher, inspection_config, errors):
    created = []

    def _make(inspector):
        orchestrator = Orchestrator(
            inspector=inspector,
            registry=registry,
            dispatcher=dispatcher,
            config=inspection_config,
            urls=[TARGET_URL, "https://tickets.example.com/event/43"],
            max_workers=2,
            report_error=errors,
        )
        created.append(orchestrator)
        return orchestrator

    yield _make

    for orchestrator in created:
        orchestrator.shutdown(wait=True)
