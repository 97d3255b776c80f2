"""
Configuration Management

Handles application configuration and environment variables.
Values are read once at import time from the environment (a local .env file
is loaded first).
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent


def _get_list(name, default):
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _get_bool(name, default):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _get_required_list(name, default):
    items = _get_list(name, default)
    if not items:
        raise ValueError(f"{name} must contain at least one entry")
    return items


def _get_optional_int(name):
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


# Target pages, indexable by the trigger routes (/api/check/<index>)
TARGET_URLS = _get_required_list("TARGET_URLS", "https://example.com/")

# Page signals
ELEMENT_SELECTORS = _get_list("ELEMENT_SELECTORS", "#confirm-button")
URL_REGEX = os.getenv("URL_REGEX", r"/confirm")
REDIRECT_TIMEOUT = float(os.getenv("REDIRECT_TIMEOUT", "7"))
PAGE_LOAD_TIMEOUT = float(os.getenv("PAGE_LOAD_TIMEOUT", "30"))
HEADLESS = _get_bool("HEADLESS", "true")

# Artifact store (latest screenshot and HTML snapshot, overwritten every run)
FILES_DIR = Path(os.getenv("FILES_DIR", str(PROJECT_ROOT / "files")))
SCREENSHOT_FILENAME = os.getenv("SCREENSHOT_FILENAME", "screenshot.jpg")
HTML_FILENAME = os.getenv("HTML_FILENAME", "index.html")
SCREENSHOT_QUALITY = int(os.getenv("SCREENSHOT_QUALITY", "60"))

# Subscriber registry
IDS_PATH = Path(os.getenv("IDS_PATH", str(PROJECT_ROOT / "data")))
IDS_FILENAME = os.getenv("IDS_FILENAME", "ids.json")

# Messaging (Telegram Bot API)
TELEGRAM_API_KEY = os.getenv("TELEGRAM_API_KEY", "")
TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
TELEGRAM_TIMEOUT = float(os.getenv("TELEGRAM_TIMEOUT", "10"))
DETAILS_CHAT_ID = _get_optional_int("DETAILS_CHAT_ID")

# Error reporting
SENTRY_DSN = os.getenv("SENTRY_DSN")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "1.0"))
SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "production")

# Background workers running the trigger pipelines
WORKER_THREADS = int(os.getenv("WORKER_THREADS", "4"))

MESSAGES = {
    "start": (
        "Hi! I watch a page for you and send a message as soon as it changes.\n\n"
        "/subscribe - get notified\n"
        "/unsubscribe - stop notifications\n"
        "/screenshot - latest screenshot of the page"
    ),
    "subscribed": "Subscribed",
    "already_subscribed": "You are already subscribed",
    "unsubscribed": "Unsubscribed",
    "already_unsubscribed": "You are not subscribed",
    "is_subscribed": "You are subscribed and the monitor is running",
    "notification": "The page has changed, check it now!",
    "element_exists": "Element exists ",
    "redirected": "Redirected: ",
    "redirected_url": "Redirected URL: ",
    "empty": "(empty)",
    "registry_error": "Something went wrong, please try again later",
}


def resolve_url(index=None, urls=None):
    """
    Map an optional index from the URL table to a target URL.

    Missing, non-numeric and out-of-range indexes fall back to the first URL.

    Raises:
        ValueError: If the URL table is empty
    """
    urls = TARGET_URLS if urls is None else urls
    if not urls:
        raise ValueError("URL table is empty")
    try:
        position = int(index)
    except (TypeError, ValueError):
        return urls[0]
    if 0 <= position < len(urls):
        return urls[position]
    return urls[0]


def build_inspection_config():
    """Build the page inspection configuration from the settings above."""
    from monitoring.page_inspector import InspectionConfig

    return InspectionConfig(
        selectors=tuple(ELEMENT_SELECTORS),
        redirect_pattern=URL_REGEX,
        redirect_timeout=REDIRECT_TIMEOUT,
        page_load_timeout=PAGE_LOAD_TIMEOUT,
        screenshot_quality=SCREENSHOT_QUALITY,
        files_dir=FILES_DIR,
        screenshot_filename=SCREENSHOT_FILENAME,
        html_filename=HTML_FILENAME,
        headless=HEADLESS,
    )
