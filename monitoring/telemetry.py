"""
Error Reporting

Sends unexpected failures (navigation errors, delivery failures, broken
registry files) to Sentry with context about the page and recipient involved.
When no DSN is configured, errors are only logged.

Usage:
    from monitoring.telemetry import capture_error

    try:
        dispatcher.send_admin_report(text)
    except DispatchError as e:
        capture_error(e, url=url, stage="details")
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration

logger = logging.getLogger(__name__)

_initialized = False

# Keys whose values never leave the process
SENSITIVE_FIELDS = {
    "api_key",
    "apikey",
    "authorization",
    "password",
    "secret",
    "token",
}


def _filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive_data(value)
        else:
            filtered[key] = value
    return filtered


def init_telemetry(
    dsn: Optional[str],
    traces_sample_rate: float = 1.0,
    environment: str = "production",
) -> bool:
    """
    Initialize the Sentry SDK.

    Returns:
        bool: True if Sentry was initialized, False if no DSN is configured.
    """
    global _initialized

    if not dsn:
        logger.info("SENTRY_DSN not set, errors will only be logged")
        return False

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=traces_sample_rate,
        environment=environment,
    )
    _initialized = True
    logger.info(f"Sentry initialized (environment={environment})")
    return True


def capture_error(error: BaseException, **context: Any) -> None:
    """
    Report an unexpected error.

    Args:
        error: The exception that occurred
        **context: Extra context (url, recipient, stage...). Sensitive keys are filtered.
    """
    filtered = _filter_sensitive_data(context)
    logger.error(f"{type(error).__name__}: {error} {filtered}", exc_info=error)

    if not _initialized:
        return

    try:
        sentry_sdk.add_breadcrumb(
            category="monitor",
            message=str(error),
            level="error",
            data=filtered,
        )
        with sentry_sdk.new_scope() as scope:
            for key, value in filtered.items():
                scope.set_extra(key, value)
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.warning(f"Failed to send error to Sentry: {e}")
