"""
Change Detection

Decides whether an inspection result is worth notifying subscribers about and
renders the detail report sent to the admin channel.
"""

from dataclasses import dataclass
from typing import Tuple

from config.settings import MESSAGES


@dataclass(frozen=True)
class NotabilityReport:
    notable: bool
    lines: Tuple[str, ...]

    @property
    def text(self):
        return "\n".join(self.lines)


def is_notable(signal):
    """A signal is notable when any element is present or the page redirected."""
    return any(signal.elements.values()) or signal.redirected


def _flag(value):
    return "true" if value else "false"


def evaluate(signal, selectors=None, messages=MESSAGES):
    """
    Evaluate a page signal.

    Lines are rendered in a fixed order (every configured selector, then the
    redirect flag, then the redirected URL) so reports from different runs
    line up.

    Args:
        signal (PageSignal): Result of one inspection
        selectors (iterable, optional): Configured selectors. Defaults to the
            selectors present in the signal. A configured selector missing from
            the signal renders as false.
        messages (dict): Label texts

    Returns:
        NotabilityReport
    """
    selectors = list(signal.elements) if selectors is None else list(selectors)

    lines = [
        f"{messages['element_exists']}{selector}: {_flag(signal.elements.get(selector, False))}"
        for selector in selectors
    ]
    lines.append(f"{messages['redirected']}{_flag(signal.redirected)}")
    lines.append(f"{messages['redirected_url']}{signal.redirected_url or messages['empty']}")

    return NotabilityReport(notable=is_notable(signal), lines=tuple(lines))
