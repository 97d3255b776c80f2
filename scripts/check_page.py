#!/usr/bin/env python3
"""
Quick check script for a monitored page
Usage: python scripts/check_page.py [url | index]
Example: python scripts/check_page.py 1

Runs one inspection in the foreground and prints the detail report.
No notifications are sent.
"""

import sys
import logging
from pathlib import Path

# Setup path
sys.path.append(str(Path(__file__).parent.parent))

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

from config import settings
from monitoring.change_detector import evaluate
from monitoring.page_inspector import InspectionError, SeleniumPageInspector


def main():
    target = sys.argv[1] if len(sys.argv) >= 2 else None

    if target and "://" in target:
        url = target
    else:
        url = settings.resolve_url(target)

    config = settings.build_inspection_config()

    print(f"\n{'='*60}")
    print(f"Checking: {url}")
    print(f"Selectors: {', '.join(config.selectors)}")
    print(f"Redirect pattern: {config.redirect_pattern}")
    print(f"{'='*60}\n")

    try:
        signal = SeleniumPageInspector().inspect(url, config)
    except InspectionError as e:
        print(f"\nERROR: {e}")
        sys.exit(1)

    report = evaluate(signal, config.selectors)

    print(f"\n{'='*60}")
    print("RESULTS:")
    print(f"{'='*60}")
    print(report.text)
    print(f"\nNotable: {'YES' if report.notable else 'no'}")
    print(f"Screenshot: {config.screenshot_path}")
    print(f"HTML: {config.html_path}")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    main()
