#!/usr/bin/env python3
"""
Subscriber Registry Inspection Script

Shows the subscriber ids stored in the registry file.
"""

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

from config import settings
from config.subscribers import SubscriberRegistry


def main():
    registry = SubscriberRegistry(settings.IDS_PATH, settings.IDS_FILENAME)

    print(f"📁 Registry file: {registry.path}")
    if not registry.path.exists():
        print("   (not created yet - no one has subscribed)")
        return

    ids = sorted(registry.list_ids())
    print(f"👥 Subscribers: {len(ids)}")
    print("=" * 40)
    for subscriber_id in ids:
        print(f"   {subscriber_id}")


if __name__ == "__main__":
    main()
