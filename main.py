#!/usr/bin/env python3
"""
Page Signal Monitor - Main Entry Point

This is the main driver script for the page monitoring system.
It runs the Flask trigger app and, optionally, the chat command bot.

Usage:
    python main.py [--bot]
"""

import argparse
import logging
import threading

from config import settings
from monitoring.telemetry import init_telemetry


def main():
    parser = argparse.ArgumentParser(description="Page Signal Monitor")

    # Web app specific arguments
    parser.add_argument("--host", default="0.0.0.0", help="Web app host")
    parser.add_argument("--port", type=int, default=5000, help="Web app port")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--bot", action="store_true", help="Also poll Telegram for chat commands")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler("monitor.log"), logging.StreamHandler()],
    )
    init_telemetry(settings.SENTRY_DSN, settings.SENTRY_TRACES_SAMPLE_RATE, settings.SENTRY_ENVIRONMENT)

    from monitoring.orchestrator import build_orchestrator
    from webapp.app import create_app

    orchestrator = build_orchestrator()
    app = create_app(orchestrator)

    if args.bot:
        from services.bot_daemon import build_bot
        bot = build_bot(orchestrator)
        bot_thread = threading.Thread(target=bot.run, name="bot", daemon=True)
        bot_thread.start()

    print(f"🚀 Starting Page Signal Monitor...")
    print(f"📍 Server running at: http://{args.host}:{args.port}")
    print(f"🤖 Chat bot: {'ON' if args.bot else 'OFF'}")
    print(f"🔧 Debug mode: {'ON' if args.debug else 'OFF'}")
    try:
        # The reloader would start a second orchestrator and bot poller
        app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)
    finally:
        orchestrator.shutdown(wait=False)

if __name__ == "__main__":
    main()
