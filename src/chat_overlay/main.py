#!/usr/bin/env python3
"""Console preview for the chat overlay engine.

Reads chat lines from stdin and prints the messages the overlay would show::

    ann: hey all          -> NORMAL message from "ann"
    * ann waves           -> ACTION from "ann"
"""

import argparse
import logging
import sys
from pathlib import Path

from .chat.models import ChatEvent, ChatMessage, MessageType
from .core.models import CasingPolicy
from .core.settings import Settings


def setup_logging(level: int = logging.INFO) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Suppress noisy third-party loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def parse_console_line(line: str) -> ChatEvent | None:
    """Turn one line of console input into a chat event."""
    line = line.strip()
    if not line:
        return None
    if line.startswith("* "):
        sender, _, action = line[2:].partition(" ")
        if not sender:
            return None
        return ChatEvent(type=MessageType.ACTION, sender=sender, body=action)
    sender, sep, body = line.partition(":")
    if not sep or not sender.strip() or " " in sender.strip():
        return None
    return ChatEvent(type=MessageType.NORMAL, sender=sender.strip(), body=body.strip())


def format_message(message: ChatMessage) -> str:
    if message.is_action:
        return f"[{message.post_count}] * {message.display_username} {message.body}"
    return f"[{message.post_count}] {message.display_username}: {message.body}"


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(prog="chat-overlay", description=__doc__.splitlines()[0])
    parser.add_argument("--settings", type=Path, default=None, help="settings.json to load")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in CasingPolicy],
        default=None,
        help="override the username casing policy",
    )
    parser.add_argument("--infer", action="store_true", help="infer casing from message bodies")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    from .chat.engine import ChatEngine

    settings = Settings.load(args.settings)
    if args.policy:
        settings.message.casing_policy = CasingPolicy(args.policy)
    if args.infer:
        settings.message.infer_casing_from_body = True

    engine = ChatEngine(settings)
    engine.message_ready.connect(lambda message: print(format_message(message), flush=True))
    try:
        for line in sys.stdin:
            event = parse_console_line(line)
            if event is None:
                continue
            engine.dispatcher.dispatch(event)
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
