"""
Export the contact-form inbox as JSON, newest message first.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_backend.dependencies import get_message_service
from portfolio_backend.messages import MessageService

logger = logging.getLogger(__name__)


def export_messages(
    service: MessageService, *, unread_only: bool = False
) -> list[dict]:
    messages = service.list_all()
    if unread_only:
        messages = [m for m in messages if not m.read]
    return [m.as_dict() for m in messages]


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip())
    parser.add_argument("--output", type=Path, default=None, help="Write to this file instead of stdout.")
    parser.add_argument("--unread-only", action="store_true")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    payload = export_messages(get_message_service(), unread_only=args.unread_only)
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %d messages to %s", len(payload), args.output)
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
