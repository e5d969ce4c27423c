"""
Driver for posting to a Slack thread
------------------------------------
Sends a message and/or files to one Slack thread and prints the thread
timestamp, so later runs can keep replying in the same thread.

Usage:
  python -m src.drivers.slack_post --channel C0123 --text "Nightly run finished"
  python -m src.drivers.slack_post --channel C0123 --thread-ts 1712345678.000100 --file outputs/report.csv
  python -m src.drivers.slack_post --text "Results" --file a.log --file b.log --comment "Raw logs"
"""

import argparse
import logging
import sys

from src.core import SlackConfig
from src.integrations.slack import SlackError, SlackThread, post_file, send_message

# Configure logger
logging.basicConfig(level=logging.INFO, format="🔹 %(message)s")
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Post a message and/or files to a Slack thread.")
    parser.add_argument("--channel", default=None, help="Channel ID (default: SLACK_DEFAULT_CHANNEL)")
    parser.add_argument("--text", default=None, help="Message text")
    parser.add_argument(
        "--file",
        dest="files",
        action="append",
        default=[],
        help="File to upload into the thread (repeatable)",
    )
    parser.add_argument("--thread-ts", default=None, help="Reply in an existing thread")
    parser.add_argument("--comment", default=None, help="Comment attached to uploaded files")
    args = parser.parse_args(argv)

    if not args.text and not args.files:
        parser.error("nothing to send: pass --text and/or --file")

    config = SlackConfig.from_env()
    thread = SlackThread(channel=args.channel or config.default_channel, ts=args.thread_ts)
    logger.info("🚀 Posting to Slack channel=%s thread_ts=%s", thread.channel, thread.ts)

    try:
        if args.text:
            send_message(thread, args.text, config=config)
        for path in args.files:
            if post_file(thread, path, comment=args.comment, config=config) is not None:
                logger.info(f"📎 Uploaded {path}")
    except SlackError as e:
        logger.error(f"❌ Slack post failed: {e}")
        return 1

    print(thread.ts or "")
    return 0


if __name__ == "__main__":
    sys.exit(main())
