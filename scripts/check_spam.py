"""
scripts/check_spam.py — Print the spam verdict for a piece of text.

Useful when tuning SPAM_SCORE_THRESHOLD against real submissions.

Usage:
    python scripts/check_spam.py "FREE MONEY!!! www.spam.biz CLICK HERE NOW!!!"
    cat message.txt | python scripts/check_spam.py
    python scripts/check_spam.py --threshold 12 "..."
"""

import argparse
import logging
import os
import sys
from dataclasses import replace

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from app.config import settings
from app.security.spam import DEFAULT_RULES, analyze_content


def main() -> int:
    parser = argparse.ArgumentParser(description="Score text with the spam analyzer.")
    parser.add_argument("text", nargs="?", help="Text to check (reads stdin if omitted)")
    parser.add_argument(
        "--threshold",
        type=int,
        default=settings.spam_score_threshold,
        help=f"Spam threshold (default: {settings.spam_score_threshold})",
    )
    args = parser.parse_args()

    text = args.text if args.text is not None else sys.stdin.read()
    if not text.strip():
        logger.error("Nothing to check.")
        return 2

    verdict = analyze_content(text, replace(DEFAULT_RULES, threshold=args.threshold))

    print(f"\n{'─' * 50}")
    print(f"  Spam       : {'YES' if verdict.is_spam else 'no'}")
    print(f"  Score      : {verdict.score} (threshold {args.threshold})")
    print(f"  Confidence : {verdict.confidence}%")
    for reason in verdict.reasons:
        print(f"    • {reason}")
    print(f"{'─' * 50}\n")

    return 1 if verdict.is_spam else 0


if __name__ == "__main__":
    sys.exit(main())
