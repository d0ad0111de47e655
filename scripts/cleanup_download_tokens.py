"""
Name: Download Token Cleanup Script

Responsibilities:
  - Remove expired and/or already used download tokens
  - Run as the system actor (cron / scheduled job)
  - Print the number of removed rows per category
"""

from __future__ import annotations

import argparse
import os
import sys
from uuid import uuid4

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from docshare.container import get_cleanup_download_tokens_use_case  # noqa: E402
from docshare.context import operation_context  # noqa: E402
from docshare.crosscutting.config import get_settings  # noqa: E402
from docshare.crosscutting.logger import logger  # noqa: E402
from docshare.infrastructure.db import close_pool, init_pool  # noqa: E402


def _parse_args() -> argparse.Namespace:
    argv = sys.argv[1:]
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Delete expired and used download tokens."
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--expired-only",
        action="store_true",
        help="Only delete tokens past their expiration",
    )
    group.add_argument(
        "--used-only",
        action="store_true",
        help="Only delete tokens that were already redeemed",
    )
    return parser.parse_args(argv)


def main() -> None:
    args = _parse_args()
    settings = get_settings()
    init_pool(settings.database_url, min_size=1, max_size=2)
    try:
        with operation_context(request_id=f"cleanup-{uuid4()}"):
            result = get_cleanup_download_tokens_use_case().execute(
                None,
                expired=not args.used_only,
                used=not args.expired_only,
            )
    finally:
        close_pool()

    if result.error is not None:
        logger.error(
            "Download token cleanup failed",
            extra={
                "error_code": result.error.code.value,
                "expired_removed": result.expired_removed,
                "used_removed": result.used_removed,
            },
        )
        raise SystemExit(
            f"Cleanup failed: {result.error.message} "
            f"(expired={result.expired_removed} used={result.used_removed} already removed)"
        )

    print(
        "Removed download tokens: "
        f"expired={result.expired_removed} used={result.used_removed}"
    )


if __name__ == "__main__":
    main()
