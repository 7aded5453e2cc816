# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Delete refresh sessions whose stored expiry has passed."""

from __future__ import annotations

import argparse

from authsvc.infrastructure.container import Container
from authsvc.shared.config import load_config
from authsvc.shared.logging import setup_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge expired refresh sessions")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL for this run",
    )
    args = parser.parse_args(argv)

    config = load_config()
    if args.database_url:
        config = config.model_copy(
            update={"database": config.database.model_copy(update={"url": args.database_url})}
        )
    setup_logging(config.log_level, config.log_file)

    container = Container(config)
    try:
        removed = container.token_service.purge_expired_sessions()
    finally:
        container.close()
    print(f"Removed {removed} expired sessions")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
