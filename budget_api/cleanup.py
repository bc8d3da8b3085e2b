# budget_api/cleanup.py
"""
One-shot cleanup of expired blacklisted tokens, for cron.

Usage:
  budget-api-cleanup            # installed console script
  python -m budget_api.cleanup

Example crontab (02:00 daily):
  0 2 * * * cd /srv/budget-api && budget-api-cleanup
"""

from __future__ import annotations

import logging
import sys

from budget_api.config import get_settings
from budget_api.db import Database
from budget_api.observability import configure_logging
from budget_api.services.tokens import cleanup_expired_tokens

logger = logging.getLogger("budget_api.cleanup")


def main() -> int:
    configure_logging()
    logger.info("Starting token blacklist cleanup...")
    db = Database(get_settings().database_url)
    try:
        with db.session() as session:
            removed = cleanup_expired_tokens(session)
    except Exception:
        logger.exception("Cleanup failed")
        return 1
    finally:
        db.dispose()
    logger.info("Cleanup complete. Removed %s expired token(s).", removed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
