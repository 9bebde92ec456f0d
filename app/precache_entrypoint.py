"""Pre-cache entrypoint - rebuild the response cache once.

Usage:
    python -m app.precache_entrypoint
"""

import sys

from app.core.logging import get_logger
from app.main import run_precache

logger = get_logger("precache_entrypoint")


def main():
    """Rebuild every cache family; exit 1 on failure."""
    logger.info("Pre-cache starting...")
    try:
        keys = run_precache()
    except Exception as exc:
        logger.exception(f"Pre-cache failed: {exc}")
        sys.exit(1)

    logger.info(f"Pre-cache completed: {len(keys)} keys written")
    return keys


if __name__ == "__main__":
    main()
