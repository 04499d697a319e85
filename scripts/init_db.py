#!/usr/bin/env python3
"""
Create the training tables.

Usage:
    python scripts/init_db.py
    DATABASE_URL=sqlite:///liftcycle.db python scripts/init_db.py

Tables are created with SQLAlchemy's create_all; existing tables are left
untouched.
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create database tables for the training core.")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    setup_logging(level="DEBUG" if args.verbose else None)

    from core.database import DATABASE_URL, init_db

    init_db()
    logger.info(f"Tables created on {DATABASE_URL.split('@')[-1]}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
