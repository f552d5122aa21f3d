"""
Reset the progress database.

DANGEROUS: This deletes all review history!
Only use when you want to start fresh for testing.

Usage:
    python -m scripts.reset_progress_db
    python -m scripts.reset_progress_db --database-url sqlite:///logs/recall_db.sqlite
"""

import argparse
import logging

from recall_engine import fsrs
from recall_engine.config import configure_logging, get_database_url

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Reset the progress database")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    configure_logging()
    database_url = args.database_url or get_database_url()

    print("=" * 60)
    print("WARNING: Reset Progress Database")
    print("=" * 60)
    print()
    print("This will DELETE all review history:")
    print("  - All word progress (stability, difficulty, due dates, etc.)")
    print("  - All study logs")
    print()

    if not args.yes:
        response = input("Are you sure you want to reset? (type 'yes' to confirm): ")
        if response.lower() != "yes":
            print("\nCancelled. No changes made.")
            return

    logger.info("Resetting progress database")
    fsrs.reset_db(database_url)
    print("Database reset complete. Tables are empty and ready for new reviews.")


if __name__ == "__main__":
    main()
