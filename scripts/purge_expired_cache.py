"""Delete expired rows from the places cache table."""

import logging

from directory_search.core import db


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    if not db.is_available():
        logging.getLogger(__name__).warning("DATABASE_URL is not set; nothing to purge.")
        raise SystemExit(0)
    deleted = db.PostgresCacheStore().purge_expired()
    print("Purged", deleted, "expired cache rows")


if __name__ == "__main__":
    main()
