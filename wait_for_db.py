import logging
import os
import time
from urllib.parse import urlparse

import psycopg2

logger = logging.getLogger("wait_for_db")


def wait(database_url: str | None = None, timeout_s: int | None = None) -> None:
    """Block until Postgres accepts connections. SQLite URLs return immediately."""
    database_url = database_url or os.getenv("DATABASE_URL")
    if not database_url:
        raise SystemExit("DATABASE_URL is not set")
    if database_url.startswith("sqlite"):
        return
    if timeout_s is None:
        timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))

    # SQLAlchemy URL may start with postgresql+psycopg2:// or postgres://
    url = database_url.replace("postgresql+psycopg2://", "postgresql://").replace("postgres://", "postgresql://")
    p = urlparse(url)
    host = p.hostname or "db"
    port = p.port or 5432
    dbname = (p.path or "/raygreen").lstrip("/") or "raygreen"

    logger.info("Waiting for Postgres at %s:%s db=%s (timeout=%ss)", host, port, dbname, timeout_s)
    start = time.time()
    while True:
        try:
            conn = psycopg2.connect(host=host, port=port, user=p.username or "raygreen",
                                    password=p.password or "raygreen", dbname=dbname)
            conn.close()
            logger.info("Postgres is ready.")
            return
        except psycopg2.OperationalError as e:
            if time.time() - start > timeout_s:
                logger.error("Timed out waiting for DB. Last error: %s", e)
                raise
            time.sleep(1)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    wait()
