"""ContentFlow - HTTP API entry point."""
import logging
import sys

import uvicorn

import db
from config import settings

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def main() -> None:
    db.CostStore()  # creates the schema
    logger.info("Cost ledger initialized at %s.", settings.db_path)
    logger.info("Serving on http://%s:%d", settings.api_host, settings.api_port)
    uvicorn.run("api.app:app", host=settings.api_host, port=settings.api_port, log_config=None)


if __name__ == "__main__":
    main()
