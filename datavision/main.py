"""Command-line runner for the datavision API server."""
from __future__ import annotations

import logging

import uvicorn

from .config import get_settings

logger = logging.getLogger(__name__)


def run() -> None:
    s = get_settings()
    logging.basicConfig(
        level=getattr(logging, s.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Data Vision API listening on http://%s:%d", s.host, s.port)
    uvicorn.run("datavision.app:app", host=s.host, port=s.port, log_level=s.log_level.lower())


if __name__ == "__main__":
    run()
