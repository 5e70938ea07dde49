"""tri-provider-playground entrypoint."""
from __future__ import annotations

import logging

from aiohttp import web

from .app import create_app
from .config import AppConfig

logger = logging.getLogger("tri-provider")


def main() -> None:
    config = AppConfig.from_env()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    app = create_app(config)
    logger.info("tri-provider-playground listening on http://%s:%d", config.host, config.port)
    web.run_app(app, host=config.host, port=config.port, print=None)


if __name__ == "__main__":
    main()
