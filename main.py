"""Entry point for the ACS token exchange service.

Execution flow:
 1. Load configuration (Entra ID app registration + ACS resource + server settings).
 2. Configure logging.
 3. Validate that every required setting is present; exit early if not.
 4. Build the FastAPI app (the ACS identity client is created once at startup).
 5. Serve it with uvicorn.
"""

import logging
import sys
from typing import Optional

import uvicorn

from acs_exchange.api import create_app
from acs_exchange.config import AppConfig
from acs_exchange.errors import ConfigurationMissing
from acs_exchange.logging_config import configure_logging

logger = logging.getLogger("acs_exchange")


def main(config_path: Optional[str] = None) -> int:
    cfg = AppConfig.load(config_path)
    configure_logging(cfg.server.log_level)
    try:
        cfg.validate()
    except ConfigurationMissing as e:
        logger.error("%s", e.message)
        return 1

    app = create_app(cfg)
    logger.info("Listening on %s:%d", cfg.server.host, cfg.server.port)
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port, log_config=None)
    return 0


if __name__ == "__main__":
    path = None
    if len(sys.argv) > 1:
        path = sys.argv[1]
    raise SystemExit(main(path))
