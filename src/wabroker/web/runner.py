"""Uvicorn server runner with custom configuration."""

import copy
from typing import Any

import structlog
import uvicorn
from uvicorn.config import LOGGING_CONFIG

from wabroker.app import App
from wabroker.config import Config
from wabroker.web.server import create_fastapi_app

logger = structlog.get_logger(__name__)


def build_log_config(debug: bool) -> dict[str, Any]:
    """Uvicorn logging config with compact formats; debug also raises uvicorn's own level."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    log_config["loggers"]["uvicorn"]["level"] = "DEBUG" if debug else "INFO"
    return log_config


def run_server(app: App, config: Config) -> None:
    """Serve the API until interrupted, then close every live session."""
    fastapi_app = create_fastapi_app(app, config)

    logger.info("server_starting", host=config.host, port=config.port, backend=config.client_factory)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=build_log_config(config.debug),
        access_log=True,
        timeout_graceful_shutdown=int(config.shutdown_timeout),
    )
