"""Uvicorn runner for the dbview API."""

import copy
from typing import Any

import structlog
import uvicorn
from uvicorn.config import LOGGING_CONFIG

from dbview.app import App
from dbview.config import Config
from dbview.web.server import create_fastapi_app

logger = structlog.get_logger(__name__)


def uvicorn_log_config(debug: bool) -> dict[str, Any]:
    """Uvicorn logging config with timestamped lines; access lines are only kept in debug mode."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    log_config["loggers"]["uvicorn.access"]["level"] = "INFO" if debug else "WARNING"
    return log_config


def run_server(app: App, config: Config) -> None:
    fastapi_app = create_fastapi_app(app, config)
    logger.info("server_starting", host=config.host, port=config.port, debug=config.debug)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=uvicorn_log_config(config.debug),
        access_log=config.debug,
    )
