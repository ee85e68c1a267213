"""Uvicorn server runner sharing the service logging setup."""

from typing import Any

import uvicorn

from sessionguard.app import App
from sessionguard.config import Config
from sessionguard.web.server import create_fastapi_app


def uvicorn_log_config(debug: bool) -> dict[str, Any]:
    """Route uvicorn loggers to the root handler installed by setup_logging.

    Access lines are only emitted in debug.
    """
    level = "DEBUG" if debug else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "loggers": {
            "uvicorn": {"level": level, "handlers": [], "propagate": True},
            "uvicorn.error": {"level": level, "handlers": [], "propagate": True},
            "uvicorn.access": {"level": level if debug else "WARNING", "handlers": [], "propagate": True},
        },
    }


def run_server(app: App, config: Config) -> None:
    fastapi_app = create_fastapi_app(app, config)
    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=uvicorn_log_config(config.debug),
        access_log=config.debug,
    )
