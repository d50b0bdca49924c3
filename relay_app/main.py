"""Process entry point: load config, build the engine, serve HTTP."""

import sys
from typing import Optional

import structlog
import uvicorn

from .api import create_app
from .config import ConfigLoader, ConfigValidator, build_config
from .engine import RelayEngine
from .logging import configure_logging

logger = structlog.get_logger(__name__)


def main(config_dir: Optional[str] = None) -> int:
    loader = ConfigLoader.create(config_dir)
    merged = loader.merge_config()

    # Logging settings are only trusted once the whole config validates
    errors = ConfigValidator.validate_config(merged)
    if errors:
        configure_logging()
        for error in errors:
            logger.error("Invalid configuration", field=error.field,
                         message=error.message, value=error.value)
        return 1

    configure_logging(
        level=merged["logging"]["level"],
        format_json=merged["logging"]["format_json"],
    )

    config = build_config(merged)
    engine = RelayEngine(config)

    uvicorn.run(create_app(engine), host=config.server.host, port=config.server.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
