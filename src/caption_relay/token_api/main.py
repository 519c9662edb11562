"""FastAPI application entry point."""

import ddtrace.auto  # noqa: F401

import os
import sys

import uvicorn
from fastapi import FastAPI

from caption_relay.common import ConfigurationError, setup_logging
from caption_relay.token_api.dependencies import get_config
from caption_relay.token_api.routes import token_router

logger = setup_logging()

app = FastAPI(title="Caption Token API")
app.include_router(token_router)


def run():
    """Validates configuration and serves the API with uvicorn."""
    try:
        get_config()
    except ConfigurationError as e:
        logger.critical("Invalid configuration", extra={"missing": e.missing})
        sys.exit(1)

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    run()
