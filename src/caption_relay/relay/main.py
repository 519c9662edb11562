"""
Transcription Relay Service.

Entry point for the live transcription relay.
"""

import ddtrace.auto  # noqa: F401

import signal
import sys

from caption_relay.common import ConfigurationError, setup_logging
from caption_relay.relay.dependencies import get_worker

logger = setup_logging()


def main():
    """Starts the worker."""
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    try:
        worker = get_worker()
    except ConfigurationError as e:
        logger.critical("Invalid configuration", extra={"missing": e.missing})
        sys.exit(1)

    worker.start()


if __name__ == "__main__":
    main()
