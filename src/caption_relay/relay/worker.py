"""Worker that runs the session manager on the broker loop."""

from caption_relay.common import setup_logging
from caption_relay.common.infrastructure.interfaces import PubSubBroker

from .config import SessionConfig
from .handlers import TranscriptionSessionManager

logger = setup_logging()


class Worker:
    """Consumes presence and audio messages and supervises idle sessions."""

    def __init__(
        self,
        broker: PubSubBroker,
        manager: TranscriptionSessionManager,
        config: SessionConfig,
    ):
        self._broker = broker
        self._manager = manager
        self._config = config

    def start(self) -> None:
        """Starts consuming until interrupted, then releases every session."""
        logger.info("Worker initialized, starting message consumption")
        self._manager.start()
        self._schedule_sweep()

        try:
            self._broker.consume()
        except KeyboardInterrupt:
            logger.info("Worker interrupted, shutting down")
        finally:
            self._manager.shutdown()
            self._broker.close()

    def _schedule_sweep(self) -> None:
        if self._config.idle_timeout_seconds > 0:
            self._broker.call_later(self._config.sweep_interval_seconds, self._sweep)

    def _sweep(self) -> None:
        released = self._manager.reap_idle()
        if released:
            logger.info("Idle sessions released", extra={"participants": released})
        self._schedule_sweep()
