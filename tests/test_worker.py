from caption_relay.common import PresenceAction
from caption_relay.relay.config import SessionConfig
from caption_relay.relay.handlers import TranscriptionSessionManager
from caption_relay.relay.worker import Worker


def make_worker(broker, service, channels, clock, idle_timeout=60.0):
    manager = TranscriptionSessionManager(
        broker, service, channels, idle_timeout=idle_timeout, clock=clock
    )
    config = SessionConfig(idle_timeout_seconds=idle_timeout, sweep_interval_seconds=5)
    return Worker(broker, manager, config), manager


def test_interrupt_releases_sessions_and_closes_broker(
    broker, transcription_service, channels, clock
):
    worker, _ = make_worker(broker, transcription_service, channels, clock)
    broker.on_consume = lambda: broker.emit_presence(
        "request-channel", PresenceAction.ENTER, "alice"
    )
    broker.consume_error = KeyboardInterrupt()

    worker.start()

    assert transcription_service.sessions[0].close_calls == 1
    assert broker.subscriptions == {}
    assert broker.closed


def test_sweep_reaps_idle_sessions_and_reschedules(
    broker, transcription_service, channels, clock
):
    worker, manager = make_worker(broker, transcription_service, channels, clock)
    observed = {}

    def run_loop():
        broker.emit_presence("request-channel", PresenceAction.ENTER, "alice")
        delay, sweep = broker.timers[0]
        observed["delay"] = delay
        clock.advance(61)
        sweep()
        observed["active"] = manager.active_participants()
        observed["timers"] = len(broker.timers)

    broker.on_consume = run_loop

    worker.start()

    assert observed == {"delay": 5, "active": [], "timers": 2}
    assert transcription_service.sessions[0].close_calls == 1


def test_no_sweep_when_idle_timeout_disabled(
    broker, transcription_service, channels, clock
):
    worker, _ = make_worker(
        broker, transcription_service, channels, clock, idle_timeout=0
    )

    worker.start()

    assert broker.timers == []
    assert broker.closed
