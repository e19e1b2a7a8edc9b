import pytest

from kubestack.aws.polling import Poller, PollCancelled, PollTimeout
from kubestack.observers.dispatcher import EventBus
from kubestack.observers.events import WaiterSucceeded, WaiterTimedOut

CTX = {"ts": "", "run_id": "r", "env": "test", "cluster": "prod"}


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def _poller(attempts=3, pause=lambda s: False, bus=None):
    beats = []
    poller = Poller(
        name="x", interval=0, attempts=attempts,
        pause=pause, heartbeat=lambda *d: beats.append(d),
        bus=bus, event_ctx=CTX,
    )
    return poller, beats


def test_returns_first_non_none_and_heartbeats_each_attempt():
    cap = Capture()
    poller, beats = _poller(bus=EventBus([cap]))
    assert poller.run(lambda n: "done" if n == 2 else None) == "done"
    assert beats == [("x", 1), ("x", 2)]
    assert next(e for e in cap.events if isinstance(e, WaiterSucceeded)).attempts == 2


def test_gives_up_after_attempts():
    cap = Capture()
    poller, beats = _poller(attempts=3, bus=EventBus([cap]))
    with pytest.raises(PollTimeout) as err:
        poller.run(lambda n: None)
    assert err.value.attempts == 3
    assert len(beats) == 3
    assert any(isinstance(e, WaiterTimedOut) for e in cap.events)


def test_cancelled_pause_stops_polling():
    poller, beats = _poller(pause=lambda s: True)
    with pytest.raises(PollCancelled):
        poller.run(lambda n: None)
    assert len(beats) == 1


def test_check_errors_propagate():
    poller, _ = _poller()

    def boom(n):
        raise ValueError("bad")

    with pytest.raises(ValueError):
        poller.run(boom)
