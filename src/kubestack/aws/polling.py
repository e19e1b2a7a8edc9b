# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/polling.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from temporalio import activity
from temporalio.exceptions import CancelledError

from kubestack.observers.dispatcher import EventBus
from kubestack.observers.events import WaiterCancelled, WaiterStarted, WaiterSucceeded, WaiterTimedOut

T = TypeVar("T")


class PollTimeout(Exception):
    def __init__(self, name: str, attempts: int):
        super().__init__(f"{name}: gave up after {attempts} attempts")
        self.name = name
        self.attempts = attempts


class PollCancelled(CancelledError):
    pass


def activity_pause(seconds: float) -> bool:
    """Sleep inside a running activity; returns True when the activity got cancelled."""
    activity.wait_for_cancelled_sync(timeout=seconds)
    return activity.is_cancelled()


def activity_heartbeat(*details: Any) -> None:
    activity.heartbeat(*details)


@dataclass
class Poller:
    """
    Bounded poll loop: at most ``attempts`` checks, ``interval`` seconds apart.

    ``check`` returns None to keep polling, any other value to finish, and
    raises to abort. Every attempt heartbeats; every pause is a cancellation
    point.
    """

    name: str
    interval: float
    attempts: int
    pause: Callable[[float], bool] = activity_pause
    heartbeat: Callable[..., None] = activity_heartbeat
    bus: Optional[EventBus] = None
    event_ctx: Optional[dict] = None

    def _emit(self, cls, **kw) -> None:
        if self.bus is not None and self.event_ctx is not None:
            self.bus.emit(cls(**self.event_ctx, name=self.name, **kw))

    def run(self, check: Callable[[int], Optional[T]]) -> T:
        self._emit(WaiterStarted, attempts=self.attempts, interval_s=self.interval)
        for attempt in range(1, self.attempts + 1):
            self.heartbeat(self.name, attempt)
            result = check(attempt)
            if result is not None:
                self._emit(WaiterSucceeded, attempts=attempt)
                return result
            if attempt == self.attempts:
                break
            if self.pause(self.interval):
                self._emit(WaiterCancelled, attempts=attempt)
                raise PollCancelled(self.name)
        self._emit(WaiterTimedOut, attempts=self.attempts)
        raise PollTimeout(self.name, self.attempts)
