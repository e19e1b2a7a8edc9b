# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/handshake.py

"""
Master readiness rendezvous.

After the master stack is up, the create workflow waits for the node's
bootstrap agent to report ``node-ready`` or ``node-bootstrap-failed``.
Whichever of ready, failed or the timeout comes first decides; anything
after that is ignored.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Optional

from temporalio import workflow
from temporalio.exceptions import ApplicationError

from kubestack.errors import MASTER_BOOTSTRAP_FAILED, MASTER_READY_TIMEOUT

READY = "ready"
FAILED = "failed"
TIMED_OUT = "timed-out"


class MasterReadiness:
    def __init__(self) -> None:
        self.outcome: Optional[str] = None
        self.message: str = ""

    @property
    def resolved(self) -> bool:
        return self.outcome is not None

    def _resolve(self, outcome: str, message: str = "") -> bool:
        if self.resolved:
            return False
        self.outcome = outcome
        self.message = message
        return True

    def ready(self) -> bool:
        """Returns False when the race was already decided."""
        return self._resolve(READY)

    def failed(self, message: str) -> bool:
        return self._resolve(FAILED, message)

    def expire(self) -> bool:
        return self._resolve(TIMED_OUT)

    def check(self) -> None:
        if self.outcome == READY:
            return
        if self.outcome == FAILED:
            raise ApplicationError(
                f"failed to start master node: {self.message}",
                type=MASTER_BOOTSTRAP_FAILED,
                non_retryable=True,
            )
        raise ApplicationError(
            "timeout while waiting for signal", type=MASTER_READY_TIMEOUT, non_retryable=True
        )


async def wait_for_master(readiness: MasterReadiness, timeout: timedelta) -> None:
    try:
        await workflow.wait_condition(lambda: readiness.resolved, timeout=timeout)
    except asyncio.TimeoutError:
        readiness.expire()
    readiness.check()
