# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/status.py

from __future__ import annotations

from typing import Any, Awaitable

from .failures import describe
from .models import ProvisioningStatus


class Stages:
    """Tracks the stage a workflow is in for its ``status`` query."""

    def __init__(self, status: ProvisioningStatus):
        self.status = status

    def start(self, message: str) -> None:
        self.status.phase = "RUNNING"
        self.status.message = message

    async def run(self, name: str, aw: Awaitable[Any], *, tolerate: bool = False) -> Any:
        self.status.current_stage = name
        self.status.message = f"Running stage: {name}"
        try:
            result = await aw
        except Exception as e:
            if tolerate:
                self.status.skipped_stages.append(name)
                self.status.message = f"Stage skipped after failure: {name}: {describe(e)}"
                raise
            self.status.phase = "FAILED"
            self.status.error = describe(e)
            self.status.message = f"Stage failed: {name}"
            raise
        self.status.completed_stages.append(name)
        return result

    def finish(self, message: str) -> None:
        self.status.phase = "SUCCEEDED"
        self.status.current_stage = None
        self.status.message = message
