# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/settings.py

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class TemporalSettings:
    address: str
    namespace: str
    task_queue: str


def load_temporal_settings() -> TemporalSettings:
    # sensible defaults for dev; override via env
    return TemporalSettings(
        address=os.getenv("TEMPORAL_ADDRESS", "localhost:7233"),
        namespace=os.getenv("TEMPORAL_NAMESPACE", "default"),
        task_queue=os.getenv("KUBESTACK_TASK_QUEUE", "kubestack.provisioning"),
    )
