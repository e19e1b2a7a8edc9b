# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/client.py

from __future__ import annotations

from temporalio.client import Client

from .settings import TemporalSettings, load_temporal_settings


async def get_temporal_client(settings: TemporalSettings | None = None) -> Client:
    s = settings or load_temporal_settings()
    return await Client.connect(s.address, namespace=s.namespace)
