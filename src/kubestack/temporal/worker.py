# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/worker.py

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import Optional

from temporalio.worker import Worker

from kubestack.aws.session import SessionFactory
from kubestack.cluster.accessor import YamlClusterStore
from kubestack.cluster.secrets import YamlSecretStore
from kubestack.config.loader import load_config
from kubestack.config.models import ProvisionerConfig
from kubestack.observers.dispatcher import EventBus
from kubestack.observers.logger import LoggerObserver

from .activities.base import ActivityDeps
from .activities.registry import build_activities
from .client import get_temporal_client
from .settings import TemporalSettings, load_temporal_settings
from .workflows.create_cluster import CreateClusterWorkflow
from .workflows.delete_cluster import DeleteClusterWorkflow
from .workflows.delete_infra import DeleteInfrastructureWorkflow
from .workflows.k8s_resources import DeleteK8sResourcesWorkflow
from .workflows.update_cluster import UpdateClusterWorkflow

log = logging.getLogger("kubestack")

WORKFLOWS = [
    CreateClusterWorkflow,
    UpdateClusterWorkflow,
    DeleteClusterWorkflow,
    DeleteInfrastructureWorkflow,
    DeleteK8sResourcesWorkflow,
]


def build_deps(config: ProvisionerConfig, bus: Optional[EventBus] = None) -> ActivityDeps:
    """Stores, session factory and event bus the activities run against."""
    secrets = YamlSecretStore(config.stores.secrets_dir)
    return ActivityDeps(
        config=config,
        sessions=SessionFactory(secrets),
        clusters=YamlClusterStore(config.stores.clusters_dir),
        secrets=secrets,
        bus=bus or EventBus([LoggerObserver(log)]),
    )


async def run_worker(
    config: ProvisionerConfig,
    *,
    settings: Optional[TemporalSettings] = None,
    bus: Optional[EventBus] = None,
    max_workers: int = 16,
) -> None:
    settings = settings or load_temporal_settings()
    client = await get_temporal_client(settings)
    deps = build_deps(config, bus)

    # activities block on cloud APIs and poll loops
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as activity_executor:
        worker = Worker(
            client,
            task_queue=settings.task_queue,
            workflows=WORKFLOWS,
            activities=build_activities(deps),
            activity_executor=activity_executor,
        )
        log.info(
            "kubestack worker starting address=%s ns=%s tq=%s",
            settings.address,
            settings.namespace,
            settings.task_queue,
        )
        # blocks until SIGINT / SIGTERM
        await worker.run()


def main() -> None:
    asyncio.run(run_worker(load_config()))


if __name__ == "__main__":
    main()
