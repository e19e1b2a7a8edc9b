# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/activities/base.py

from __future__ import annotations

from dataclasses import dataclass, field

import boto3
from temporalio import activity

from kubestack.aws import naming
from kubestack.aws.session import SessionFactory
from kubestack.aws.stacks import StackManager
from kubestack.cluster.accessor import ClusterAccessor
from kubestack.cluster.models import ClusterRecord
from kubestack.cluster.providers import Provider, provider_for
from kubestack.cluster.secrets import SecretStore
from kubestack.config.models import ProvisionerConfig
from kubestack.observers.dispatcher import EventBus
from kubestack.observers.events import new_ctx


@dataclass
class ActivityDeps:
    config: ProvisionerConfig
    sessions: SessionFactory
    clusters: ClusterAccessor
    secrets: SecretStore
    bus: EventBus = field(default_factory=EventBus)


class Activities:
    """Shared plumbing for the activity groups: records, providers, sessions, tokens."""

    def __init__(self, deps: ActivityDeps):
        self.deps = deps
        self.config = deps.config

    def cluster(self, cluster_id: str) -> ClusterRecord:
        return self.deps.clusters.get_cluster(cluster_id)

    def provider(self, cluster_id: str) -> Provider:
        return provider_for(self.cluster(cluster_id))

    def session(self, record: ClusterRecord) -> boto3.Session:
        org_id, secret_id, region = provider_for(record).aws_credentials()
        return self.deps.sessions.session(org_id, secret_id, region)

    def event_ctx(self, record: ClusterRecord) -> dict:
        return new_ctx(self.config.environment, record.name, activity.info().workflow_run_id)

    def token(self, *extra: str) -> str:
        info = activity.info()
        return naming.request_token(info.workflow_id, info.activity_id, *extra)

    def stacks(self, record: ClusterRecord, session: boto3.Session | None = None) -> StackManager:
        session = session or self.session(record)
        return StackManager(
            session.client("cloudformation"),
            templates_dir=self.config.templates_dir,
            polling=self.config.polling,
            bus=self.deps.bus,
            event_ctx=self.event_ctx(record),
        )
