# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cluster/providers.py

"""
Closed set of provider variants.

Each variant declares what it can do; activities ask for a capability and
get an ``UnsupportedProviderError`` when the cluster's provider lacks it.
"""

from __future__ import annotations

from typing import ClassVar, Dict, Type

from kubestack.errors import UnsupportedProviderError

from .accessor import ClusterAccessor
from .bootstrap import BootstrapContext, bootstrap_command
from .models import ClusterNetwork, ClusterRecord, NodePoolSpec


class Provider:
    kind: ClassVar[str] = ""
    cloud_provider: ClassVar[str] = ""

    def __init__(self, record: ClusterRecord):
        self.record = record

    def _unsupported(self, capability: str) -> UnsupportedProviderError:
        return UnsupportedProviderError(
            f"cluster {self.record.name} (provider {self.kind}) does not support {capability}"
        )

    def bootstrap_command(self, ctx: BootstrapContext, pool: NodePoolSpec) -> str:
        raise self._unsupported("node bootstrap")

    def save_network(self, clusters: ClusterAccessor, network: ClusterNetwork) -> None:
        raise self._unsupported("network persistence")

    def aws_credentials(self) -> tuple[str, str, str]:
        """(organization, secret, region) for the cloud client factory."""
        raise self._unsupported("AWS access")


class PkeOnAws(Provider):
    kind = "pke-aws"
    cloud_provider = "aws"

    def bootstrap_command(self, ctx: BootstrapContext, pool: NodePoolSpec) -> str:
        return bootstrap_command(ctx, pool)

    def save_network(self, clusters: ClusterAccessor, network: ClusterNetwork) -> None:
        record = clusters.get_cluster(self.record.id)
        record.network = network
        clusters.persist(record)
        self.record = record

    def aws_credentials(self) -> tuple[str, str, str]:
        return self.record.org_id, self.record.secret_id, self.record.region


class PkeOnPrem(Provider):
    """Bare-metal/vSphere PKE: nodes bootstrap the same way, no cloud API."""

    kind = "pke-onprem"

    def bootstrap_command(self, ctx: BootstrapContext, pool: NodePoolSpec) -> str:
        return bootstrap_command(ctx, pool)


PROVIDERS: Dict[str, Type[Provider]] = {cls.kind: cls for cls in (PkeOnAws, PkeOnPrem)}


def provider_for(record: ClusterRecord) -> Provider:
    try:
        return PROVIDERS[record.provider](record)
    except KeyError:
        raise UnsupportedProviderError(
            f"cluster {record.name} has unknown provider {record.provider!r}"
        ) from None
