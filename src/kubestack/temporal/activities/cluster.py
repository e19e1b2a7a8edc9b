# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/activities/cluster.py

from __future__ import annotations

import secrets as pysecrets

from temporalio import activity

from kubestack.aws import dns, iam, naming
from kubestack.aws.session import ACCESS_KEY_ID, SECRET_ACCESS_KEY
from kubestack.cluster import secrets
from kubestack.cluster.models import ClusterNetwork
from kubestack.errors import KubeconfigNotReadyError, NotFoundError, classified
from kubestack.oidc.keycloak import KeycloakAdmin
from kubestack.temporal import names
from kubestack.temporal.models import (
    ClusterRef,
    NodePoolList,
    OIDCClient,
    SaveNetworkInput,
    SaveNodePoolsInput,
    UpdateStatusInput,
)

from .base import Activities


class ClusterActivities(Activities):
    """Cluster record, secrets and identity bookkeeping."""

    @activity.defn(name=names.UPDATE_STATUS)
    @classified
    def update_status(self, inp: UpdateStatusInput) -> None:
        self.deps.clusters.update_status(inp.cluster_id, inp.status, inp.message)

    @activity.defn(name=names.LIST_NODE_POOLS)
    @classified
    def list_node_pools(self, inp: ClusterRef) -> NodePoolList:
        return NodePoolList(pools=self.deps.clusters.get_node_pools(inp.cluster_id))

    @activity.defn(name=names.SAVE_NODE_POOLS)
    @classified
    def save_node_pools(self, inp: SaveNodePoolsInput) -> None:
        record = self.cluster(inp.cluster_id)
        record.node_pools = list(inp.pools)
        self.deps.clusters.persist(record)

    @activity.defn(name=names.SAVE_NETWORK)
    @classified
    def save_network(self, inp: SaveNetworkInput) -> None:
        network = ClusterNetwork(
            vpc_id=inp.vpc_id,
            subnet_ids=list(inp.subnet_ids),
            security_group_id=inp.security_group_id,
            api_address=inp.api_address,
            eip_allocation_id=inp.eip_allocation_id,
        )
        self.provider(inp.cluster_id).save_network(self.deps.clusters, network)

    @activity.defn(name=names.GENERATE_CERTIFICATES)
    @classified
    def generate_certificates(self, inp: ClusterRef) -> str:
        """Get-or-create the cluster CA secret; the node agent fills in the material."""
        record = self.cluster(inp.cluster_id)
        secret = self.deps.secrets.get_or_create(
            record.org_id,
            secrets.CreateSecretRequest(
                name=naming.ca_secret_name(record.id),
                type=secrets.PKE,
                tags=[secrets.cluster_uid_tag(record.uid), secrets.TAG_READONLY, secrets.TAG_HIDDEN],
            ),
        )
        return secret.id

    @activity.defn(name=names.FETCH_KUBECONFIG)
    @classified
    def fetch_kubeconfig(self, inp: ClusterRef) -> bool:
        """
        Copy the kubeconfig the master's bootstrap agent uploaded (secret
        ``cluster-<id>-kubeconfig``) onto the cluster record. Returns True
        when the record changed.
        """
        record = self.cluster(inp.cluster_id)
        name = naming.kubeconfig_secret_name(record.id)
        try:
            kubeconfig = self.deps.secrets.get_by_name(record.org_id, name).values.get(secrets.KUBECONFIG_KEY, "")
        except NotFoundError:
            kubeconfig = ""
        if not kubeconfig:
            raise KubeconfigNotReadyError(f"secret {name} holds no kubeconfig yet")
        if record.kubeconfig == kubeconfig:
            return False
        record.kubeconfig = kubeconfig
        self.deps.clusters.persist(record)
        return True

    @activity.defn(name=names.CREATE_USER_ACCESS_KEY)
    @classified
    def create_user_access_key(self, inp: ClusterRef) -> str:
        """
        IAM user named after the cluster with one access key, kept as
        ``<cluster>-key``. A stored key that IAM still knows is reused.
        Otherwise the user's other keys are deleted first: their secret half
        was lost, and IAM allows only two keys per user.
        """
        record = self.cluster(inp.cluster_id)
        secret_name = naming.access_key_secret_name(record.name)
        client = self.session(record).client("iam")
        iam.ensure_user(client, record.name, record.name)
        existing = iam.access_key_ids(client, record.name)

        try:
            stored = self.deps.secrets.get_by_name(record.org_id, secret_name)
        except NotFoundError:
            stored = None
        if stored is not None and stored.values.get(ACCESS_KEY_ID) in existing:
            activity.logger.info("reusing access key of IAM user %s", record.name)
            return stored.id

        for key_id in existing:
            activity.logger.info("deleting stale access key %s of IAM user %s", key_id, record.name)
            iam.delete_access_key(client, record.name, key_id)
        key_id, secret_key = iam.create_access_key(client, record.name)
        return self.deps.secrets.store(
            record.org_id,
            secrets.CreateSecretRequest(
                name=secret_name,
                type=secrets.ACCESS_KEY,
                values={ACCESS_KEY_ID: key_id, SECRET_ACCESS_KEY: secret_key},
                tags=[secrets.cluster_uid_tag(record.uid), secrets.TAG_HIDDEN],
            ),
        )

    @activity.defn(name=names.DELETE_USER_ACCESS_KEY)
    @classified
    def delete_user_access_key(self, inp: ClusterRef) -> None:
        record = self.cluster(inp.cluster_id)
        iam.delete_user(self.session(record).client("iam"), record.name)
        self.deps.secrets.delete(
            record.org_id, secrets.secret_id(naming.access_key_secret_name(record.name))
        )

    @activity.defn(name=names.DELETE_UNUSED_SECRETS)
    @classified
    def delete_unused_secrets(self, inp: ClusterRef) -> int:
        record = self.cluster(inp.cluster_id)
        owned = self.deps.secrets.list(record.org_id, tags=[secrets.cluster_uid_tag(record.uid)])
        for secret in owned:
            self.deps.secrets.delete(record.org_id, secret.id)
        activity.logger.info("deleted %d secrets of cluster %s", len(owned), record.name)
        return len(owned)

    @activity.defn(name=names.CREATE_OIDC_CLIENT)
    @classified
    def create_oidc_client(self, inp: ClusterRef) -> OIDCClient:
        record = self.cluster(inp.cluster_id)
        client_id = naming.oidc_client_id(record.name)
        secret = self.deps.secrets.get_or_create(
            record.org_id,
            secrets.CreateSecretRequest(
                name=f"{record.name}-oidc",
                type="oidc",
                values={"client_id": client_id, "client_secret": pysecrets.token_urlsafe(32)},
                tags=[secrets.cluster_uid_tag(record.uid), secrets.TAG_HIDDEN],
            ),
        )
        admin = KeycloakAdmin(self.config.oidc)
        admin.ensure_client(
            client_id=client_id,
            secret=secret.values["client_secret"],
            redirect_uris=[f"{self.config.pipeline_url.rstrip('/')}/auth/{record.id}/callback"],
        )
        return OIDCClient(issuer_url=admin.issuer(), client_id=client_id)

    @activity.defn(name=names.DELETE_OIDC_CLIENT)
    @classified
    def delete_oidc_client(self, inp: ClusterRef) -> None:
        if not self.config.oidc.enabled:
            return
        record = self.cluster(inp.cluster_id)
        KeycloakAdmin(self.config.oidc).delete_client(naming.oidc_client_id(record.name))

    @activity.defn(name=names.DELETE_DNS_RECORDS)
    @classified
    def delete_dns_records(self, inp: ClusterRef) -> int:
        settings = self.config.dns
        if not settings.hosted_zone_id or not settings.domain:
            activity.logger.info("no DNS zone configured, nothing to clean up")
            return 0
        record = self.cluster(inp.cluster_id)
        route53 = self.session(record).client("route53")
        return dns.delete_cluster_records(
            route53, settings.hosted_zone_id, f"{record.name}.{settings.domain}"
        )
