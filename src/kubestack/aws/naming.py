# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/naming.py

"""
Deterministic names for everything the provisioner creates.

Names are pure functions of the cluster name, pool name and resource kind,
so a retried or replayed step always addresses the same stack.
"""

from __future__ import annotations

import re

PREFIX = "kubestack"

STACK_NETWORK = "network"
STACK_SUBNET = "subnet"
STACK_MASTER = "master"
STACK_NLB = "nlb"
STACK_NODEPOOL = "nodepool"
STACK_ROLES = "roles"

MAX_TOKEN_LENGTH = 64
_TOKEN_DISALLOWED = re.compile(r"[^0-9a-zA-Z-]")


def network_stack(cluster: str) -> str:
    return f"{PREFIX}-vpc-{cluster}"


def subnet_stack(cluster: str, cidr: str) -> str:
    return f"{PREFIX}-subnet-{cluster}-{cidr.replace('.', '-').replace('/', '-')}"


def master_stack(cluster: str) -> str:
    return f"{PREFIX}-master-{cluster}"


def nlb_stack(cluster: str) -> str:
    return f"{PREFIX}-nlb-{cluster}"


def nodepool_stack(cluster: str, pool: str) -> str:
    # the pool- infix keeps worker names apart from the master stack even for a pool named "master"
    return f"{PREFIX}-pool-{cluster}-{pool}"


def ssh_key_name(cluster: str) -> str:
    return f"{PREFIX}-ssh-{cluster}"


def eip_name(cluster: str) -> str:
    return f"{PREFIX}-eip-{cluster}"


def ca_secret_name(cluster_id: str) -> str:
    return f"cluster-{cluster_id}-ca"


def kubeconfig_secret_name(cluster_id: str) -> str:
    return f"cluster-{cluster_id}-kubeconfig"


def access_key_secret_name(cluster: str) -> str:
    return f"{cluster}-key"


def oidc_client_id(cluster: str) -> str:
    return f"{PREFIX}-{cluster}"


def request_token(*parts: str) -> str:
    """
    Idempotency key for CloudFormation calls.

    Joins the parts with ``-``, replaces anything outside ``[0-9a-zA-Z-]``
    with ``-``, strips leading dashes and truncates to 64 characters.
    """
    token = _TOKEN_DISALLOWED.sub("-", "-".join(parts)).lstrip("-")
    return token[:MAX_TOKEN_LENGTH]
