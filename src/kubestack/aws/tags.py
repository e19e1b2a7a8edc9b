# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/tags.py

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

CLUSTER_NAME_TAG = "kubestack-cluster-name"
STACK_TYPE_TAG = "kubestack-stack-type"


def ownership_tag(cluster: str) -> str:
    return f"kubernetes.io/cluster/{cluster}"


def stack_tags(cluster: str, stack_type: str, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    tags = dict(extra or {})
    tags[CLUSTER_NAME_TAG] = cluster
    tags[STACK_TYPE_TAG] = stack_type
    tags[ownership_tag(cluster)] = "owned"
    return tags


def to_aws(tags: Mapping[str, str]) -> List[Dict[str, str]]:
    return [{"Key": k, "Value": v} for k, v in sorted(tags.items())]


def from_aws(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    return {t["Key"]: t.get("Value", "") for t in tags or []}


def owned_by(tags: Mapping[str, str], cluster: str) -> bool:
    return tags.get(ownership_tag(cluster)) == "owned" or tags.get(CLUSTER_NAME_TAG) == cluster


def from_stack(tags: Mapping[str, str]) -> bool:
    """CloudFormation copies stack tags onto the resources it creates."""
    return STACK_TYPE_TAG in tags


def created_by_kubernetes(tags: Mapping[str, str], cluster: str) -> bool:
    return owned_by(tags, cluster) and not from_stack(tags)
