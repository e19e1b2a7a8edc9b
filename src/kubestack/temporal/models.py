# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/models.py

"""Workflow and activity inputs/outputs. Plain dataclasses for the default data converter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from kubestack.cluster.models import NodePoolSpec


# ---------------------------------------------------------------------
# Workflow level
# ---------------------------------------------------------------------
@dataclass
class ProvisioningStatus:
    phase: str
    message: str = ""
    current_stage: Optional[str] = None
    completed_stages: List[str] = field(default_factory=list)
    skipped_stages: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class CreateClusterOutput:
    vpc_id: str
    subnet_ids: List[str]
    api_address: str
    node_pools: List[str]


@dataclass
class UpdateClusterOutput:
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)


@dataclass
class DeleteClusterInput:
    org_id: str
    cluster_id: str
    cluster_uid: str
    cluster_name: str
    forced: bool = False


@dataclass
class ClusterRef:
    cluster_id: str
    cluster_name: str = ""


# ---------------------------------------------------------------------
# Cluster record
# ---------------------------------------------------------------------
@dataclass
class UpdateStatusInput:
    cluster_id: str
    status: str
    message: str


@dataclass
class NodePoolList:
    pools: List[NodePoolSpec] = field(default_factory=list)


@dataclass
class SaveNodePoolsInput:
    cluster_id: str
    pools: List[NodePoolSpec]


@dataclass
class SaveNetworkInput:
    cluster_id: str
    vpc_id: str
    subnet_ids: List[str]
    security_group_id: str
    api_address: str
    eip_allocation_id: str = ""


@dataclass
class OIDCClient:
    issuer_url: str
    client_id: str


# ---------------------------------------------------------------------
# Stacks
# ---------------------------------------------------------------------
@dataclass
class StackRef:
    cluster_id: str
    stack_name: str


@dataclass
class WaitStackInput:
    cluster_id: str
    stack_name: str
    operation: str  # create | update | delete


@dataclass
class StackOutputs:
    stack_name: str
    status: str = ""
    outputs: Dict[str, str] = field(default_factory=dict)


@dataclass
class ListStacksInput:
    cluster_id: str
    stack_type: str


@dataclass
class StackNames:
    names: List[str] = field(default_factory=list)


@dataclass
class CreateStackOutput:
    stack_name: str
    stack_id: str = ""  # empty when an existing stack was reused without a new operation


# ---------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------
@dataclass
class CreateVpcInput:
    cluster_id: str
    cidr: str


@dataclass
class VpcRef:
    cluster_id: str
    vpc_id: str


@dataclass
class CreateSubnetInput:
    cluster_id: str
    vpc_id: str
    route_table_id: str
    availability_zone: str
    cidr: str


@dataclass
class Subnet:
    subnet_id: str
    availability_zone: str
    cidr: str = ""


@dataclass
class DescribeSubnetsInput:
    cluster_id: str
    vpc_id: str
    subnet_ids: List[str]


@dataclass
class SubnetList:
    subnets: List[Subnet] = field(default_factory=list)


@dataclass
class ElasticIPOutput:
    allocation_id: str
    public_ip: str


@dataclass
class CreateNlbInput:
    cluster_id: str
    vpc_id: str
    subnet_ids: List[str]


@dataclass
class LoadBalancerOutput:
    stack_name: str
    dns_name: str
    target_group_arn: str


@dataclass
class VpcConfig:
    vpc_id: str = ""
    security_group_ids: List[str] = field(default_factory=list)


@dataclass
class LoadBalancerRefs:
    cluster_id: str
    refs: List[str] = field(default_factory=list)


@dataclass
class OrphanNicsInput:
    cluster_id: str
    vpc_id: str
    security_group_ids: List[str]


@dataclass
class NicList:
    interface_ids: List[str] = field(default_factory=list)


@dataclass
class DeleteNicInput:
    cluster_id: str
    interface_id: str


# ---------------------------------------------------------------------
# Node pools
# ---------------------------------------------------------------------
@dataclass
class SelectImageInput:
    cluster_id: str
    instance_type: str
    kubernetes_version: str
    os: str = "amazon-linux-2"
    container_runtime: str = "containerd"


@dataclass
class SelectVolumeSizeInput:
    cluster_id: str
    image_id: str
    volume_size: int = 0


@dataclass
class PoolContext:
    """Everything a worker pool stack needs besides the pool itself."""

    vpc_id: str
    security_group_ids: List[str]
    instance_profile: str
    api_address: str
    master_instance_profile: str = ""
    zone_subnets: Dict[str, str] = field(default_factory=dict)
    kubernetes_version: str = ""
    container_runtime: str = "containerd"
    pipeline_url: str = ""


@dataclass
class CreateMasterInput:
    cluster_id: str
    pool: NodePoolSpec
    subnet_ids: List[str]
    context: PoolContext
    eip_allocation_id: str = ""
    target_group_arn: str = ""
    oidc_issuer_url: str = ""
    oidc_client_id: str = ""


@dataclass
class CreateWorkerPoolInput:
    cluster_id: str
    pool: NodePoolSpec
    subnet_ids: List[str]
    context: PoolContext


@dataclass
class UpdatePoolInput:
    cluster_id: str
    pool: NodePoolSpec


@dataclass
class UpdatePoolOutput:
    stack_name: str
    changed: bool

