# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/network.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from botocore.exceptions import ClientError

from kubestack.errors import NotFoundError, error_code

from . import naming, tags as stack_tags

log = logging.getLogger("kubestack")


@dataclass
class SubnetInfo:
    subnet_id: str
    availability_zone: str
    cidr: str
    vpc_id: str


def default_security_group(ec2, vpc_id: str) -> str:
    resp = ec2.describe_security_groups(
        Filters=[
            {"Name": "vpc-id", "Values": [vpc_id]},
            {"Name": "group-name", "Values": ["default"]},
        ]
    )
    groups = resp.get("SecurityGroups", [])
    if not groups:
        raise NotFoundError(f"no default security group in {vpc_id}")
    return groups[0]["GroupId"]


def describe_subnets(ec2, subnet_ids: List[str]) -> List[SubnetInfo]:
    if not subnet_ids:
        return []
    try:
        resp = ec2.describe_subnets(SubnetIds=list(subnet_ids))
    except ClientError as exc:
        if error_code(exc) == "InvalidSubnetID.NotFound":
            raise NotFoundError(f"subnets not found: {', '.join(subnet_ids)}") from exc
        raise
    return [
        SubnetInfo(s["SubnetId"], s["AvailabilityZone"], s["CidrBlock"], s["VpcId"])
        for s in resp.get("Subnets", [])
    ]


def orphan_interfaces(ec2, vpc_id: str, security_group_ids: List[str]) -> List[str]:
    """Detached network interfaces in the VPC still holding one of the cluster's security groups."""
    groups = [g for g in security_group_ids if g]
    if not groups:
        return []
    resp = ec2.describe_network_interfaces(
        Filters=[
            {"Name": "vpc-id", "Values": [vpc_id]},
            {"Name": "status", "Values": ["available"]},
            {"Name": "group-id", "Values": groups},
        ]
    )
    return [n["NetworkInterfaceId"] for n in resp.get("NetworkInterfaces", [])]


def delete_interface(ec2, interface_id: str) -> None:
    try:
        ec2.delete_network_interface(NetworkInterfaceId=interface_id)
    except ClientError as exc:
        if error_code(exc) == "InvalidNetworkInterfaceID.NotFound":
            return
        raise


@dataclass
class ElasticIP:
    allocation_id: str
    public_ip: str


def _eip_by_tag(ec2, cluster: str) -> Optional[dict]:
    resp = ec2.describe_addresses(Filters=[{"Name": "tag:Name", "Values": [naming.eip_name(cluster)]}])
    addresses = resp.get("Addresses", [])
    return addresses[0] if addresses else None


def allocate_eip(ec2, cluster: str) -> ElasticIP:
    """Reuse the address tagged for this cluster, or allocate one."""
    found = _eip_by_tag(ec2, cluster)
    if found:
        log.info("reusing elastic ip %s for %s", found["PublicIp"], cluster)
        return ElasticIP(found["AllocationId"], found["PublicIp"])

    tags = stack_tags.to_aws({"Name": naming.eip_name(cluster), stack_tags.CLUSTER_NAME_TAG: cluster})
    resp = ec2.allocate_address(
        Domain="vpc",
        TagSpecifications=[{"ResourceType": "elastic-ip", "Tags": tags}],
    )
    return ElasticIP(resp["AllocationId"], resp["PublicIp"])


def release_eip(ec2, cluster: str) -> None:
    found = _eip_by_tag(ec2, cluster)
    if not found:
        return
    if found.get("AssociationId"):
        ec2.disassociate_address(AssociationId=found["AssociationId"])
    try:
        ec2.release_address(AllocationId=found["AllocationId"])
    except ClientError as exc:
        if error_code(exc) == "InvalidAllocationID.NotFound":
            return
        raise
