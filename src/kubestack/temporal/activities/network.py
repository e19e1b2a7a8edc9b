# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/activities/network.py

from __future__ import annotations

from temporalio import activity

from kubestack.aws import keypairs, naming, network, stacks as cf, tags
from kubestack.aws.loadbalancers import LoadBalancers
from kubestack.errors import InvalidRequestError, NotFoundError, classified
from kubestack.temporal import names
from kubestack.temporal.models import (
    ClusterRef,
    CreateNlbInput,
    CreateStackOutput,
    CreateSubnetInput,
    CreateVpcInput,
    DeleteNicInput,
    DescribeSubnetsInput,
    ElasticIPOutput,
    LoadBalancerOutput,
    LoadBalancerRefs,
    NicList,
    OrphanNicsInput,
    Subnet,
    SubnetList,
    VpcConfig,
    VpcRef,
)

from .base import Activities

# stack outputs read back by later steps
OUT_VPC_ID = "VpcId"
OUT_SUBNET_ID = "SubnetId"
OUT_DNS_NAME = "DNSName"
OUT_TARGET_GROUP = "TargetGroup"
OUT_CLUSTER_SG = "ClusterSecurityGroup"


class NetworkActivities(Activities):
    """VPC, subnets, key pairs, addresses, load balancers and interfaces."""

    def _ec2(self, record):
        return self.session(record).client("ec2")

    @activity.defn(name=names.CREATE_VPC)
    @classified
    def create_vpc(self, inp: CreateVpcInput) -> CreateStackOutput:
        record = self.cluster(inp.cluster_id)
        name = naming.network_stack(record.name)
        stack_id = self.stacks(record).create(
            name,
            template="network",
            params={"ClusterName": record.name, "VpcBlock": inp.cidr},
            tags=tags.stack_tags(record.name, naming.STACK_NETWORK, self.config.extra_tags),
            token=self.token(),
        )
        return CreateStackOutput(stack_name=name, stack_id=stack_id)

    @activity.defn(name=names.DEFAULT_SECURITY_GROUP)
    @classified
    def default_security_group(self, inp: VpcRef) -> str:
        return network.default_security_group(self._ec2(self.cluster(inp.cluster_id)), inp.vpc_id)

    @activity.defn(name=names.CREATE_SUBNET)
    @classified
    def create_subnet(self, inp: CreateSubnetInput) -> Subnet:
        """Create the subnet stack of one zone and wait for it."""
        record = self.cluster(inp.cluster_id)
        manager = self.stacks(record)
        name = naming.subnet_stack(record.name, inp.cidr)
        manager.create(
            name,
            template="subnet",
            params={
                "ClusterName": record.name,
                "VpcId": inp.vpc_id,
                "RouteTableId": inp.route_table_id,
                "SubnetBlock": inp.cidr,
                "AvailabilityZoneName": inp.availability_zone,
            },
            tags=tags.stack_tags(record.name, naming.STACK_SUBNET, self.config.extra_tags),
            token=self.token(inp.availability_zone),
        )
        stack = manager.wait(name, cf.CREATE)
        outputs = cf.output_map(stack)
        if OUT_SUBNET_ID not in outputs:
            raise NotFoundError(f"stack {name} has no {OUT_SUBNET_ID} output")
        return Subnet(subnet_id=outputs[OUT_SUBNET_ID], availability_zone=inp.availability_zone, cidr=inp.cidr)

    @activity.defn(name=names.DESCRIBE_SUBNETS)
    @classified
    def describe_subnets(self, inp: DescribeSubnetsInput) -> SubnetList:
        found = network.describe_subnets(self._ec2(self.cluster(inp.cluster_id)), inp.subnet_ids)
        wrong = [s.subnet_id for s in found if inp.vpc_id and s.vpc_id != inp.vpc_id]
        if wrong:
            raise InvalidRequestError(f"subnets {', '.join(wrong)} are not in {inp.vpc_id}")
        return SubnetList(subnets=[Subnet(s.subnet_id, s.availability_zone, s.cidr) for s in found])

    @activity.defn(name=names.UPLOAD_SSH_KEY)
    @classified
    def upload_ssh_key(self, inp: ClusterRef) -> str:
        record = self.cluster(inp.cluster_id)
        if not record.ssh_secret_id:
            raise InvalidRequestError(f"cluster {record.name} has no SSH secret")
        secret = self.deps.secrets.get(record.org_id, record.ssh_secret_id)
        public_key = secret.values.get("public_key", "")
        if not public_key:
            raise InvalidRequestError(f"SSH secret {secret.name} has no public_key")
        name = naming.ssh_key_name(record.name)
        keypairs.import_key(self._ec2(record), name, public_key)
        return name

    @activity.defn(name=names.DELETE_SSH_KEY)
    @classified
    def delete_ssh_key(self, inp: ClusterRef) -> None:
        record = self.cluster(inp.cluster_id)
        keypairs.delete_key(self._ec2(record), naming.ssh_key_name(record.name))

    @activity.defn(name=names.CREATE_EIP)
    @classified
    def create_eip(self, inp: ClusterRef) -> ElasticIPOutput:
        record = self.cluster(inp.cluster_id)
        eip = network.allocate_eip(self._ec2(record), record.name)
        return ElasticIPOutput(allocation_id=eip.allocation_id, public_ip=eip.public_ip)

    @activity.defn(name=names.RELEASE_EIP)
    @classified
    def release_eip(self, inp: ClusterRef) -> None:
        record = self.cluster(inp.cluster_id)
        network.release_eip(self._ec2(record), record.name)

    @activity.defn(name=names.CREATE_NLB)
    @classified
    def create_nlb(self, inp: CreateNlbInput) -> LoadBalancerOutput:
        """Network load balancer and target group in front of the masters."""
        record = self.cluster(inp.cluster_id)
        manager = self.stacks(record)
        name = naming.nlb_stack(record.name)
        manager.create(
            name,
            template="nlb",
            params={
                "ClusterName": record.name,
                "VpcId": inp.vpc_id,
                "SubnetIds": ",".join(inp.subnet_ids),
            },
            tags=tags.stack_tags(record.name, naming.STACK_NLB, self.config.extra_tags),
            token=self.token(),
        )
        stack = manager.wait(name, cf.CREATE)
        outputs = cf.output_map(stack)
        missing = [k for k in (OUT_DNS_NAME, OUT_TARGET_GROUP) if not outputs.get(k)]
        if missing:
            raise NotFoundError(f"stack {name} is missing outputs {', '.join(missing)}")
        return LoadBalancerOutput(
            stack_name=name, dns_name=outputs[OUT_DNS_NAME], target_group_arn=outputs[OUT_TARGET_GROUP]
        )

    @activity.defn(name=names.VPC_CONFIG)
    @classified
    def vpc_config(self, inp: ClusterRef) -> VpcConfig:
        """
        VPC id from the network stack (or the recorded network when the VPC
        was brought along) and the security groups the cluster created.
        """
        record = self.cluster(inp.cluster_id)
        manager = self.stacks(record)

        vpc_id = record.network.vpc_id
        net = manager.describe(naming.network_stack(record.name))
        if net is not None:
            outputs = cf.output_map(net)
            vpc_id = outputs.get(OUT_VPC_ID) or vpc_id

        groups = []
        master = manager.describe(naming.master_stack(record.name))
        if master is not None:
            sg = cf.output_map(master).get(OUT_CLUSTER_SG)
            if sg:
                groups.append(sg)
        if record.network.security_group_id and record.network.security_group_id not in groups:
            groups.append(record.network.security_group_id)
        return VpcConfig(vpc_id=vpc_id, security_group_ids=groups)

    @activity.defn(name=names.OWNED_LOAD_BALANCERS)
    @classified
    def owned_load_balancers(self, inp: VpcRef) -> LoadBalancerRefs:
        record = self.cluster(inp.cluster_id)
        if not inp.vpc_id:
            return LoadBalancerRefs(cluster_id=inp.cluster_id)
        return LoadBalancerRefs(
            cluster_id=inp.cluster_id,
            refs=self._load_balancers(record).owned(record.name, inp.vpc_id),
        )

    @activity.defn(name=names.WAIT_LOAD_BALANCERS)
    @classified
    def wait_load_balancers(self, inp: LoadBalancerRefs) -> None:
        record = self.cluster(inp.cluster_id)
        self._load_balancers(record).wait_deleted(inp.refs)

    @activity.defn(name=names.ORPHAN_NICS)
    @classified
    def orphan_nics(self, inp: OrphanNicsInput) -> NicList:
        record = self.cluster(inp.cluster_id)
        if not inp.vpc_id:
            return NicList()
        return NicList(
            interface_ids=network.orphan_interfaces(self._ec2(record), inp.vpc_id, inp.security_group_ids)
        )

    @activity.defn(name=names.DELETE_NIC)
    @classified
    def delete_nic(self, inp: DeleteNicInput) -> None:
        network.delete_interface(self._ec2(self.cluster(inp.cluster_id)), inp.interface_id)

    def _load_balancers(self, record) -> LoadBalancers:
        session = self.session(record)
        return LoadBalancers(
            session.client("elb"),
            session.client("elbv2"),
            polling=self.config.polling,
            bus=self.deps.bus,
            event_ctx=self.event_ctx(record),
        )
