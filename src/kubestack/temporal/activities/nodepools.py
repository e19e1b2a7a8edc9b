# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/activities/nodepools.py

from __future__ import annotations

from typing import Any, Dict

from temporalio import activity

from kubestack.aws import autoscaling, images, naming, network, stacks as cf, tags
from kubestack.aws.autoscaling import AutoScaling
from kubestack.cluster.bootstrap import BootstrapContext
from kubestack.cluster.models import NodePoolSpec
from kubestack.errors import InvalidRequestError, classified
from kubestack.temporal import names
from kubestack.temporal.models import (
    ClusterRef,
    CreateMasterInput,
    CreateStackOutput,
    CreateWorkerPoolInput,
    PoolContext,
    SelectImageInput,
    SelectVolumeSizeInput,
    StackRef,
    UpdatePoolInput,
    UpdatePoolOutput,
)

from .base import Activities
from .network import OUT_CLUSTER_SG

# outputs of the shared roles stack
OUT_MASTER_PROFILE = "MasterInstanceProfile"
OUT_WORKER_PROFILE = "WorkerInstanceProfile"

MASTER_STACK_TIMEOUT_MINUTES = 10


def _spot_price(pool: NodePoolSpec) -> str:
    return str(pool.spot_price) if pool.spot_price > 0 else ""


class NodePoolActivities(Activities):
    """Image and volume selection, master and worker pool stacks, scaling group health."""

    @activity.defn(name=names.SELECT_IMAGE)
    @classified
    def select_image(self, inp: SelectImageInput) -> str:
        record = self.cluster(inp.cluster_id)
        query = images.ImageQuery(
            region=record.region,
            instance_type=inp.instance_type,
            kubernetes_version=inp.kubernetes_version,
            os=inp.os,
            container_runtime=inp.container_runtime,
        )
        image_id = images.default_selector(self.config.images).select(query)
        activity.logger.info("selected image %s for %s", image_id, query.describe())
        return image_id

    @activity.defn(name=names.SELECT_VOLUME_SIZE)
    @classified
    def select_volume_size(self, inp: SelectVolumeSizeInput) -> int:
        record = self.cluster(inp.cluster_id)
        image_size = images.image_volume_size(self.session(record).client("ec2"), inp.image_id)
        return images.select_volume_size(
            explicit=inp.volume_size,
            default=self.config.default_volume_size,
            fallback=self.config.fallback_volume_size,
            image_size=image_size,
        )

    @activity.defn(name=names.POOL_CONTEXT)
    @classified
    def pool_context(self, inp: ClusterRef) -> PoolContext:
        """Network, security groups and instance profiles recorded for the cluster."""
        record = self.cluster(inp.cluster_id)
        session = self.session(record)
        manager = self.stacks(record, session)

        net = record.network
        if not net.vpc_id:
            raise InvalidRequestError(f"cluster {record.name} has no network recorded yet")

        groups = [net.security_group_id] if net.security_group_id else []
        master = manager.describe(naming.master_stack(record.name))
        if master is not None:
            sg = cf.output_map(master).get(OUT_CLUSTER_SG)
            if sg and sg not in groups:
                groups.append(sg)

        roles = manager.outputs(self.config.global_stack_name)
        zone_subnets: Dict[str, str] = {}
        for s in network.describe_subnets(session.client("ec2"), net.subnet_ids):
            zone_subnets.setdefault(s.availability_zone, s.subnet_id)

        return PoolContext(
            vpc_id=net.vpc_id,
            security_group_ids=groups,
            instance_profile=roles.get(OUT_WORKER_PROFILE, ""),
            api_address=net.api_address,
            master_instance_profile=roles.get(OUT_MASTER_PROFILE, ""),
            zone_subnets=zone_subnets,
            kubernetes_version=record.kubernetes_version,
            pipeline_url=self.config.pipeline_url,
        )

    def _bootstrap(self, record, ctx: PoolContext, pool: NodePoolSpec, **oidc: str) -> str:
        provider = self.provider(record.id)
        bootstrap = BootstrapContext(
            pipeline_url=ctx.pipeline_url or self.config.pipeline_url,
            org_id=record.org_id,
            cluster_id=record.id,
            cluster_name=record.name,
            kubernetes_version=ctx.kubernetes_version or record.kubernetes_version,
            api_address=ctx.api_address,
            container_runtime=ctx.container_runtime,
            cloud_provider=provider.cloud_provider,
            ha_master=pool.is_master and pool.max_count > 1,
            oidc_issuer_url=oidc.get("issuer_url") or None,
            oidc_client_id=oidc.get("client_id") or None,
        )
        return provider.bootstrap_command(bootstrap, pool)

    @activity.defn(name=names.CREATE_MASTER)
    @classified
    def create_master(self, inp: CreateMasterInput) -> CreateStackOutput:
        """
        Master stack. A single master gets the elastic IP, several masters
        register with the load balancer's target group.
        """
        record = self.cluster(inp.cluster_id)
        pool, ctx = inp.pool, inp.context
        if not pool.image_id:
            raise InvalidRequestError(f"master pool {pool.name} has no image")

        params: Dict[str, Any] = {
            "ClusterName": record.name,
            "KeyName": naming.ssh_key_name(record.name),
            "ImageId": pool.image_id,
            "InstanceType": pool.instance_type,
            "VolumeSize": pool.volume_size,
            "VpcId": ctx.vpc_id,
            "SubnetIds": ",".join(inp.subnet_ids),
            "SecurityGroupIds": ",".join(ctx.security_group_ids),
            "IamInstanceProfile": ctx.master_instance_profile,
            "EIPAllocationId": inp.eip_allocation_id,
            "TargetGroup": inp.target_group_arn,
            autoscaling.MIN_SIZE: pool.min_count,
            autoscaling.MAX_SIZE: pool.max_count,
            autoscaling.INIT_SIZE: pool.count,
            "BootstrapCommand": self._bootstrap(
                record, ctx, pool, issuer_url=inp.oidc_issuer_url, client_id=inp.oidc_client_id
            ),
        }
        name = naming.master_stack(record.name)
        stack_id = self.stacks(record).create(
            name,
            template="master",
            params=params,
            tags=tags.stack_tags(record.name, naming.STACK_MASTER, self.config.extra_tags),
            token=self.token(),
            disable_rollback=True,
            timeout_minutes=MASTER_STACK_TIMEOUT_MINUTES,
        )
        return CreateStackOutput(stack_name=name, stack_id=stack_id)

    @activity.defn(name=names.CREATE_WORKER_POOL)
    @classified
    def create_worker_pool(self, inp: CreateWorkerPoolInput) -> CreateStackOutput:
        record = self.cluster(inp.cluster_id)
        pool, ctx = inp.pool, inp.context
        if pool.is_master:
            raise InvalidRequestError(f"{pool.name} is a master pool")
        if not pool.image_id:
            raise InvalidRequestError(f"node pool {pool.name} has no image")

        params: Dict[str, Any] = {
            "ClusterName": record.name,
            "NodeGroupName": pool.name,
            "KeyName": naming.ssh_key_name(record.name),
            "NodeImageId": pool.image_id,
            "NodeInstanceType": pool.instance_type,
            "NodeSpotPrice": _spot_price(pool),
            "NodeVolumeSize": pool.volume_size,
            autoscaling.MIN_SIZE: pool.min_count,
            autoscaling.MAX_SIZE: pool.max_count,
            autoscaling.INIT_SIZE: pool.count,
            autoscaling.AUTOSCALER_ENABLED: pool.autoscaling,
            "NodeSecurityGroups": ",".join(ctx.security_group_ids),
            "VpcId": ctx.vpc_id,
            "Subnets": ",".join(inp.subnet_ids),
            "NodeInstanceProfile": ctx.instance_profile,
            "BootstrapCommand": self._bootstrap(record, ctx, pool),
        }
        name = naming.nodepool_stack(record.name, pool.name)
        stack_id = self.stacks(record).create(
            name,
            template="nodepool",
            params=params,
            tags=tags.stack_tags(record.name, naming.STACK_NODEPOOL, self.config.extra_tags),
            token=self.token(pool.name),
        )
        return CreateStackOutput(stack_name=name, stack_id=stack_id)

    def _autoscaling(self, record) -> AutoScaling:
        session = self.session(record)
        event_ctx = self.event_ctx(record)
        return AutoScaling(
            session.client("autoscaling"),
            session.client("ec2"),
            self.stacks(record, session),
            polling=self.config.polling,
            bus=self.deps.bus,
            event_ctx=event_ctx,
        )

    @activity.defn(name=names.WAIT_ASG)
    @classified
    def wait_asg(self, inp: StackRef) -> bool:
        """True once the pool is at its desired healthy capacity, False if cancelled."""
        record = self.cluster(inp.cluster_id)
        return self._autoscaling(record).wait_fulfilled(inp.stack_name)

    @activity.defn(name=names.UPDATE_POOL)
    @classified
    def update_pool(self, inp: UpdatePoolInput) -> UpdatePoolOutput:
        record = self.cluster(inp.cluster_id)
        pool = inp.pool
        if pool.is_master:
            # the autoscaler never runs against masters
            if pool.autoscaling:
                raise InvalidRequestError(f"master pool {pool.name} cannot autoscale")
            name = naming.master_stack(record.name)
        else:
            name = naming.nodepool_stack(record.name, pool.name)
        changed = self._autoscaling(record).update_node_group(name, pool, token=self.token(pool.name))
        return UpdatePoolOutput(stack_name=name, changed=changed)
