# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/workflows/create_cluster.py

from __future__ import annotations

from datetime import timedelta
from typing import Dict, List

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from kubestack.cluster import models as cluster_models
    from kubestack.cluster.models import ProvisioningRequest
    from kubestack.cluster.nodepools import (
        assign_cidrs,
        master_pool,
        pool_subnets,
        required_zones,
        validate_pools,
        worker_pools,
    )
    from kubestack.errors import NotFoundError
    from kubestack.temporal import names
    from kubestack.temporal.failures import as_workflow_error, combine, describe, gather_all, join
    from kubestack.temporal.handshake import MasterReadiness, wait_for_master
    from kubestack.temporal.models import (
        ClusterRef,
        CreateClusterOutput,
        CreateMasterInput,
        CreateNlbInput,
        CreateSubnetInput,
        CreateVpcInput,
        DescribeSubnetsInput,
        ElasticIPOutput,
        LoadBalancerOutput,
        NodePoolList,
        OIDCClient,
        PoolContext,
        ProvisioningStatus,
        SaveNetworkInput,
        SaveNodePoolsInput,
        Subnet,
        SubnetList,
        VpcRef,
    )
    from kubestack.temporal.status import Stages

    from .common import (
        call,
        create_stack,
        create_worker_pool,
        mark_failed,
        request_context,
        resolve_pool,
        set_status,
        start,
    )


@workflow.defn(name=names.CREATE_CLUSTER_WORKFLOW)
class CreateClusterWorkflow:
    """
    Build a cluster: roles, network, subnets, master, then worker pools.

    The master's bootstrap agent reports back through the ``node-ready`` /
    ``node-bootstrap-failed`` signals; worker pools are only created once
    the master is up.
    """

    def __init__(self) -> None:
        self._status = ProvisioningStatus(phase="PENDING", message="Waiting to start")
        self._readiness = MasterReadiness()

    @workflow.query
    def status(self) -> ProvisioningStatus:
        return self._status

    @workflow.signal(name=names.NODE_READY_SIGNAL)
    def node_ready(self) -> None:
        if not self._readiness.ready():
            workflow.logger.info("ignoring node-ready, master readiness already decided")

    @workflow.signal(name=names.NODE_BOOTSTRAP_FAILED_SIGNAL)
    def node_bootstrap_failed(self, message: str) -> None:
        if not self._readiness.failed(message):
            workflow.logger.info("ignoring node-bootstrap-failed, master readiness already decided")

    @workflow.run
    async def run(self, req: ProvisioningRequest) -> CreateClusterOutput:
        stages = Stages(self._status)
        stages.start(f"Creating cluster {req.cluster_name}")
        try:
            out = await self._create(req, stages)
        except Exception as exc:
            workflow.logger.error("cluster %s creation failed: %s", req.cluster_name, describe(exc))
            await mark_failed(req.cluster_id, exc)
            raise as_workflow_error(exc)
        await set_status(req.cluster_id, cluster_models.RUNNING, "cluster created")
        stages.finish("Cluster created")
        return out

    async def _create(self, req: ProvisioningRequest, stages: Stages) -> CreateClusterOutput:
        ref = ClusterRef(cluster_id=req.cluster_id, cluster_name=req.cluster_name)
        await set_status(req.cluster_id, cluster_models.CREATING, "creating infrastructure")

        # 1) CA material
        await stages.run("certificates", call(names.GENERATE_CERTIFICATES, ref, str))

        # 2) shared roles
        await stages.run("roles", create_stack(req.cluster_id, names.CREATE_AWS_ROLES, ref))

        # 3) node pools, image and volume per pool
        pools = list(req.node_pools)
        if not pools:
            pools = (await call(names.LIST_NODE_POOLS, ref, NodePoolList)).pools
        validate_pools(pools)
        pools = await stages.run("images", join(*(
            resolve_pool(
                req.cluster_id,
                p,
                kubernetes_version=req.kubernetes_version,
                os=req.os,
                container_runtime=req.container_runtime,
            )
            for p in pools
        )))
        master = master_pool(pools)

        # 4) zones and their CIDR blocks
        zones = required_zones(pools, req.region)
        cidrs = assign_cidrs(zones, req.vpc_cidr)

        # 7) SSH key, alongside the network
        ssh_key = start(names.UPLOAD_SSH_KEY, ref, str)

        # 5) network
        vpc_id, route_table_id = req.vpc_id, req.route_table_id
        if not vpc_id:
            vpc = await stages.run("network", create_stack(
                req.cluster_id, names.CREATE_VPC, CreateVpcInput(cluster_id=req.cluster_id, cidr=req.vpc_cidr)
            ))
            outputs = vpc.outputs
            vpc_id, route_table_id = outputs.get("VpcId", ""), outputs.get("RouteTableId", "")
            if not vpc_id:
                raise NotFoundError(f"stack {vpc.stack_name} has no VpcId output")
        security_group = await call(
            names.DEFAULT_SECURITY_GROUP, VpcRef(cluster_id=req.cluster_id, vpc_id=vpc_id), str
        )

        # 6) one subnet per zone, plus the ones given by id
        created = await stages.run("subnets", join(*(
            call(
                names.CREATE_SUBNET,
                CreateSubnetInput(
                    cluster_id=req.cluster_id,
                    vpc_id=vpc_id,
                    route_table_id=route_table_id,
                    availability_zone=zone,
                    cidr=cidrs[zone],
                ),
                Subnet,
                long=True,
            )
            for zone in zones
        )))
        explicit_ids = sorted({s for p in pools for s in p.subnet_ids})
        explicit: List[Subnet] = []
        if explicit_ids:
            explicit = (await call(
                names.DESCRIBE_SUBNETS,
                DescribeSubnetsInput(cluster_id=req.cluster_id, vpc_id=vpc_id, subnet_ids=explicit_ids),
                SubnetList,
            )).subnets
        zone_subnets: Dict[str, str] = {s.availability_zone: s.subnet_id for s in created}
        subnet_ids = [s.subnet_id for s in created] + [s.subnet_id for s in explicit]

        await stages.run("ssh-key", ssh_key)

        # 8) OIDC client
        oidc = OIDCClient(issuer_url="", client_id="")
        if req.oidc_enabled:
            oidc = await stages.run("oidc", call(names.CREATE_OIDC_CLIENT, ref, OIDCClient))

        # 9) how the API server is reached
        master_subnets = pool_subnets(master, req.region, zone_subnets)
        eip_allocation_id, target_group = "", ""
        if master.max_count > 1:
            nlb = await stages.run("load-balancer", call(
                names.CREATE_NLB,
                CreateNlbInput(cluster_id=req.cluster_id, vpc_id=vpc_id, subnet_ids=master_subnets),
                LoadBalancerOutput,
                long=True,
            ))
            api_address, target_group = nlb.dns_name, nlb.target_group_arn
        else:
            eip = await stages.run("elastic-ip", call(names.CREATE_EIP, ref, ElasticIPOutput))
            api_address, eip_allocation_id = eip.public_ip, eip.allocation_id

        # 10) remember the network
        await call(names.SAVE_NETWORK, SaveNetworkInput(
            cluster_id=req.cluster_id,
            vpc_id=vpc_id,
            subnet_ids=subnet_ids,
            security_group_id=security_group,
            api_address=api_address,
            eip_allocation_id=eip_allocation_id,
        ))

        # 11) master stack
        context = await call(names.POOL_CONTEXT, ref, PoolContext)
        context = request_context(context, req, zone_subnets)
        await stages.run("master", create_stack(
            req.cluster_id,
            names.CREATE_MASTER,
            CreateMasterInput(
                cluster_id=req.cluster_id,
                pool=master,
                subnet_ids=master_subnets,
                context=context,
                eip_allocation_id=eip_allocation_id,
                target_group_arn=target_group,
                oidc_issuer_url=oidc.issuer_url,
                oidc_client_id=oidc.client_id,
            ),
        ))

        # 12) wait for the master's bootstrap agent
        self._status.message = "Waiting for master node to report ready"
        await stages.run(
            "master-ready", wait_for_master(self._readiness, timedelta(seconds=req.master_ready_timeout_s))
        )

        await stages.run("kubeconfig", call(names.FETCH_KUBECONFIG, ref, bool, long=True))

        # 13) a lone master also runs workloads
        if len(pools) == 1:
            await stages.run("untaint-master", call(names.UNTAINT_MASTER, ref, list))

        if not req.use_default_user:
            await stages.run("access-key", call(names.CREATE_USER_ACCESS_KEY, ref, str))

        # 14) worker pools, all of them, failures collected per pool
        workers = worker_pools(pools)
        if workers:
            context = request_context(await call(names.POOL_CONTEXT, ref, PoolContext), req, zone_subnets)
            _, errors = await gather_all(*(
                create_worker_pool(req.cluster_id, p, pool_subnets(p, req.region, zone_subnets), context)
                for p in workers
            ))
            await call(names.SAVE_NODE_POOLS, SaveNodePoolsInput(cluster_id=req.cluster_id, pools=pools))
            err = combine(errors)
            if err is not None:
                self._status.skipped_stages.extend(p.name for p, e in zip(workers, errors) if e is not None)
                raise err
            self._status.completed_stages.append("node-pools")
        else:
            await call(names.SAVE_NODE_POOLS, SaveNodePoolsInput(cluster_id=req.cluster_id, pools=pools))

        return CreateClusterOutput(
            vpc_id=vpc_id,
            subnet_ids=subnet_ids,
            api_address=api_address,
            node_pools=[p.name for p in pools],
        )

