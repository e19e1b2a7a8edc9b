# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/workflows/update_cluster.py

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from kubestack.aws import naming
    from kubestack.cluster import models as cluster_models
    from kubestack.cluster.models import NodePoolSpec, ProvisioningRequest
    from kubestack.cluster.nodepools import diff_node_pools, master_pool, pool_subnets, validate_pools
    from kubestack.errors import InvalidRequestError
    from kubestack.temporal import names
    from kubestack.temporal.failures import as_workflow_error, combine, describe, gather_all
    from kubestack.temporal.models import (
        ClusterRef,
        NodePoolList,
        PoolContext,
        ProvisioningStatus,
        SaveNodePoolsInput,
        StackRef,
        UpdateClusterOutput,
        UpdatePoolInput,
        UpdatePoolOutput,
    )
    from kubestack.temporal.status import Stages

    from .common import (
        UPDATE,
        call,
        create_worker_pool,
        delete_stack,
        drive_stack,
        mark_failed,
        request_context,
        resolve_pool,
        set_status,
    )


@workflow.defn(name=names.UPDATE_CLUSTER_WORKFLOW)
class UpdateClusterWorkflow:
    """Bring the cluster's node pools in line with the requested set."""

    def __init__(self) -> None:
        self._status = ProvisioningStatus(phase="PENDING", message="Waiting to start")

    @workflow.query
    def status(self) -> ProvisioningStatus:
        return self._status

    @workflow.run
    async def run(self, req: ProvisioningRequest) -> UpdateClusterOutput:
        stages = Stages(self._status)
        stages.start(f"Updating cluster {req.cluster_name}")
        try:
            out = await self._update(req, stages)
        except Exception as exc:
            workflow.logger.error("cluster %s update failed: %s", req.cluster_name, describe(exc))
            await mark_failed(req.cluster_id, exc)
            raise as_workflow_error(exc)
        await set_status(req.cluster_id, cluster_models.RUNNING, "cluster updated")
        stages.finish("Cluster updated")
        return out

    async def _update(self, req: ProvisioningRequest, stages: Stages) -> UpdateClusterOutput:
        ref = ClusterRef(cluster_id=req.cluster_id, cluster_name=req.cluster_name)
        validate_pools(req.node_pools)

        existing = (await call(names.LIST_NODE_POOLS, ref, NodePoolList)).pools
        current: Dict[str, NodePoolSpec] = {p.name: p for p in existing}
        desired: Dict[str, NodePoolSpec] = {p.name: p for p in req.node_pools}
        diff = diff_node_pools(current, desired)

        old_master = master_pool(existing).name if existing else None
        new_master = master_pool(req.node_pools).name
        if old_master and old_master != new_master:
            raise InvalidRequestError(
                f"master pool {old_master} cannot be replaced by {new_master} in an update"
            )

        await set_status(req.cluster_id, cluster_models.UPDATING, "updating node pools")
        context = request_context(await call(names.POOL_CONTEXT, ref, PoolContext), req)

        names_in_order: List[str] = []
        jobs = []
        for name in diff.to_delete:
            names_in_order.append(name)
            jobs.append(delete_stack(req.cluster_id, naming.nodepool_stack(req.cluster_name, name)))
        for name in diff.to_create:
            names_in_order.append(name)
            jobs.append(self._create_pool(req, desired[name], context))
        for name in diff.to_update:
            names_in_order.append(name)
            jobs.append(self._update_pool(req, self._carry_over(current[name], desired[name])))

        results, errors = await stages.run("node-pools", gather_all(*jobs))

        # persist what is actually there: failed creates stay out, failed deletes stay in
        saved: List[NodePoolSpec] = []
        failed = {n for n, e in zip(names_in_order, errors) if e is not None}
        created = {r.name: r for r in results if isinstance(r, NodePoolSpec)}
        for name in sorted(set(current) | set(desired)):
            if name in diff.to_delete:
                if name in failed:
                    saved.append(current[name])
            elif name in diff.to_create:
                if name in created:
                    saved.append(created[name])
            elif name in failed:
                saved.append(current[name])
            else:
                saved.append(self._carry_over(current[name], desired[name]))
        await call(names.SAVE_NODE_POOLS, SaveNodePoolsInput(cluster_id=req.cluster_id, pools=saved))

        err = combine(errors)
        if err is not None:
            self._status.skipped_stages.extend(sorted(failed))
            raise err

        return UpdateClusterOutput(created=diff.to_create, updated=diff.to_update, deleted=diff.to_delete)

    @staticmethod
    def _carry_over(old: NodePoolSpec, new: NodePoolSpec) -> NodePoolSpec:
        """Image and volume are fixed at creation; an update only resizes."""
        return replace(new, image_id=new.image_id or old.image_id, volume_size=new.volume_size or old.volume_size)

    async def _create_pool(self, req: ProvisioningRequest, pool: NodePoolSpec, context: PoolContext) -> NodePoolSpec:
        if pool.is_master:
            raise InvalidRequestError(f"master pool {pool.name} cannot be added in an update")
        pool = await resolve_pool(
            req.cluster_id,
            pool,
            kubernetes_version=req.kubernetes_version,
            os=req.os,
            container_runtime=req.container_runtime,
        )
        await create_worker_pool(
            req.cluster_id, pool, pool_subnets(pool, req.region, context.zone_subnets), context
        )
        return pool

    async def _update_pool(self, req: ProvisioningRequest, pool: NodePoolSpec) -> str:
        async def issue() -> Optional[str]:
            out = await call(
                names.UPDATE_POOL, UpdatePoolInput(cluster_id=req.cluster_id, pool=pool), UpdatePoolOutput
            )
            return out.stack_name if out.changed else None

        settled = await drive_stack(req.cluster_id, issue, UPDATE)
        if settled is not None:
            await call(
                names.WAIT_ASG, StackRef(cluster_id=req.cluster_id, stack_name=settled.stack_name), bool, long=True
            )
        return pool.name
