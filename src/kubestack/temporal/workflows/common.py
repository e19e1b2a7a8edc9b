# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/workflows/common.py

"""Activity call helpers shared by the cluster workflows. Runs inside the workflow sandbox."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from temporalio import workflow
from temporalio.exceptions import ActivityError

with workflow.unsafe.imports_passed_through():
    from kubestack.cluster.models import ERROR, NodePoolSpec, ProvisioningRequest
    from kubestack.errors import STACK_FAILED_TRANSIENT
    from kubestack.temporal import names
    from kubestack.temporal.failures import describe, has_reason, join
    from kubestack.temporal.models import (
        CreateStackOutput,
        CreateWorkerPoolInput,
        PoolContext,
        SelectImageInput,
        SelectVolumeSizeInput,
        StackOutputs,
        StackRef,
        UpdateStatusInput,
        WaitStackInput,
    )
    from kubestack.temporal.options import default_options, long_options, stack_wait_options

# stack operations understood by the wait-stack activity
CREATE = "create"
UPDATE = "update"
DELETE = "delete"

# how often a transiently failed stack operation is issued again
STACK_ATTEMPTS = 3


def call(name: str, arg: Any, result_type: Optional[type] = None, *, long: bool = False):
    """Schedule an activity by registered name with the default or long-wait preset."""
    options = long_options() if long else default_options()
    return workflow.execute_activity(name, arg, result_type=result_type, **options)


def start(name: str, arg: Any, result_type: Optional[type] = None, *, long: bool = False):
    """Like ``call`` but returns the handle so the workflow can do other work meanwhile."""
    options = long_options() if long else default_options()
    return workflow.start_activity(name, arg, result_type=result_type, **options)


async def set_status(cluster_id: str, status: str, message: str) -> None:
    await call(names.UPDATE_STATUS, UpdateStatusInput(cluster_id=cluster_id, status=status, message=message))


async def mark_failed(cluster_id: str, exc: BaseException) -> None:
    """Record a workflow failure on the cluster; a failure to do so is only logged."""
    try:
        await set_status(cluster_id, ERROR, describe(exc))
    except Exception as status_exc:
        workflow.logger.warning("could not record failure of %s: %s", cluster_id, describe(status_exc))


async def wait_stack(cluster_id: str, stack_name: str, operation: str) -> StackOutputs:
    return await workflow.execute_activity(
        names.WAIT_STACK,
        WaitStackInput(cluster_id=cluster_id, stack_name=stack_name, operation=operation),
        result_type=StackOutputs,
        **stack_wait_options(),
    )


async def drive_stack(
    cluster_id: str, issue: Callable[[], Awaitable[Optional[str]]], operation: str
) -> Optional[StackOutputs]:
    """
    Issue a stack operation and wait for it to settle. ``issue`` returns the
    stack name, or None when there is nothing to wait for. A stack failure
    classified as transient issues the operation again.
    """
    for attempt in range(1, STACK_ATTEMPTS + 1):
        stack_name = await issue()
        if stack_name is None:
            return None
        try:
            return await wait_stack(cluster_id, stack_name, operation)
        except ActivityError as exc:
            if attempt == STACK_ATTEMPTS or not has_reason(exc, STACK_FAILED_TRANSIENT):
                raise
            workflow.logger.warning(
                "stack %s failed transiently (attempt %d), issuing %s again: %s",
                stack_name, attempt, operation, describe(exc),
            )
    return None


async def create_stack(cluster_id: str, name: str, arg: Any) -> StackOutputs:
    """Run a create-stack activity and wait for the stack to complete."""

    async def issue() -> str:
        return (await call(name, arg, CreateStackOutput, long=True)).stack_name

    return await drive_stack(cluster_id, issue, CREATE)


async def delete_stack(cluster_id: str, stack_name: str) -> str:
    async def issue() -> str:
        await call(names.DELETE_STACK, StackRef(cluster_id=cluster_id, stack_name=stack_name))
        return stack_name

    await drive_stack(cluster_id, issue, DELETE)
    return stack_name


async def delete_stacks(cluster_id: str, stack_names: Sequence[str]) -> List[str]:
    """Delete in parallel; every failure is reported, not just the first."""
    return await join(*(delete_stack(cluster_id, n) for n in stack_names))


async def resolve_pool(
    cluster_id: str,
    pool: NodePoolSpec,
    *,
    kubernetes_version: str,
    os: str,
    container_runtime: str,
) -> NodePoolSpec:
    """Fill in the pool's image and settle its volume size against the image."""
    image_id = pool.image_id
    if not image_id:
        image_id = await call(
            names.SELECT_IMAGE,
            SelectImageInput(
                cluster_id=cluster_id,
                instance_type=pool.instance_type,
                kubernetes_version=kubernetes_version,
                os=os,
                container_runtime=container_runtime,
            ),
            str,
        )
    volume_size = await call(
        names.SELECT_VOLUME_SIZE,
        SelectVolumeSizeInput(cluster_id=cluster_id, image_id=image_id, volume_size=pool.volume_size),
        int,
    )
    return replace(pool, image_id=image_id, volume_size=volume_size)


async def create_worker_pool(
    cluster_id: str, pool: NodePoolSpec, subnet_ids: List[str], context: PoolContext
) -> str:
    """Pool stack, then its stack completion, then its scaling group's healthy capacity."""
    created = await create_stack(
        cluster_id,
        names.CREATE_WORKER_POOL,
        CreateWorkerPoolInput(cluster_id=cluster_id, pool=pool, subnet_ids=subnet_ids, context=context),
    )
    await call(names.WAIT_ASG, StackRef(cluster_id=cluster_id, stack_name=created.stack_name), bool, long=True)
    return pool.name


def request_context(
    context: PoolContext, req: ProvisioningRequest, zone_subnets: Optional[Dict[str, str]] = None
) -> PoolContext:
    """Overlay the request's versions, callback URL and freshly created subnets on a pool context."""
    return replace(
        context,
        zone_subnets={**context.zone_subnets, **(zone_subnets or {})},
        kubernetes_version=req.kubernetes_version,
        container_runtime=req.container_runtime,
        pipeline_url=req.pipeline_url or context.pipeline_url,
    )
