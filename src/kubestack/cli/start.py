# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cli/start.py

from __future__ import annotations

from pathlib import Path

import yaml
from temporalio.client import WorkflowHandle

from kubestack.cluster.models import NodePoolSpec, ProvisioningRequest
from kubestack.errors import InvalidRequestError
from kubestack.temporal import names
from kubestack.temporal.client import get_temporal_client
from kubestack.temporal.models import DeleteClusterInput, ProvisioningStatus
from kubestack.temporal.settings import load_temporal_settings


def request_from_dict(data: dict) -> ProvisioningRequest:
    data = dict(data)
    pools = data.pop("node_pools", None) or []
    try:
        return ProvisioningRequest(**data, node_pools=[NodePoolSpec(**p) for p in pools])
    except TypeError as exc:
        raise InvalidRequestError(f"invalid provisioning request: {exc}") from exc


def load_request(path: str | Path) -> ProvisioningRequest:
    """Provisioning request from a YAML file (the same keys as ProvisioningRequest)."""
    with Path(path).expanduser().open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidRequestError(f"{path}: expected a mapping")
    return request_from_dict(data)


async def start_create_workflow(req: ProvisioningRequest) -> WorkflowHandle:
    client = await get_temporal_client()
    return await client.start_workflow(
        names.CREATE_CLUSTER_WORKFLOW,
        req,
        id=names.create_workflow_id(req.cluster_name),
        task_queue=load_temporal_settings().task_queue,
    )


async def start_update_workflow(req: ProvisioningRequest) -> WorkflowHandle:
    client = await get_temporal_client()
    return await client.start_workflow(
        names.UPDATE_CLUSTER_WORKFLOW,
        req,
        id=names.update_workflow_id(req.cluster_name),
        task_queue=load_temporal_settings().task_queue,
    )


async def start_delete_workflow(inp: DeleteClusterInput) -> WorkflowHandle:
    client = await get_temporal_client()
    return await client.start_workflow(
        names.DELETE_CLUSTER_WORKFLOW,
        inp,
        id=names.delete_workflow_id(inp.cluster_name),
        task_queue=load_temporal_settings().task_queue,
    )


async def query_status(workflow_id: str) -> ProvisioningStatus:
    client = await get_temporal_client()
    handle = client.get_workflow_handle(workflow_id)
    return await handle.query("status", result_type=ProvisioningStatus)


async def send_ready(workflow_id: str) -> None:
    client = await get_temporal_client()
    await client.get_workflow_handle(workflow_id).signal(names.NODE_READY_SIGNAL)


async def send_failed(workflow_id: str, message: str) -> None:
    client = await get_temporal_client()
    await client.get_workflow_handle(workflow_id).signal(names.NODE_BOOTSTRAP_FAILED_SIGNAL, message)
