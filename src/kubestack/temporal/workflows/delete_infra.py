# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/workflows/delete_infra.py

from __future__ import annotations

from typing import List, Optional

from temporalio import workflow

with workflow.unsafe.imports_passed_through():
    from kubestack.aws import naming
    from kubestack.temporal import names
    from kubestack.temporal.failures import join
    from kubestack.temporal.models import (
        ClusterRef,
        CreateStackOutput,
        DeleteNicInput,
        ListStacksInput,
        LoadBalancerRefs,
        NicList,
        OrphanNicsInput,
        StackNames,
        VpcConfig,
        VpcRef,
    )

    from .common import DELETE, call, delete_stack, delete_stacks, drive_stack


@workflow.defn(name=names.DELETE_INFRA_WORKFLOW)
class DeleteInfrastructureWorkflow:
    """
    Tear down the cluster's cloud resources in dependency order.

    Load balancers created by Kubernetes hold network interfaces in the
    cluster subnets, so nothing is deleted until all of them are gone.
    """

    def __init__(self) -> None:
        self.steps: List[str] = []

    @workflow.query
    def completed_steps(self) -> List[str]:
        return self.steps

    async def _stacks_of(self, ref: ClusterRef, stack_type: str) -> List[str]:
        found = await call(
            names.LIST_STACKS, ListStacksInput(cluster_id=ref.cluster_id, stack_type=stack_type), StackNames
        )
        return found.names

    @workflow.run
    async def run(self, ref: ClusterRef) -> List[str]:
        cid = ref.cluster_id

        # (a) VPC and security groups
        vpc = await call(names.VPC_CONFIG, ref, VpcConfig)
        self.steps.append("vpc-config")

        # (b) + (c) load balancers owned by the cluster must be gone first
        owned = await call(
            names.OWNED_LOAD_BALANCERS, VpcRef(cluster_id=cid, vpc_id=vpc.vpc_id), LoadBalancerRefs
        )
        if owned.refs:
            await call(names.WAIT_LOAD_BALANCERS, owned, long=True)
        self.steps.append("load-balancers")

        # (d) node pools
        await delete_stacks(cid, await self._stacks_of(ref, naming.STACK_NODEPOOL))
        self.steps.append("node-pools")

        # (e) control plane and the way it was reached
        await delete_stacks(cid, await self._stacks_of(ref, naming.STACK_MASTER))
        await delete_stacks(cid, await self._stacks_of(ref, naming.STACK_NLB))
        await call(names.RELEASE_EIP, ref)
        self.steps.append("control-plane")

        # (f)
        await call(names.DELETE_SSH_KEY, ref)
        self.steps.append("ssh-key")

        # (g) interfaces left behind by terminated instances and load balancers
        nics = await call(
            names.ORPHAN_NICS,
            OrphanNicsInput(cluster_id=cid, vpc_id=vpc.vpc_id, security_group_ids=vpc.security_group_ids),
            NicList,
        )
        await join(*(
            call(names.DELETE_NIC, DeleteNicInput(cluster_id=cid, interface_id=nic))
            for nic in nics.interface_ids
        ))
        self.steps.append("network-interfaces")

        # (h)
        await delete_stacks(cid, await self._stacks_of(ref, naming.STACK_SUBNET))
        self.steps.append("subnets")

        # (i)
        await delete_stack(cid, naming.network_stack(ref.cluster_name))
        self.steps.append("network")

        # (j) shared roles, only once the last cluster is gone
        async def delete_roles() -> Optional[str]:
            roles = await call(names.DELETE_ROLES_STACK, ref, CreateStackOutput)
            return roles.stack_name if roles.stack_id else None

        await drive_stack(cid, delete_roles, DELETE)
        self.steps.append("roles")

        # (k)
        await call(names.DELETE_USER_ACCESS_KEY, ref)
        self.steps.append("access-key")
        return self.steps
