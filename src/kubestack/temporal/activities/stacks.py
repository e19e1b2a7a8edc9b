# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/activities/stacks.py

from __future__ import annotations

from temporalio import activity

from kubestack.aws import naming, tags
from kubestack.aws.stacks import output_map
from kubestack.errors import classified
from kubestack.temporal import names
from kubestack.temporal.models import (
    ClusterRef,
    CreateStackOutput,
    ListStacksInput,
    StackNames,
    StackOutputs,
    StackRef,
    WaitStackInput,
)

from .base import Activities

IAM_CAPABILITIES = ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"]


class StackActivities(Activities):
    """Stack operations shared by every workflow."""

    @activity.defn(name=names.CREATE_AWS_ROLES)
    @classified
    def create_aws_roles(self, inp: ClusterRef) -> CreateStackOutput:
        """
        Create the account-wide roles stack unless it is already created or
        being created. The list-then-create check is not atomic: two clusters
        created at the same moment can both get past it, and the loser's
        create is then adopted as AlreadyExists.
        """
        record = self.cluster(inp.cluster_id)
        stacks = self.stacks(record)
        name = self.config.global_stack_name
        if stacks.is_active(name):
            activity.logger.info("roles stack %s already present", name)
            return CreateStackOutput(stack_name=name)

        stack_id = stacks.create(
            name,
            template="global",
            params={},
            tags={**self.config.extra_tags, tags.STACK_TYPE_TAG: naming.STACK_ROLES},
            token=self.token(),
            capabilities=IAM_CAPABILITIES,
        )
        return CreateStackOutput(stack_name=name, stack_id=stack_id)

    @activity.defn(name=names.DELETE_ROLES_STACK)
    @classified
    def delete_roles_stack(self, inp: ClusterRef) -> CreateStackOutput:
        """
        Delete the shared roles stack once no other cluster needs it.
        Returns an empty stack id when the stack was kept.
        """
        record = self.cluster(inp.cluster_id)
        stacks = self.stacks(record)
        others = [
            n for n in stacks.names_by_tags({tags.STACK_TYPE_TAG: naming.STACK_NETWORK})
            if n != naming.network_stack(record.name)
        ] + [
            n for n in stacks.names_by_tags({tags.STACK_TYPE_TAG: naming.STACK_MASTER})
            if n != naming.master_stack(record.name)
        ]
        name = self.config.global_stack_name
        if others:
            activity.logger.info("keeping %s, still used by %s", name, ", ".join(sorted(others)))
            return CreateStackOutput(stack_name=name)
        stacks.delete(name, token=self.token())
        return CreateStackOutput(stack_name=name, stack_id=name)

    @activity.defn(name=names.WAIT_STACK)
    @classified
    def wait_stack(self, inp: WaitStackInput) -> StackOutputs:
        record = self.cluster(inp.cluster_id)
        stack = self.stacks(record).wait(inp.stack_name, inp.operation)
        return StackOutputs(
            stack_name=inp.stack_name,
            status=stack.get("StackStatus", ""),
            outputs=output_map(stack),
        )

    @activity.defn(name=names.DELETE_STACK)
    @classified
    def delete_stack(self, inp: StackRef) -> None:
        record = self.cluster(inp.cluster_id)
        self.stacks(record).delete(inp.stack_name, token=self.token())

    @activity.defn(name=names.LIST_STACKS)
    @classified
    def list_stacks(self, inp: ListStacksInput) -> StackNames:
        record = self.cluster(inp.cluster_id)
        found = self.stacks(record).names_by_tags(
            {tags.CLUSTER_NAME_TAG: record.name, tags.STACK_TYPE_TAG: inp.stack_type}
        )
        return StackNames(names=sorted(found))
