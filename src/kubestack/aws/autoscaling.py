# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/autoscaling.py

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from botocore.exceptions import ClientError

from kubestack.cluster.models import NodePoolSpec
from kubestack.cluster.nodepools import clamp
from kubestack.config.models import PollingSettings
from kubestack.errors import AsgNotHealthyError, NotFoundError, SpotRequestFailedError, error_code
from kubestack.observers.dispatcher import EventBus
from kubestack.observers.events import DesiredCapacityClamped, NodePoolCapacity, SpotRequestFailed

from .polling import Poller, PollCancelled, PollTimeout, activity_heartbeat, activity_pause
from .stacks import StackManager

log = logging.getLogger("kubestack")

NODE_GROUP_RESOURCE = "NodeGroup"

# spot request status codes that cannot clear up without a config change
SPOT_FINAL_CODES = {
    "price-too-low",
    "capacity-not-available",
    "capacity-oversubscribed",
    "bad-parameters",
    "constraint-not-fulfillable",
    "az-group-constraint",
    "placement-group-constraint",
    "launch-group-constraint",
}

# stack parameters the node pool update rewrites; every other parameter keeps its value
MIN_SIZE = "NodeAutoScalingGroupMinSize"
MAX_SIZE = "NodeAutoScalingGroupMaxSize"
INIT_SIZE = "NodeAutoScalingInitSize"
AUTOSCALER_ENABLED = "ClusterAutoscalerEnabled"


class _GroupMissing(Exception):
    pass


def healthy_count(group: dict) -> int:
    return sum(
        1
        for i in group.get("Instances", [])
        if i.get("HealthStatus") == "Healthy" and i.get("LifecycleState") == "InService"
    )


def uses_spot(group: dict) -> bool:
    policy = group.get("MixedInstancesPolicy")
    if policy:
        dist = policy.get("InstancesDistribution", {})
        return dist.get("OnDemandPercentageAboveBaseCapacity", 100) < 100
    return bool(group.get("SpotPrice"))


class AutoScaling:
    """Scaling group reads and writes for node pool stacks."""

    def __init__(
        self,
        asg,
        ec2,
        stacks: StackManager,
        *,
        polling: Optional[PollingSettings] = None,
        bus: Optional[EventBus] = None,
        event_ctx: Optional[dict] = None,
        pause: Callable[[float], bool] = activity_pause,
        heartbeat: Callable[..., None] = activity_heartbeat,
    ):
        self.asg = asg
        self.ec2 = ec2
        self.stacks = stacks
        self.polling = polling or PollingSettings()
        self.bus = bus or EventBus()
        self.event_ctx = event_ctx or {"ts": "", "run_id": "", "env": "", "cluster": None}
        self._pause = pause
        self._heartbeat = heartbeat

    def _emit(self, cls, **kw) -> None:
        self.bus.emit(cls(**self.event_ctx, **kw))

    def group_for_stack(self, stack_name: str) -> dict:
        try:
            name = self.stacks.resource_id(stack_name, NODE_GROUP_RESOURCE)
        except ClientError as exc:
            if error_code(exc) == "ValidationError":
                raise _GroupMissing(stack_name) from exc
            raise
        groups = self.asg.describe_auto_scaling_groups(AutoScalingGroupNames=[name]).get("AutoScalingGroups", [])
        if not groups:
            raise _GroupMissing(name)
        return groups[0]

    def failed_spot_requests(self, group: dict) -> List[dict]:
        name = group["AutoScalingGroupName"]
        resp = self.ec2.describe_spot_instance_requests(
            Filters=[{"Name": "tag:aws:autoscaling:groupName", "Values": [name]}]
        )
        return [
            r for r in resp.get("SpotInstanceRequests", [])
            if r.get("Status", {}).get("Code") in SPOT_FINAL_CODES
        ]

    def wait_fulfilled(self, stack_name: str) -> bool:
        """
        Poll until the group behind ``stack_name`` has as many healthy in-service
        instances as it desires. Returns False when the activity got cancelled.
        """

        def check(_attempt: int) -> Optional[bool]:
            try:
                group = self.group_for_stack(stack_name)
            except _GroupMissing:
                log.debug("scaling group of %s not visible yet", stack_name)
                return None

            healthy = healthy_count(group)
            desired = group.get("DesiredCapacity", 0)
            self._emit(NodePoolCapacity, group=group["AutoScalingGroupName"], healthy=healthy, desired=desired)
            if healthy == desired:
                return True

            if uses_spot(group):
                failed = self.failed_spot_requests(group)
                if failed:
                    req = failed[0]
                    code = req["Status"]["Code"]
                    self._emit(
                        SpotRequestFailed,
                        group=group["AutoScalingGroupName"],
                        request_id=req.get("SpotInstanceRequestId", ""),
                        status=code,
                    )
                    raise SpotRequestFailedError(
                        f"spot request {req.get('SpotInstanceRequestId', '')} of "
                        f"{group['AutoScalingGroupName']} failed: {code}: {req['Status'].get('Message', '')}"
                    )
            return None

        poller = Poller(
            name=f"asg/{stack_name}",
            interval=self.polling.asg_interval_s,
            attempts=self.polling.asg_attempts,
            pause=self._pause,
            heartbeat=self._heartbeat,
            bus=self.bus,
            event_ctx=self.event_ctx,
        )
        try:
            return poller.run(check)
        except PollCancelled:
            log.info("waiting for %s cancelled", stack_name)
            return False
        except PollTimeout as exc:
            raise AsgNotHealthyError(
                f"scaling group of {stack_name} not healthy after "
                f"{exc.attempts} x {self.polling.asg_interval_s}s"
            ) from exc

    def desired_capacity(self, stack_name: str, pool: NodePoolSpec) -> int:
        """
        Desired capacity to submit on update. With autoscaling on, the
        autoscaler owns the current value; it is only clamped into range.
        """
        if not pool.autoscaling:
            return pool.count
        group = self.group_for_stack(stack_name)
        current = group.get("DesiredCapacity", pool.count)
        submitted = clamp(current, pool.min_count, pool.max_count)
        self._emit(DesiredCapacityClamped, pool=pool.name, current=current, submitted=submitted)
        return submitted

    def update_node_group(self, stack_name: str, pool: NodePoolSpec, *, token: str) -> bool:
        """Resize a pool stack; returns False when nothing changed."""
        stack = self.stacks.describe(stack_name)
        if stack is None:
            raise NotFoundError(f"node pool stack {stack_name} does not exist")

        desired = self.desired_capacity(stack_name, pool)
        params = {
            MIN_SIZE: pool.min_count,
            MAX_SIZE: pool.max_count,
            INIT_SIZE: desired,
        }
        existing = [p["ParameterKey"] for p in stack.get("Parameters", [])]
        if AUTOSCALER_ENABLED in existing:
            params[AUTOSCALER_ENABLED] = pool.autoscaling
        keep = [k for k in existing if k not in params]
        return self.stacks.update(stack_name, params=params, keep=keep, token=token)
