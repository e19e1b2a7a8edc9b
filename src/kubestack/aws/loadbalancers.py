# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/loadbalancers.py

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from botocore.exceptions import ClientError

from kubestack.config.models import PollingSettings
from kubestack.errors import LoadBalancersPresentError, error_code
from kubestack.observers.dispatcher import EventBus

from . import tags as stack_tags
from .polling import Poller, PollTimeout, activity_heartbeat, activity_pause

log = logging.getLogger("kubestack")

CLASSIC = "elb"
V2 = "elbv2"

_TAG_BATCH = 20


def _chunks(items: List[str], size: int = _TAG_BATCH):
    for i in range(0, len(items), size):
        yield items[i:i + size]


def ref(kind: str, ident: str) -> str:
    return f"{kind}:{ident}"


def parse_ref(value: str) -> tuple[str, str]:
    kind, _, ident = value.partition(":")
    return kind, ident


class LoadBalancers:
    """Finds the load balancers Kubernetes created for a cluster and waits for them to go away."""

    def __init__(
        self,
        elb,
        elbv2,
        *,
        polling: Optional[PollingSettings] = None,
        bus: Optional[EventBus] = None,
        event_ctx: Optional[dict] = None,
        pause: Callable[[float], bool] = activity_pause,
        heartbeat: Callable[..., None] = activity_heartbeat,
    ):
        self.elb = elb
        self.elbv2 = elbv2
        self.polling = polling or PollingSettings()
        self.bus = bus
        self.event_ctx = event_ctx
        self._pause = pause
        self._heartbeat = heartbeat

    def _v2_in_vpc(self, vpc_id: str) -> List[str]:
        arns: List[str] = []
        kwargs: Dict[str, str] = {}
        while True:
            resp = self.elbv2.describe_load_balancers(**kwargs)
            arns += [lb["LoadBalancerArn"] for lb in resp.get("LoadBalancers", []) if lb.get("VpcId") == vpc_id]
            marker = resp.get("NextMarker")
            if not marker:
                return arns
            kwargs = {"Marker": marker}

    def _classic_in_vpc(self, vpc_id: str) -> List[str]:
        names: List[str] = []
        kwargs: Dict[str, str] = {}
        while True:
            resp = self.elb.describe_load_balancers(**kwargs)
            names += [
                lb["LoadBalancerName"]
                for lb in resp.get("LoadBalancerDescriptions", [])
                if lb.get("VPCId") == vpc_id
            ]
            marker = resp.get("NextMarker")
            if not marker:
                return names
            kwargs = {"Marker": marker}

    def owned(self, cluster: str, vpc_id: str) -> List[str]:
        """
        Refs (``elb:<name>`` / ``elbv2:<arn>``) of the load balancers Kubernetes
        created for the cluster in ``vpc_id``. The master NLB belongs to its
        stack and is left to the stack delete.
        """
        found: List[str] = []

        for batch in _chunks(self._v2_in_vpc(vpc_id)):
            for desc in self.elbv2.describe_tags(ResourceArns=batch).get("TagDescriptions", []):
                if stack_tags.created_by_kubernetes(stack_tags.from_aws(desc.get("Tags")), cluster):
                    found.append(ref(V2, desc["ResourceArn"]))

        for batch in _chunks(self._classic_in_vpc(vpc_id)):
            for desc in self.elb.describe_tags(LoadBalancerNames=batch).get("TagDescriptions", []):
                if stack_tags.created_by_kubernetes(stack_tags.from_aws(desc.get("Tags")), cluster):
                    found.append(ref(CLASSIC, desc["LoadBalancerName"]))

        log.info("cluster %s owns %d load balancers in %s", cluster, len(found), vpc_id)
        return found

    def exists(self, value: str) -> bool:
        kind, ident = parse_ref(value)
        try:
            if kind == V2:
                self.elbv2.describe_load_balancers(LoadBalancerArns=[ident])
            else:
                self.elb.describe_load_balancers(LoadBalancerNames=[ident])
        except ClientError as exc:
            if error_code(exc) in ("LoadBalancerNotFound", "AccessPointNotFound"):
                return False
            raise
        return True

    def wait_deleted(self, refs: List[str]) -> None:
        """Block until none of ``refs`` exists any more."""
        remaining = list(refs)
        if not remaining:
            return

        def check(_attempt: int) -> Optional[bool]:
            remaining[:] = [r for r in remaining if self.exists(r)]
            if not remaining:
                return True
            log.debug("still waiting for %d load balancers: %s", len(remaining), ", ".join(remaining))
            return None

        poller = Poller(
            name="load-balancers",
            interval=self.polling.elb_interval_s,
            attempts=self.polling.elb_attempts,
            pause=self._pause,
            heartbeat=self._heartbeat,
            bus=self.bus,
            event_ctx=self.event_ctx,
        )
        try:
            poller.run(check)
        except PollTimeout as exc:
            raise LoadBalancersPresentError(
                f"load balancers still present after {exc.attempts} attempts: {', '.join(remaining)}"
            ) from exc
