# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/stacks.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from botocore.exceptions import ClientError

from kubestack.config.models import PollingSettings
from kubestack.errors import InvalidRequestError, NotFoundError, StackWaitTimeout, error_code, error_message
from kubestack.observers.dispatcher import EventBus
from kubestack.observers.events import (
    StackAdopted,
    StackCreateRequested,
    StackDeleteRequested,
    StackFailed,
    StackUpdateRequested,
)

from . import failures, naming, tags as stack_tags
from .polling import Poller, PollTimeout, activity_heartbeat, activity_pause

log = logging.getLogger("kubestack")

NO_UPDATES = "No updates are to be performed."

CREATE = "create"
UPDATE = "update"
DELETE = "delete"

SUCCESS_STATES = {
    CREATE: {"CREATE_COMPLETE"},
    UPDATE: {"UPDATE_COMPLETE"},
    DELETE: {"DELETE_COMPLETE"},
}

FAILURE_STATES = {
    CREATE: {"CREATE_FAILED", "DELETE_COMPLETE", "DELETE_FAILED", "ROLLBACK_FAILED", "ROLLBACK_COMPLETE"},
    UPDATE: {"UPDATE_FAILED", "UPDATE_ROLLBACK_FAILED", "UPDATE_ROLLBACK_COMPLETE"},
    DELETE: {"DELETE_FAILED"},
}

ACTIVE_STATES = ["CREATE_COMPLETE", "CREATE_IN_PROGRESS"]

# a create that ended here leaves a stack that can only be deleted
REPLACEABLE_STATES = {"ROLLBACK_COMPLETE", "CREATE_FAILED"}


def parameters(values: Mapping[str, Any], *, keep: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """CloudFormation parameter list; names in ``keep`` reuse their previous value."""
    out: List[Dict[str, Any]] = [{"ParameterKey": k, "UsePreviousValue": True} for k in keep]
    for k, v in values.items():
        if isinstance(v, bool):
            v = "true" if v else "false"
        out.append({"ParameterKey": k, "ParameterValue": str(v)})
    return out


def output_map(stack: Mapping[str, Any]) -> Dict[str, str]:
    return {o["OutputKey"]: o.get("OutputValue", "") for o in stack.get("Outputs", [])}


def _missing(exc: ClientError) -> bool:
    return error_code(exc) == "ValidationError" and "does not exist" in error_message(exc)


class StackManager:
    """
    Idempotent create/update/delete/wait of CloudFormation stacks.

    Creates carry a deterministic ClientRequestToken and adopt a stack that
    already exists under the same name; updates without material change and
    deletes of absent stacks both succeed.
    """

    def __init__(
        self,
        cf,
        *,
        templates_dir: str | Path = "templates",
        polling: Optional[PollingSettings] = None,
        bus: Optional[EventBus] = None,
        event_ctx: Optional[dict] = None,
        pause: Callable[[float], bool] = activity_pause,
        heartbeat: Callable[..., None] = activity_heartbeat,
    ):
        self.cf = cf
        self.templates_dir = Path(templates_dir).expanduser()
        self.polling = polling or PollingSettings()
        self.bus = bus or EventBus()
        self.event_ctx = event_ctx or {"ts": "", "run_id": "", "env": "", "cluster": None}
        self._pause = pause
        self._heartbeat = heartbeat

    def _emit(self, cls, **kw) -> None:
        self.bus.emit(cls(**self.event_ctx, **kw))

    def template_body(self, kind: str) -> str:
        path = self.templates_dir / f"{kind}.cf.yaml"
        if not path.is_file():
            raise InvalidRequestError(f"stack template {path} not found")
        return path.read_text()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def describe(self, name: str) -> Optional[dict]:
        try:
            stacks = self.cf.describe_stacks(StackName=name).get("Stacks", [])
        except ClientError as exc:
            if _missing(exc):
                return None
            raise
        return stacks[0] if stacks else None

    def outputs(self, name: str) -> Dict[str, str]:
        stack = self.describe(name)
        if stack is None:
            raise NotFoundError(f"stack {name} does not exist")
        return output_map(stack)

    def resource_id(self, name: str, logical_id: str) -> str:
        resp = self.cf.describe_stack_resource(StackName=name, LogicalResourceId=logical_id)
        return resp["StackResourceDetail"]["PhysicalResourceId"]

    def names_by_tags(self, wanted: Mapping[str, str]) -> List[str]:
        """Names of live stacks carrying every tag in ``wanted``."""
        names: List[str] = []
        kwargs: Dict[str, Any] = {}
        while True:
            resp = self.cf.describe_stacks(**kwargs)
            for stack in resp.get("Stacks", []):
                have = stack_tags.from_aws(stack.get("Tags"))
                if stack.get("StackStatus") == "DELETE_COMPLETE":
                    continue
                if all(have.get(k) == v for k, v in wanted.items()):
                    names.append(stack["StackName"])
            token = resp.get("NextToken")
            if not token:
                return names
            kwargs = {"NextToken": token}

    def is_active(self, name: str) -> bool:
        """True when a stack of that name is created or being created."""
        kwargs: Dict[str, Any] = {"StackStatusFilter": ACTIVE_STATES}
        while True:
            resp = self.cf.list_stacks(**kwargs)
            if any(s["StackName"] == name for s in resp.get("StackSummaries", [])):
                return True
            token = resp.get("NextToken")
            if not token:
                return False
            kwargs = {"StackStatusFilter": ACTIVE_STATES, "NextToken": token}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create(
        self,
        name: str,
        *,
        template: str,
        params: Mapping[str, Any],
        tags: Mapping[str, str],
        token: str,
        capabilities: Iterable[str] = (),
        disable_rollback: bool = False,
        timeout_minutes: Optional[int] = None,
    ) -> str:
        kwargs: Dict[str, Any] = {
            "StackName": name,
            "TemplateBody": self.template_body(template),
            "Parameters": parameters(params),
            "Tags": stack_tags.to_aws(tags),
            "ClientRequestToken": token,
            "DisableRollback": disable_rollback,
        }
        if capabilities:
            kwargs["Capabilities"] = list(capabilities)
        if timeout_minutes:
            kwargs["TimeoutInMinutes"] = timeout_minutes

        self._emit(StackCreateRequested, stack=name, token=token)
        try:
            return self.cf.create_stack(**kwargs)["StackId"]
        except ClientError as exc:
            if error_code(exc) != "AlreadyExistsException":
                raise
        stack = self.describe(name)
        if stack is None:
            raise NotFoundError(f"stack {name} reported as existing but cannot be described")

        if stack["StackStatus"] in REPLACEABLE_STATES:
            log.info("stack %s is in %s, replacing it", name, stack["StackStatus"])
            self.delete(name, token=naming.request_token("replace", token))
            self.wait(name, DELETE)
            kwargs["ClientRequestToken"] = naming.request_token("recreate", token)
            self._emit(StackCreateRequested, stack=name, token=kwargs["ClientRequestToken"])
            return self.cf.create_stack(**kwargs)["StackId"]

        log.info("stack %s already exists, adopting %s", name, stack["StackId"])
        self._emit(StackAdopted, stack=name)
        return stack["StackId"]

    def update(
        self,
        name: str,
        *,
        params: Mapping[str, Any],
        keep: Iterable[str] = (),
        token: str,
        capabilities: Iterable[str] = (),
    ) -> bool:
        """Returns False when CloudFormation reports nothing to change."""
        kwargs: Dict[str, Any] = {
            "StackName": name,
            "UsePreviousTemplate": True,
            "Parameters": parameters(params, keep=keep),
            "ClientRequestToken": token,
        }
        if capabilities:
            kwargs["Capabilities"] = list(capabilities)
        try:
            self.cf.update_stack(**kwargs)
        except ClientError as exc:
            if error_code(exc) == "ValidationError" and error_message(exc).startswith(NO_UPDATES):
                log.info("stack %s: nothing to update", name)
                self._emit(StackUpdateRequested, stack=name, changed=False)
                return False
            raise
        self._emit(StackUpdateRequested, stack=name, changed=True)
        return True

    def delete(self, name: str, *, token: str) -> None:
        self._emit(StackDeleteRequested, stack=name)
        try:
            self.cf.delete_stack(StackName=name, ClientRequestToken=token)
        except ClientError as exc:
            if _missing(exc):
                return
            raise

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------
    def wait(self, name: str, operation: str) -> dict:
        """
        Poll until the stack reaches the success state for ``operation``.

        Failure states raise a classified StackFailure; running out of
        attempts raises the retryable StackWaitTimeout.
        """
        if operation not in SUCCESS_STATES:
            raise InvalidRequestError(f"unknown stack operation {operation!r}")

        def check(_attempt: int) -> Optional[dict]:
            stack = self.describe(name)
            if stack is None:
                if operation == DELETE:
                    return {"StackName": name, "StackStatus": "DELETE_COMPLETE"}
                raise NotFoundError(f"stack {name} does not exist")
            status = stack["StackStatus"]
            if status in SUCCESS_STATES[operation]:
                return stack
            if status in FAILURE_STATES[operation]:
                raise self.failure(name, status)
            return None

        poller = Poller(
            name=f"stack/{name}/{operation}",
            interval=self.polling.stack_interval_s,
            attempts=self.polling.stack_attempts,
            pause=self._pause,
            heartbeat=self._heartbeat,
            bus=self.bus,
            event_ctx=self.event_ctx,
        )
        try:
            return poller.run(check)
        except PollTimeout as exc:
            raise StackWaitTimeout(f"stack {name} did not finish {operation}: {exc}") from exc

    def failure(self, name: str, status: str):
        try:
            events = self.cf.describe_stack_events(StackName=name).get("StackEvents", [])
        except ClientError:
            log.warning("could not fetch events of failed stack %s", name, exc_info=True)
            events = []
        err = failures.classify(name, status, events)
        self._emit(StackFailed, stack=name, status=status, final=err.final, reasons=err.reasons)
        return err
