# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/failures.py

"""
Classification of CloudFormation stack failures.

A waiter that ends in a failure state only says *that* a stack failed. The
stack events say *why*; the reasons decide whether another attempt could
possibly succeed.
"""

from __future__ import annotations

from typing import Iterable, List

from kubestack.errors import StackFailure

# resource status reasons that may clear up on their own
RETRYABLE_MARKERS = (
    "throttl",
    "rate exceeded",
    "request limit exceeded",
    "internalfailure",
    "internal failure",
    "service unavailable",
    "serviceunavailable",
    "try again",
    "timed out",
    "eventual consistency",
    "not yet",
    "insufficientinstancecapacity",
    "dependencyviolation",
    "has dependencies",
)

FINAL_STATUSES = {
    "ROLLBACK_FAILED",
    "UPDATE_ROLLBACK_FAILED",
}


def failure_reasons(events: Iterable[dict]) -> List[str]:
    """Failure reasons from stack events, newest first, cancellations dropped."""
    reasons: List[str] = []
    for ev in events:
        status = ev.get("ResourceStatus", "")
        reason = ev.get("ResourceStatusReason") or ""
        if not status.endswith("_FAILED") or not reason:
            continue
        if "Resource creation cancelled" in reason or "Resource update cancelled" in reason:
            continue
        reasons.append(f"{ev.get('LogicalResourceId', '?')}: {reason}")
    return reasons


def is_transient_reason(reason: str) -> bool:
    r = reason.lower()
    return any(m in r for m in RETRYABLE_MARKERS)


def classify(stack_name: str, status: str, events: Iterable[dict]) -> StackFailure:
    """
    Build a StackFailure for a stack that ended in ``status``.

    Retryable only when every reported reason is transient; unknown reasons,
    missing reasons and stuck rollback states are final.
    """
    reasons = failure_reasons(events)
    retryable = (
        status not in FINAL_STATUSES
        and bool(reasons)
        and all(is_transient_reason(r) for r in reasons)
    )
    return StackFailure(stack_name, status, reasons, final=not retryable)
