# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/failures.py

"""Turning activity/child failures into the error a workflow surfaces."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable, List, Optional, Tuple

from temporalio.exceptions import ActivityError, ApplicationError, ChildWorkflowError

from kubestack.errors import COMBINED, KubestackError, to_application_error


def root_cause(err: BaseException) -> BaseException:
    while isinstance(err, (ActivityError, ChildWorkflowError)) and err.cause is not None:
        err = err.cause
    return err


def describe(err: BaseException) -> str:
    root = root_cause(err)
    return getattr(root, "message", None) or str(root) or type(root).__name__


def as_workflow_error(err: BaseException) -> BaseException:
    """Domain errors raised in workflow code must fail the workflow, not the workflow task."""
    if isinstance(err, KubestackError):
        return to_application_error(err)
    return err


def combine(errors: Iterable[Optional[BaseException]]) -> Optional[ApplicationError]:
    """One error carrying every per-item message, or None when all items succeeded."""
    errs = [e for e in errors if e is not None]
    if not errs:
        return None
    if len(errs) == 1:
        root = root_cause(errs[0])
        if isinstance(root, ApplicationError):
            return ApplicationError(root.message, type=root.type, non_retryable=True)
    return ApplicationError("; ".join(describe(e) for e in errs), type=COMBINED, non_retryable=True)


async def gather_all(*aws: Awaitable[Any]) -> Tuple[List[Any], List[Optional[BaseException]]]:
    """
    Await every future, keeping each one's error separate. Results and errors
    line up with the inputs. Cancellation of the caller still propagates.
    """
    outcomes = await asyncio.gather(*aws, return_exceptions=True)
    results: List[Any] = []
    errors: List[Optional[BaseException]] = []
    for outcome in outcomes:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            results.append(None)
            errors.append(outcome)
        else:
            results.append(outcome)
            errors.append(None)
    return results, errors


async def join(*aws: Awaitable[Any]) -> List[Any]:
    """gather_all, then raise the combined error if any item failed."""
    results, errors = await gather_all(*aws)
    err = combine(errors)
    if err is not None:
        raise err
    return results


def has_reason(err: BaseException, reason: str) -> bool:
    root = root_cause(err)
    return isinstance(root, ApplicationError) and root.type == reason
