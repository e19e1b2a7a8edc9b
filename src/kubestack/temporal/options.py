# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/options.py

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict

from temporalio.common import RetryPolicy
from temporalio.workflow import ActivityCancellationType

from kubestack.errors import FINAL_REASONS, STACK_FAILED_TRANSIENT

DEFAULT_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=1.5,
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=5,
    non_retryable_error_types=FINAL_REASONS,
)

LONG_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=1.5,
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=30,
    non_retryable_error_types=FINAL_REASONS,
)


def default_options() -> Dict[str, Any]:
    return dict(
        schedule_to_start_timeout=timedelta(minutes=5),
        start_to_close_timeout=timedelta(minutes=10),
        retry_policy=DEFAULT_RETRY,
        cancellation_type=ActivityCancellationType.WAIT_CANCELLATION_COMPLETED,
    )


def long_options() -> Dict[str, Any]:
    """For activities that poll: stack waits, scaling groups, load balancers."""
    return dict(
        schedule_to_start_timeout=timedelta(minutes=10),
        start_to_close_timeout=timedelta(hours=1),
        heartbeat_timeout=timedelta(minutes=1),
        retry_policy=LONG_RETRY,
        cancellation_type=ActivityCancellationType.WAIT_CANCELLATION_COMPLETED,
    )


# a failed stack does not recover by waiting on it again; the workflow re-issues the operation instead
STACK_WAIT_RETRY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=1.5,
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=30,
    non_retryable_error_types=FINAL_REASONS + [STACK_FAILED_TRANSIENT],
)


def stack_wait_options() -> Dict[str, Any]:
    return {**long_options(), "retry_policy": STACK_WAIT_RETRY}
