# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/errors.py

from __future__ import annotations

import functools
from typing import Callable

from botocore.exceptions import ClientError
from temporalio.exceptions import ApplicationError

# reason codes understood by the retry policies (see temporal/options.py)
STACK_FAILED = "CLOUDFORMATION_STACK_FAILED"
STACK_WAIT_TIMEOUT = "STACK_WAIT_TIMEOUT"
STACK_FAILED_TRANSIENT = "CLOUDFORMATION_STACK_FAILED_TRANSIENT"
ASG_NOT_HEALTHY = "ASG_NOT_HEALTHY"
SPOT_REQUEST_FAILED = "SPOT_REQUEST_FAILED"
LOAD_BALANCERS_STILL_PRESENT = "LOAD_BALANCERS_STILL_PRESENT"
IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
VOLUME_SIZE_TOO_SMALL = "VOLUME_SIZE_TOO_SMALL"
UNSUPPORTED_PROVIDER = "UNSUPPORTED_PROVIDER"
INVALID_REQUEST = "INVALID_REQUEST"
NOT_FOUND = "NOT_FOUND"
CLOUD_API_ERROR = "CLOUD_API_ERROR"
MASTER_BOOTSTRAP_FAILED = "MASTER_BOOTSTRAP_FAILED"
MASTER_READY_TIMEOUT = "MASTER_READY_TIMEOUT"
KUBECONFIG_NOT_READY = "KUBECONFIG_NOT_READY"
COMBINED = "COMBINED"

FINAL_REASONS = [
    STACK_FAILED,
    SPOT_REQUEST_FAILED,
    IMAGE_NOT_FOUND,
    VOLUME_SIZE_TOO_SMALL,
    UNSUPPORTED_PROVIDER,
    INVALID_REQUEST,
    NOT_FOUND,
]

# boto error codes that will never succeed on retry
_FINAL_CLIENT_CODES = {
    "ValidationError",
    "InvalidParameterValue",
    "InvalidParameterCombination",
    "InvalidClientTokenId",
    "UnauthorizedOperation",
    "AccessDenied",
    "AccessDeniedException",
    "AuthFailure",
    "LimitExceededException",
    "InsufficientCapabilitiesException",
}


class KubestackError(RuntimeError):
    """Base error. ``reason`` is a stable code, ``final`` stops automatic retries."""

    reason: str = CLOUD_API_ERROR
    final: bool = False

    def __init__(self, message: str, *, reason: str | None = None, final: bool | None = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason
        if final is not None:
            self.final = final


class InvalidRequestError(KubestackError):
    reason = INVALID_REQUEST
    final = True


class NotFoundError(KubestackError):
    reason = NOT_FOUND
    final = True


class UnsupportedProviderError(KubestackError):
    reason = UNSUPPORTED_PROVIDER
    final = True


class StackFailure(KubestackError):
    """A stack reached a failure state; ``final`` depends on the resource failure reasons."""

    reason = STACK_FAILED

    def __init__(self, stack_name: str, status: str, reasons: list[str], *, final: bool):
        self.stack_name = stack_name
        self.status = status
        self.reasons = list(reasons)
        detail = "; ".join(reasons) if reasons else "no failure reason reported"
        super().__init__(
            f"stack {stack_name} ended in {status}: {detail}",
            reason=STACK_FAILED if final else STACK_FAILED_TRANSIENT,
            final=final,
        )


class StackWaitTimeout(KubestackError):
    reason = STACK_WAIT_TIMEOUT


class AsgNotHealthyError(KubestackError):
    reason = ASG_NOT_HEALTHY


class SpotRequestFailedError(KubestackError):
    reason = SPOT_REQUEST_FAILED
    final = True


class LoadBalancersPresentError(KubestackError):
    reason = LOAD_BALANCERS_STILL_PRESENT


class KubeconfigNotReadyError(KubestackError):
    """The master is up but its agent has not uploaded the kubeconfig yet."""

    reason = KUBECONFIG_NOT_READY


class ImageNotFoundError(KubestackError):
    reason = IMAGE_NOT_FOUND
    final = True


class VolumeSizeError(KubestackError):
    reason = VOLUME_SIZE_TOO_SMALL
    final = True


def error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def error_message(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Message", "")


def from_client_error(exc: ClientError) -> KubestackError:
    code = error_code(exc)
    return KubestackError(
        f"{code}: {error_message(exc)}",
        reason=CLOUD_API_ERROR,
        final=code in _FINAL_CLIENT_CODES,
    )


def to_application_error(exc: BaseException) -> ApplicationError:
    if isinstance(exc, ApplicationError):
        return exc
    if isinstance(exc, ClientError):
        exc = from_client_error(exc)
    if isinstance(exc, KubestackError):
        return ApplicationError(str(exc), type=exc.reason, non_retryable=exc.final)
    return ApplicationError(str(exc), type=type(exc).__name__)


def classified(fn: Callable) -> Callable:
    """Re-raise domain and boto errors as ApplicationError with their reason code."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (KubestackError, ClientError) as exc:
            raise to_application_error(exc) from exc

    return wrapper
