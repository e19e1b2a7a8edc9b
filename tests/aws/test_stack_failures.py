from kubestack.aws import failures
from kubestack.errors import STACK_FAILED, STACK_FAILED_TRANSIENT


def _event(logical, status, reason):
    return {"LogicalResourceId": logical, "ResourceStatus": status, "ResourceStatusReason": reason}


def test_failure_reasons_skip_cancellations_and_successes():
    events = [
        _event("Vpc", "CREATE_COMPLETE", "done"),
        _event("Subnet", "CREATE_FAILED", "Resource creation cancelled"),
        _event("Role", "CREATE_FAILED", "Invalid parameter value"),
    ]
    assert failures.failure_reasons(events) == ["Role: Invalid parameter value"]


def test_invalid_parameter_is_final():
    err = failures.classify(
        "kubestack-master-prod",
        "ROLLBACK_COMPLETE",
        [_event("Master", "CREATE_FAILED", "Value (t9.huge) for parameter instanceType is invalid")],
    )
    assert err.final
    assert err.reason == STACK_FAILED
    assert "kubestack-master-prod" in str(err)
    assert "ROLLBACK_COMPLETE" in str(err)


def test_throttling_is_retryable():
    err = failures.classify(
        "s",
        "ROLLBACK_COMPLETE",
        [_event("Role", "CREATE_FAILED", "Rate exceeded (Service: Iam; Status Code: 400; ThrottlingException)")],
    )
    assert not err.final
    assert err.reason == STACK_FAILED_TRANSIENT


def test_mixed_reasons_are_final():
    err = failures.classify(
        "s",
        "ROLLBACK_COMPLETE",
        [
            _event("A", "CREATE_FAILED", "Internal Failure"),
            _event("B", "CREATE_FAILED", "You have exceeded your maximum number of VPCs (LimitExceeded)"),
        ],
    )
    assert err.final


def test_rollback_failure_is_final_even_when_transient():
    err = failures.classify("s", "ROLLBACK_FAILED", [_event("A", "DELETE_FAILED", "Internal Failure")])
    assert err.final


def test_no_reason_is_final():
    assert failures.classify("s", "CREATE_FAILED", []).final


def test_dependency_violation_on_delete_is_retryable():
    err = failures.classify(
        "s",
        "DELETE_FAILED",
        [_event("Subnet", "DELETE_FAILED", "The subnet 'subnet-1' has dependencies and cannot be deleted.")],
    )
    assert not err.final
