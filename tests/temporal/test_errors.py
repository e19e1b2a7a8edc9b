import pytest
from botocore.exceptions import ClientError
from temporalio.exceptions import ApplicationError

from kubestack.errors import (
    CLOUD_API_ERROR,
    COMBINED,
    STACK_FAILED_TRANSIENT,
    InvalidRequestError,
    StackFailure,
    StackWaitTimeout,
    classified,
    to_application_error,
)
from kubestack.temporal.failures import as_workflow_error, combine, gather_all, has_reason, join


def _client_error(code):
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, "CreateStack")


def test_domain_errors_keep_reason_and_finality():
    err = to_application_error(InvalidRequestError("bad pool"))
    assert (err.type, err.non_retryable) == ("INVALID_REQUEST", True)
    err = to_application_error(StackWaitTimeout("slow"))
    assert (err.type, err.non_retryable) == ("STACK_WAIT_TIMEOUT", False)


def test_transient_stack_failure_reason():
    err = to_application_error(StackFailure("s", "ROLLBACK_COMPLETE", ["Vpc: Rate exceeded"], final=False))
    assert err.type == STACK_FAILED_TRANSIENT
    assert not err.non_retryable


@pytest.mark.parametrize("code,final", [("AccessDenied", True), ("Throttling", False)])
def test_client_errors(code, final):
    err = to_application_error(_client_error(code))
    assert err.type == CLOUD_API_ERROR
    assert err.non_retryable is final
    assert code in err.message


def test_classified_wraps_only_known_errors():
    @classified
    def boom(exc):
        raise exc

    with pytest.raises(ApplicationError) as err:
        boom(InvalidRequestError("nope"))
    assert err.value.type == "INVALID_REQUEST"
    with pytest.raises(KeyError):
        boom(KeyError("x"))


def test_as_workflow_error_passes_others_through():
    other = RuntimeError("x")
    assert as_workflow_error(other) is other
    assert isinstance(as_workflow_error(InvalidRequestError("x")), ApplicationError)


def test_combine():
    assert combine([None, None]) is None
    single = combine([None, ApplicationError("pool1 failed", type="ASG_NOT_HEALTHY")])
    assert (single.type, single.message, single.non_retryable) == ("ASG_NOT_HEALTHY", "pool1 failed", True)
    both = combine([ApplicationError("a"), RuntimeError("b")])
    assert both.type == COMBINED
    assert both.message == "a; b"


def test_has_reason():
    assert has_reason(ApplicationError("x", type=STACK_FAILED_TRANSIENT), STACK_FAILED_TRANSIENT)
    assert not has_reason(ApplicationError("x", type="OTHER"), STACK_FAILED_TRANSIENT)
    assert not has_reason(RuntimeError("x"), STACK_FAILED_TRANSIENT)


async def _ok(v):
    return v


async def _fail(msg):
    raise ApplicationError(msg)


async def test_gather_all_keeps_results_and_errors_aligned():
    results, errors = await gather_all(_ok(1), _fail("two"), _ok(3))
    assert results == [1, None, 3]
    assert errors[0] is None and errors[2] is None
    assert errors[1].message == "two"


async def test_join_raises_combined():
    assert await join(_ok(1), _ok(2)) == [1, 2]
    with pytest.raises(ApplicationError) as err:
        await join(_fail("a"), _ok(2), _fail("b"))
    assert err.value.message == "a; b"
