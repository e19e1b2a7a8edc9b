import pytest

from kubestack.cluster.models import NodePoolSpec
from kubestack.cluster.nodepools import (
    assign_cidrs,
    clamp,
    diff_node_pools,
    master_pool,
    pool_subnets,
    required_zones,
    validate_pools,
)
from kubestack.errors import InvalidRequestError


def test_diff_partitions_names():
    diff = diff_node_pools(["master", "pool1", "pool2"], ["master", "pool2", "pool3"])
    assert diff.to_create == ["pool3"]
    assert diff.to_update == ["master", "pool2"]
    assert diff.to_delete == ["pool1"]


def test_diff_of_identical_sets_only_updates():
    diff = diff_node_pools(["a", "b"], ["b", "a"])
    assert (diff.to_create, diff.to_delete) == ([], [])
    assert diff.to_update == ["a", "b"]


def test_exactly_one_master():
    with pytest.raises(InvalidRequestError):
        master_pool([NodePoolSpec(name="w")])
    with pytest.raises(InvalidRequestError):
        master_pool([NodePoolSpec(name="m1", role="master"), NodePoolSpec(name="m2", role="master")])
    assert master_pool([NodePoolSpec(name="m", role="master"), NodePoolSpec(name="w")]).name == "m"


def test_validate_rejects_duplicates_and_bad_ranges():
    master = NodePoolSpec(name="master", role="master")
    with pytest.raises(InvalidRequestError) as err:
        validate_pools([master, NodePoolSpec(name="w"), NodePoolSpec(name="w")])
    assert "duplicate node pool names: w" in str(err.value)
    with pytest.raises(InvalidRequestError):
        validate_pools([master, NodePoolSpec(name="w", min_count=3, max_count=2)])
    validate_pools([master, NodePoolSpec(name="w", min_count=0, max_count=2)])


def test_required_zones_skip_pools_with_subnets():
    pools = [
        NodePoolSpec(name="master", role="master"),
        NodePoolSpec(name="a", availability_zones=["us-east-1b", "us-east-1c"]),
        NodePoolSpec(name="b", subnet_ids=["subnet-1"], availability_zones=["us-east-1d"]),
    ]
    assert required_zones(pools, "us-east-1") == ["us-east-1a", "us-east-1b", "us-east-1c"]


def test_assign_cidrs_in_zone_order():
    assert assign_cidrs(["us-east-1b", "us-east-1a"], "10.0.0.0/16") == {
        "us-east-1a": "10.0.0.0/20",
        "us-east-1b": "10.0.16.0/20",
    }


def test_assign_cidrs_out_of_room():
    with pytest.raises(InvalidRequestError):
        assign_cidrs(["a", "b", "c"], "10.0.0.0/19")


def test_pool_subnets():
    zone_subnets = {"us-east-1a": "subnet-a", "us-east-1b": "subnet-b"}
    explicit = NodePoolSpec(name="x", subnet_ids=["subnet-9"])
    assert pool_subnets(explicit, "us-east-1", zone_subnets) == ["subnet-9"]
    assert pool_subnets(NodePoolSpec(name="y"), "us-east-1", zone_subnets) == ["subnet-a"]
    with pytest.raises(InvalidRequestError):
        pool_subnets(NodePoolSpec(name="z", availability_zones=["us-east-1c"]), "us-east-1", zone_subnets)


@pytest.mark.parametrize("value,expected", [(0, 1), (3, 3), (7, 5)])
def test_clamp(value, expected):
    assert clamp(value, 1, 5) == expected
