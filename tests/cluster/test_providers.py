import shlex

import pytest

from kubestack.cluster.accessor import InMemoryClusterStore
from kubestack.cluster.bootstrap import BootstrapContext, bootstrap_command
from kubestack.cluster.models import ClusterNetwork, ClusterRecord, NodePoolSpec
from kubestack.cluster.providers import PkeOnAws, PkeOnPrem, provider_for
from kubestack.errors import UnsupportedProviderError


def _record(provider="pke-aws"):
    return ClusterRecord(
        id="42", uid="u-42", name="prod", org_id="7", provider=provider,
        region="us-east-1", secret_id="sec",
    )


CTX = BootstrapContext(
    pipeline_url="https://pipeline.example.com",
    org_id="7",
    cluster_id="42",
    cluster_name="prod",
    kubernetes_version="1.29.4",
    api_address="1.2.3.4",
    cloud_provider="aws",
)


def test_master_command():
    pool = NodePoolSpec(name="master", role="master", labels={"b": "2", "a": "1"})
    args = shlex.split(bootstrap_command(CTX, pool))
    assert args[:3] == ["pke", "install", "master"]
    assert "--kubernetes-api-server=1.2.3.4:6443" in args
    assert "--kubernetes-node-labels=a=1,b=2" in args
    assert "--kubernetes-master-mode=default" in args
    assert not any(a.startswith("--kubernetes-oidc") for a in args)


def test_ha_master_with_oidc():
    ctx = BootstrapContext(**{**CTX.__dict__, "ha_master": True,
                              "oidc_issuer_url": "https://id.example.com/realms/k", "oidc_client_id": "c-1"})
    args = shlex.split(bootstrap_command(ctx, NodePoolSpec(name="master", role="master")))
    assert "--kubernetes-master-mode=ha" in args
    assert "--kubernetes-oidc-client-id=c-1" in args


def test_worker_command_has_no_master_flags():
    args = shlex.split(bootstrap_command(CTX, NodePoolSpec(name="pool1")))
    assert args[2] == "worker"
    assert "--pipeline-nodepool=pool1" in args
    assert not any(a.startswith("--kubernetes-master-mode") for a in args)


def test_provider_lookup():
    assert isinstance(provider_for(_record()), PkeOnAws)
    assert isinstance(provider_for(_record("pke-onprem")), PkeOnPrem)
    with pytest.raises(UnsupportedProviderError):
        provider_for(_record("gke"))


def test_onprem_lacks_aws_capabilities():
    provider = provider_for(_record("pke-onprem"))
    with pytest.raises(UnsupportedProviderError) as err:
        provider.aws_credentials()
    assert "AWS access" in str(err.value)
    assert err.value.final
    with pytest.raises(UnsupportedProviderError):
        provider.save_network(InMemoryClusterStore([_record("pke-onprem")]), ClusterNetwork())


def test_aws_saves_network():
    store = InMemoryClusterStore([_record()])
    provider = provider_for(store.get_cluster("42"))
    provider.save_network(store, ClusterNetwork(vpc_id="vpc-1", subnet_ids=["subnet-1"]))
    assert store.get_cluster("42").network.vpc_id == "vpc-1"
    assert provider.aws_credentials() == ("7", "sec", "us-east-1")
