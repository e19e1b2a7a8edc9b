import pytest
import yaml

from kubestack.cluster.accessor import InMemoryClusterStore, YamlClusterStore
from kubestack.cluster.models import ClusterRecord, NodePoolSpec
from kubestack.cluster.secrets import (
    SSH,
    CreateSecretRequest,
    InMemorySecretStore,
    YamlSecretStore,
    cluster_uid_tag,
)
from kubestack.errors import NotFoundError


def _record():
    return ClusterRecord(
        id="42", uid="u-42", name="prod", org_id="7", provider="pke-aws",
        region="us-east-1", secret_id="sec",
        node_pools=[NodePoolSpec(name="master", role="master")],
    )


def test_secret_store_get_or_create_is_stable():
    store = InMemorySecretStore()
    req = CreateSecretRequest(name="ssh-prod", type=SSH, values={"public_key": "ssh-rsa AAAA"})
    first = store.get_or_create("7", req)
    second = store.get_or_create("7", CreateSecretRequest(name="ssh-prod", type=SSH, values={"public_key": "other"}))
    assert first.id == second.id
    assert second.values["public_key"] == "ssh-rsa AAAA"


def test_secret_store_update_delete_and_list():
    store = InMemorySecretStore()
    sid = store.store("7", CreateSecretRequest(name="a", type=SSH, tags=[cluster_uid_tag("u-42")]))
    store.store("7", CreateSecretRequest(name="b", type=SSH))
    store.update("7", sid, CreateSecretRequest(name="a", type=SSH, values={"k": "v"}, tags=[cluster_uid_tag("u-42")]))
    assert store.get("7", sid).version == 2
    assert [r.name for r in store.list("7", tags=[cluster_uid_tag("u-42")])] == ["a"]
    store.delete("7", sid)
    store.delete("7", sid)
    with pytest.raises(NotFoundError):
        store.get("7", sid)


def test_yaml_secret_store_survives_reload(tmp_path):
    store = YamlSecretStore(tmp_path)
    sid = store.store("7", CreateSecretRequest(name="ssh-prod", type=SSH, values={"public_key": "ssh-rsa AAAA"}))
    assert (tmp_path / "7.yaml").stat().st_mode & 0o777 == 0o600
    assert YamlSecretStore(tmp_path).get("7", sid).values == {"public_key": "ssh-rsa AAAA"}


def test_cluster_store_hands_out_copies():
    store = InMemoryClusterStore([_record()])
    record = store.get_cluster("42")
    record.status = "RUNNING"
    assert store.get_cluster("42").status == "CREATING"
    store.update_status("42", "RUNNING", "ready")
    assert store.get_cluster("42").status_message == "ready"
    with pytest.raises(NotFoundError):
        store.get_cluster("43")


def test_yaml_cluster_store_survives_reload(tmp_path):
    store = YamlClusterStore(tmp_path)
    record = _record()
    record.network.vpc_id = "vpc-1"
    store.persist(record)
    again = YamlClusterStore(tmp_path).get_cluster("42")
    assert again.network.vpc_id == "vpc-1"
    assert again.node_pools[0].is_master


def test_yaml_cluster_store_sees_edits_from_other_processes(tmp_path):
    store = YamlClusterStore(tmp_path)
    store.persist(_record())
    assert store.get_cluster("42").kubeconfig == ""

    path = tmp_path / "42.yaml"
    data = yaml.safe_load(path.read_text())
    data["kubeconfig"] = "apiVersion: v1\n"
    path.write_text(yaml.safe_dump(data))
    assert store.get_cluster("42").kubeconfig == "apiVersion: v1\n"

    path.unlink()
    with pytest.raises(NotFoundError):
        store.get_cluster("42")


def test_yaml_secret_store_keeps_secrets_written_by_another_instance(tmp_path):
    ours = YamlSecretStore(tmp_path)
    ours.store("7", CreateSecretRequest(name="ssh-prod", type=SSH))
    theirs = YamlSecretStore(tmp_path)
    uploaded = theirs.store("7", CreateSecretRequest(name="uploaded", type=SSH, values={"k": "v"}))

    assert ours.get("7", uploaded).values == {"k": "v"}
    ours.store("7", CreateSecretRequest(name="ssh-other", type=SSH))
    assert sorted(r.name for r in YamlSecretStore(tmp_path).list("7")) == ["ssh-other", "ssh-prod", "uploaded"]
