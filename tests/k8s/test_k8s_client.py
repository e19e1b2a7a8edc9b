from types import SimpleNamespace

import pytest
from kubernetes.client.rest import ApiException

from kubestack.errors import InvalidRequestError
from kubestack.k8s import client as k8s


def _node(name, taints):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name),
        spec=SimpleNamespace(taints=[SimpleNamespace(key=k, value=None, effect="NoSchedule") for k in taints]),
    )


def _svc(ns, name, type_):
    return SimpleNamespace(metadata=SimpleNamespace(namespace=ns, name=name), spec=SimpleNamespace(type=type_))


class FakeCore:
    def __init__(self, nodes=(), services=(), missing=()):
        self.nodes = list(nodes)
        self.services = list(services)
        self.missing = set(missing)
        self.patches = {}
        self.deleted = []
        self.selector = None

    def list_node(self, label_selector=None):
        self.selector = label_selector
        return SimpleNamespace(items=self.nodes)

    def patch_node(self, name, body):
        self.patches[name] = body

    def list_service_for_all_namespaces(self):
        return SimpleNamespace(items=self.services)

    def delete_namespaced_service(self, name, namespace):
        if name in self.missing:
            raise ApiException(status=404, reason="Not Found")
        self.deleted.append((namespace, name))


def test_untaint_drops_control_plane_taints_only():
    core = FakeCore(nodes=[_node("ip-1", ["node-role.kubernetes.io/control-plane", "dedicated"])])
    assert k8s.untaint_masters(core) == ["ip-1"]
    assert core.selector == k8s.CONTROL_PLANE_SELECTOR
    body = core.patches["ip-1"]
    assert body["spec"]["taints"] == [{"key": "dedicated", "value": None, "effect": "NoSchedule"}]
    assert k8s.WORKER_ROLE_LABEL in body["metadata"]["labels"]


def test_load_balancer_services():
    core = FakeCore(services=[_svc("default", "web", "LoadBalancer"), _svc("default", "db", "ClusterIP")])
    assert k8s.load_balancer_services(core) == [("default", "web")]


def test_delete_service_ignores_missing():
    core = FakeCore(missing={"gone"})
    k8s.delete_service(core, "default", "gone")
    k8s.delete_service(core, "default", "web")
    assert core.deleted == [("default", "web")]


def test_core_api_needs_kubeconfig():
    with pytest.raises(InvalidRequestError):
        k8s.core_api("")
