"""
Workflow runs against a time-skipping test server, with stub activities
registered under the real activity names.
"""

import uuid
from typing import List

import pytest
from temporalio import activity
from temporalio.client import WorkflowFailureError
from temporalio.exceptions import ApplicationError
from temporalio.testing import WorkflowEnvironment
from temporalio.worker import UnsandboxedWorkflowRunner, Worker

from kubestack.aws import naming
from kubestack.cluster.models import NodePoolSpec, ProvisioningRequest
from kubestack.errors import MASTER_BOOTSTRAP_FAILED, MASTER_READY_TIMEOUT
from kubestack.temporal import names
from kubestack.temporal.models import (
    ClusterRef,
    CreateMasterInput,
    CreateNlbInput,
    CreateStackOutput,
    CreateSubnetInput,
    CreateVpcInput,
    CreateWorkerPoolInput,
    DeleteClusterInput,
    DeleteNicInput,
    ElasticIPOutput,
    ListStacksInput,
    LoadBalancerOutput,
    LoadBalancerRefs,
    NicList,
    NodePoolList,
    OrphanNicsInput,
    PoolContext,
    SaveNetworkInput,
    SaveNodePoolsInput,
    SelectImageInput,
    SelectVolumeSizeInput,
    StackNames,
    StackOutputs,
    StackRef,
    Subnet,
    UpdatePoolInput,
    UpdatePoolOutput,
    UpdateStatusInput,
    VpcConfig,
    VpcRef,
    WaitStackInput,
)
from kubestack.temporal.workflows.create_cluster import CreateClusterWorkflow
from kubestack.temporal.workflows.delete_cluster import DeleteClusterWorkflow
from kubestack.temporal.workflows.delete_infra import DeleteInfrastructureWorkflow
from kubestack.temporal.workflows.k8s_resources import DeleteK8sResourcesWorkflow
from kubestack.temporal.workflows.update_cluster import UpdateClusterWorkflow

CLUSTER = "prod"


class Cloud:
    """State behind the stub activities; every call is appended to ``calls``."""

    def __init__(self):
        self.calls = []
        self.existing_pools: List[NodePoolSpec] = []
        self.saved_pools: List[NodePoolSpec] = []
        self.statuses: List[str] = []
        self.failing_pools = set()
        self.changed_pools = set()
        self.stacks_by_type = {}
        self.kube_unreachable = False

    def names(self, kind):
        return [c[1] for c in self.calls if c[0] == kind]

    def index(self, kind, detail=None):
        for i, c in enumerate(self.calls):
            if c[0] == kind and (detail is None or c[1] == detail):
                return i
        raise AssertionError(f"{kind} {detail} never called")

    def activities(self):
        cloud = self

        @activity.defn(name=names.UPDATE_STATUS)
        async def update_status(inp: UpdateStatusInput) -> None:
            cloud.statuses.append(inp.status)

        @activity.defn(name=names.GENERATE_CERTIFICATES)
        async def generate_certificates(inp: ClusterRef) -> str:
            return "ca-secret"

        @activity.defn(name=names.CREATE_AWS_ROLES)
        async def create_aws_roles(inp: ClusterRef) -> CreateStackOutput:
            cloud.calls.append(("roles", "kubestack-global"))
            return CreateStackOutput(stack_name="kubestack-global", stack_id="id")

        @activity.defn(name=names.WAIT_STACK)
        async def wait_stack(inp: WaitStackInput) -> StackOutputs:
            cloud.calls.append(("wait", inp.stack_name))
            outputs = {}
            if inp.stack_name == naming.network_stack(CLUSTER):
                outputs = {"VpcId": "vpc-1", "RouteTableId": "rtb-1"}
            return StackOutputs(stack_name=inp.stack_name, status="OK", outputs=outputs)

        @activity.defn(name=names.LIST_NODE_POOLS)
        async def list_node_pools(inp: ClusterRef) -> NodePoolList:
            return NodePoolList(pools=cloud.existing_pools)

        @activity.defn(name=names.SELECT_IMAGE)
        async def select_image(inp: SelectImageInput) -> str:
            return "ami-1"

        @activity.defn(name=names.SELECT_VOLUME_SIZE)
        async def select_volume_size(inp: SelectVolumeSizeInput) -> int:
            return inp.volume_size or 50

        @activity.defn(name=names.UPLOAD_SSH_KEY)
        async def upload_ssh_key(inp: ClusterRef) -> str:
            cloud.calls.append(("ssh-key", ""))
            return naming.ssh_key_name(CLUSTER)

        @activity.defn(name=names.CREATE_VPC)
        async def create_vpc(inp: CreateVpcInput) -> CreateStackOutput:
            cloud.calls.append(("vpc", inp.cidr))
            return CreateStackOutput(stack_name=naming.network_stack(CLUSTER), stack_id="id")

        @activity.defn(name=names.DEFAULT_SECURITY_GROUP)
        async def default_security_group(inp: VpcRef) -> str:
            return "sg-1"

        @activity.defn(name=names.CREATE_SUBNET)
        async def create_subnet(inp: CreateSubnetInput) -> Subnet:
            cloud.calls.append(("subnet", inp.availability_zone))
            return Subnet(subnet_id=f"subnet-{inp.availability_zone}", availability_zone=inp.availability_zone,
                          cidr=inp.cidr)

        @activity.defn(name=names.CREATE_EIP)
        async def create_eip(inp: ClusterRef) -> ElasticIPOutput:
            cloud.calls.append(("eip", ""))
            return ElasticIPOutput(allocation_id="eipalloc-1", public_ip="1.2.3.4")

        @activity.defn(name=names.CREATE_NLB)
        async def create_nlb(inp: CreateNlbInput) -> LoadBalancerOutput:
            cloud.calls.append(("nlb", ",".join(inp.subnet_ids)))
            return LoadBalancerOutput(
                stack_name=naming.nlb_stack(CLUSTER),
                dns_name="prod-nlb.elb.amazonaws.com",
                target_group_arn="arn:tg/1",
            )

        @activity.defn(name=names.SAVE_NETWORK)
        async def save_network(inp: SaveNetworkInput) -> None:
            cloud.calls.append(("save-network", inp.api_address))

        @activity.defn(name=names.POOL_CONTEXT)
        async def pool_context(inp: ClusterRef) -> PoolContext:
            return PoolContext(
                vpc_id="vpc-1", security_group_ids=["sg-1"], instance_profile="worker",
                api_address="1.2.3.4", zone_subnets={"us-east-1a": "subnet-us-east-1a"},
            )

        @activity.defn(name=names.CREATE_MASTER)
        async def create_master(inp: CreateMasterInput) -> CreateStackOutput:
            cloud.calls.append(("master", inp))
            return CreateStackOutput(stack_name=naming.master_stack(CLUSTER), stack_id="id")

        @activity.defn(name=names.FETCH_KUBECONFIG)
        async def fetch_kubeconfig(inp: ClusterRef) -> bool:
            cloud.calls.append(("kubeconfig", ""))
            return True

        @activity.defn(name=names.UNTAINT_MASTER)
        async def untaint_master(inp: ClusterRef) -> list:
            cloud.calls.append(("untaint", ""))
            return ["ip-10-0-0-1"]

        @activity.defn(name=names.CREATE_USER_ACCESS_KEY)
        async def create_user_access_key(inp: ClusterRef) -> str:
            return "key-secret"

        @activity.defn(name=names.CREATE_WORKER_POOL)
        async def create_worker_pool(inp: CreateWorkerPoolInput) -> CreateStackOutput:
            cloud.calls.append(("worker", inp.pool.name))
            return CreateStackOutput(stack_name=naming.nodepool_stack(CLUSTER, inp.pool.name), stack_id="id")

        @activity.defn(name=names.WAIT_ASG)
        async def wait_asg(inp: StackRef) -> bool:
            cloud.calls.append(("asg", inp.stack_name))
            for pool in cloud.failing_pools:
                if inp.stack_name == naming.nodepool_stack(CLUSTER, pool):
                    raise ApplicationError(f"spot request of {pool} failed: price-too-low",
                                           type="SPOT_REQUEST_FAILED", non_retryable=True)
            return True

        @activity.defn(name=names.SAVE_NODE_POOLS)
        async def save_node_pools(inp: SaveNodePoolsInput) -> None:
            cloud.saved_pools = list(inp.pools)

        @activity.defn(name=names.UPDATE_POOL)
        async def update_pool(inp: UpdatePoolInput) -> UpdatePoolOutput:
            cloud.calls.append(("update-pool", inp.pool.name))
            name = (naming.master_stack(CLUSTER) if inp.pool.is_master
                    else naming.nodepool_stack(CLUSTER, inp.pool.name))
            return UpdatePoolOutput(stack_name=name, changed=inp.pool.name in cloud.changed_pools)

        @activity.defn(name=names.DELETE_STACK)
        async def delete_stack(inp: StackRef) -> None:
            cloud.calls.append(("delete-stack", inp.stack_name))

        @activity.defn(name=names.VPC_CONFIG)
        async def vpc_config(inp: ClusterRef) -> VpcConfig:
            cloud.calls.append(("vpc-config", ""))
            return VpcConfig(vpc_id="vpc-1", security_group_ids=["sg-1"])

        @activity.defn(name=names.OWNED_LOAD_BALANCERS)
        async def owned_load_balancers(inp: VpcRef) -> LoadBalancerRefs:
            return LoadBalancerRefs(cluster_id=inp.cluster_id, refs=["elb:a1"])

        @activity.defn(name=names.WAIT_LOAD_BALANCERS)
        async def wait_load_balancers(inp: LoadBalancerRefs) -> None:
            cloud.calls.append(("wait-lbs", ",".join(inp.refs)))

        @activity.defn(name=names.LIST_STACKS)
        async def list_stacks(inp: ListStacksInput) -> StackNames:
            return StackNames(names=cloud.stacks_by_type.get(inp.stack_type, []))

        @activity.defn(name=names.RELEASE_EIP)
        async def release_eip(inp: ClusterRef) -> None:
            cloud.calls.append(("release-eip", ""))

        @activity.defn(name=names.DELETE_SSH_KEY)
        async def delete_ssh_key(inp: ClusterRef) -> None:
            cloud.calls.append(("delete-ssh-key", ""))

        @activity.defn(name=names.ORPHAN_NICS)
        async def orphan_nics(inp: OrphanNicsInput) -> NicList:
            return NicList(interface_ids=["eni-1", "eni-2"])

        @activity.defn(name=names.DELETE_NIC)
        async def delete_nic(inp: DeleteNicInput) -> None:
            cloud.calls.append(("delete-nic", inp.interface_id))

        @activity.defn(name=names.DELETE_ROLES_STACK)
        async def delete_roles_stack(inp: ClusterRef) -> CreateStackOutput:
            cloud.calls.append(("delete-roles", ""))
            return CreateStackOutput(stack_name="kubestack-global", stack_id="kubestack-global")

        @activity.defn(name=names.DELETE_LB_SERVICES)
        async def delete_lb_services(inp: ClusterRef) -> int:
            cloud.calls.append(("delete-lb-services", ""))
            if cloud.kube_unreachable:
                raise ApplicationError("cluster API unreachable", type="CLOUD_API_ERROR", non_retryable=True)
            return 0

        @activity.defn(name=names.DELETE_DNS_RECORDS)
        async def delete_dns_records(inp: ClusterRef) -> int:
            cloud.calls.append(("delete-dns", ""))
            return 0

        @activity.defn(name=names.DELETE_OIDC_CLIENT)
        async def delete_oidc_client(inp: ClusterRef) -> None:
            cloud.calls.append(("delete-oidc", ""))

        @activity.defn(name=names.DELETE_UNUSED_SECRETS)
        async def delete_unused_secrets(inp: ClusterRef) -> int:
            cloud.calls.append(("delete-secrets", ""))
            return 2

        @activity.defn(name=names.DELETE_USER_ACCESS_KEY)
        async def delete_user_access_key(inp: ClusterRef) -> None:
            cloud.calls.append(("delete-access-key", ""))

        return [v for v in locals().values() if callable(v) and hasattr(v, "__temporal_activity_definition")]


@pytest.fixture
async def env():
    try:
        env = await WorkflowEnvironment.start_time_skipping()
    except Exception as exc:
        pytest.skip(f"temporal test server unavailable: {exc}")
    yield env
    await env.shutdown()


@pytest.fixture
def cloud():
    return Cloud()


def _worker(env, cloud, *, sandboxed=False):
    # the sandboxed runner is what temporal/worker.py uses
    runner = {} if sandboxed else {"workflow_runner": UnsandboxedWorkflowRunner()}
    return Worker(
        env.client,
        task_queue=f"tq-{uuid.uuid4()}",
        workflows=[
            CreateClusterWorkflow,
            UpdateClusterWorkflow,
            DeleteClusterWorkflow,
            DeleteInfrastructureWorkflow,
            DeleteK8sResourcesWorkflow,
        ],
        activities=cloud.activities(),
        **runner,
    )


def _request(pools, **kw):
    return ProvisioningRequest(
        org_id="7", cluster_id="42", cluster_uid="u-42", cluster_name=CLUSTER,
        region="us-east-1", secret_id="sec", node_pools=pools,
        pipeline_url="https://pipeline.example.com", master_ready_timeout_s=600, **kw,
    )


def _master(max_count=1):
    return NodePoolSpec(name="master", role="master", min_count=1, max_count=max_count, count=max_count)


async def _start_create(env, worker, req):
    return await env.client.start_workflow(
        CreateClusterWorkflow.run, req, id=names.create_workflow_id(CLUSTER), task_queue=worker.task_queue,
    )


async def test_create_with_elastic_ip_and_workers(env, cloud):
    pools = [_master(), NodePoolSpec(name="pool1", count=2, max_count=2),
             NodePoolSpec(name="pool2", availability_zones=["us-east-1b"])]
    async with _worker(env, cloud) as worker:
        handle = await _start_create(env, worker, _request(pools))
        await handle.signal(names.NODE_READY_SIGNAL)
        out = await handle.result()

    assert out.vpc_id == "vpc-1"
    assert out.api_address == "1.2.3.4"
    assert sorted(out.subnet_ids) == ["subnet-us-east-1a", "subnet-us-east-1b"]
    assert sorted(cloud.names("subnet")) == ["us-east-1a", "us-east-1b"]
    assert cloud.names("eip") == [""]
    assert cloud.names("nlb") == []
    assert sorted(cloud.names("worker")) == ["pool1", "pool2"]
    assert cloud.index("master") < cloud.index("kubeconfig") < cloud.index("worker")
    assert cloud.names("untaint") == []
    master_in = cloud.names("master")[0]
    assert master_in.eip_allocation_id == "eipalloc-1"
    assert master_in.target_group_arn == ""
    assert master_in.pool.image_id == "ami-1"
    assert cloud.index("master") < cloud.index("worker")
    assert [p.name for p in cloud.saved_pools] == ["master", "pool1", "pool2"]
    assert cloud.statuses[0] == "CREATING"
    assert cloud.statuses[-1] == "RUNNING"


async def test_create_with_several_masters_uses_load_balancer(env, cloud):
    async with _worker(env, cloud) as worker:
        handle = await _start_create(env, worker, _request([_master(max_count=3)]))
        await handle.signal(names.NODE_READY_SIGNAL)
        out = await handle.result()

    assert out.api_address == "prod-nlb.elb.amazonaws.com"
    assert cloud.names("eip") == []
    assert cloud.names("nlb") == ["subnet-us-east-1a"]
    master_in = cloud.names("master")[0]
    assert master_in.target_group_arn == "arn:tg/1"
    assert master_in.eip_allocation_id == ""
    # a lone master pool also schedules workloads
    assert cloud.names("untaint") == [""]
    assert cloud.index("kubeconfig") < cloud.index("untaint")


async def test_create_under_the_workflow_sandbox(env, cloud):
    pools = [_master(), NodePoolSpec(name="pool1")]
    async with _worker(env, cloud, sandboxed=True) as worker:
        handle = await _start_create(env, worker, _request(pools))
        await handle.signal(names.NODE_READY_SIGNAL)
        out = await handle.result()

    assert out.api_address == "1.2.3.4"
    assert cloud.names("worker") == ["pool1"]
    assert cloud.statuses[-1] == "RUNNING"


async def test_create_fails_when_master_bootstrap_fails(env, cloud):
    pools = [_master(), NodePoolSpec(name="pool1")]
    async with _worker(env, cloud) as worker:
        handle = await _start_create(env, worker, _request(pools))
        await handle.signal(names.NODE_BOOTSTRAP_FAILED_SIGNAL, "kubeadm init failed")
        await handle.signal(names.NODE_READY_SIGNAL)
        with pytest.raises(WorkflowFailureError) as err:
            await handle.result()

    assert err.value.cause.type == MASTER_BOOTSTRAP_FAILED
    assert "kubeadm init failed" in err.value.cause.message
    assert cloud.names("worker") == []
    assert cloud.statuses[-1] == "ERROR"


async def test_create_times_out_waiting_for_master(env, cloud):
    async with _worker(env, cloud) as worker:
        handle = await _start_create(env, worker, _request([_master()]))
        with pytest.raises(WorkflowFailureError) as err:
            await handle.result()

    assert err.value.cause.type == MASTER_READY_TIMEOUT
    assert cloud.statuses[-1] == "ERROR"


async def test_create_reports_failed_pool_but_keeps_the_others(env, cloud):
    cloud.failing_pools = {"pool2"}
    pools = [_master(), NodePoolSpec(name="pool1"), NodePoolSpec(name="pool2")]
    async with _worker(env, cloud) as worker:
        handle = await _start_create(env, worker, _request(pools))
        await handle.signal(names.NODE_READY_SIGNAL)
        with pytest.raises(WorkflowFailureError) as err:
            await handle.result()

    assert err.value.cause.type == "SPOT_REQUEST_FAILED"
    assert sorted(cloud.names("worker")) == ["pool1", "pool2"]
    assert [p.name for p in cloud.saved_pools] == ["master", "pool1", "pool2"]


async def test_update_diffs_node_pools(env, cloud):
    cloud.existing_pools = [
        NodePoolSpec(name="master", role="master", image_id="ami-old", volume_size=50),
        NodePoolSpec(name="pool1", image_id="ami-old", volume_size=50),
        NodePoolSpec(name="pool2", image_id="ami-old", volume_size=50),
    ]
    cloud.changed_pools = {"pool2"}
    desired = [
        NodePoolSpec(name="master", role="master"),
        NodePoolSpec(name="pool2", min_count=1, max_count=5, count=2, autoscaling=True),
        NodePoolSpec(name="pool3"),
    ]
    async with _worker(env, cloud) as worker:
        out = await env.client.execute_workflow(
            UpdateClusterWorkflow.run, _request(desired),
            id=names.update_workflow_id(CLUSTER), task_queue=worker.task_queue,
        )

    assert (out.created, out.updated, out.deleted) == (["pool3"], ["master", "pool2"], ["pool1"])
    assert cloud.names("delete-stack") == [naming.nodepool_stack(CLUSTER, "pool1")]
    assert cloud.names("worker") == ["pool3"]
    assert sorted(cloud.names("update-pool")) == ["master", "pool2"]
    # only the changed pool waits for its stack and scaling group
    assert naming.nodepool_stack(CLUSTER, "pool2") in cloud.names("asg")
    assert naming.master_stack(CLUSTER) not in cloud.names("wait")
    saved = {p.name: p for p in cloud.saved_pools}
    assert sorted(saved) == ["master", "pool2", "pool3"]
    assert saved["pool2"].image_id == "ami-old"
    assert saved["pool3"].image_id == "ami-1"
    assert cloud.statuses[-1] == "RUNNING"


async def test_update_rejects_master_replacement(env, cloud):
    cloud.existing_pools = [NodePoolSpec(name="master", role="master")]
    async with _worker(env, cloud) as worker:
        with pytest.raises(WorkflowFailureError) as err:
            await env.client.execute_workflow(
                UpdateClusterWorkflow.run, _request([NodePoolSpec(name="cp", role="master")]),
                id=names.update_workflow_id(CLUSTER), task_queue=worker.task_queue,
            )
    assert err.value.cause.type == "INVALID_REQUEST"


async def test_delete_infrastructure_order(env, cloud):
    cloud.stacks_by_type = {
        naming.STACK_NODEPOOL: [naming.nodepool_stack(CLUSTER, "pool1"), naming.nodepool_stack(CLUSTER, "pool2")],
        naming.STACK_MASTER: [naming.master_stack(CLUSTER)],
        naming.STACK_SUBNET: [naming.subnet_stack(CLUSTER, "10.0.0.0/20")],
    }
    async with _worker(env, cloud) as worker:
        steps = await env.client.execute_workflow(
            DeleteInfrastructureWorkflow.run, ClusterRef(cluster_id="42", cluster_name=CLUSTER),
            id=f"kubestack-delete:{CLUSTER}:infrastructure", task_queue=worker.task_queue,
        )

    assert steps == [
        "vpc-config", "load-balancers", "node-pools", "control-plane", "ssh-key",
        "network-interfaces", "subnets", "network", "roles", "access-key",
    ]
    pools_done = max(cloud.index("wait", s) for s in cloud.stacks_by_type[naming.STACK_NODEPOOL])
    assert cloud.index("wait-lbs") < cloud.index("delete-stack")
    assert pools_done < cloud.index("delete-stack", naming.master_stack(CLUSTER))
    assert cloud.index("wait", naming.master_stack(CLUSTER)) < cloud.index("release-eip")
    assert cloud.index("release-eip") < cloud.index("delete-ssh-key") < cloud.index("delete-nic")
    assert max(cloud.index("delete-nic", n) for n in ("eni-1", "eni-2")) < cloud.index(
        "delete-stack", naming.subnet_stack(CLUSTER, "10.0.0.0/20"))
    assert cloud.index("wait", naming.subnet_stack(CLUSTER, "10.0.0.0/20")) < cloud.index(
        "delete-stack", naming.network_stack(CLUSTER))
    assert cloud.index("wait", naming.network_stack(CLUSTER)) < cloud.index("delete-roles")
    assert cloud.index("wait", "kubestack-global") < cloud.index("delete-access-key")


def _delete_input(forced):
    return DeleteClusterInput(org_id="7", cluster_id="42", cluster_uid="u-42", cluster_name=CLUSTER, forced=forced)


async def test_delete_cluster_stops_at_first_failure(env, cloud):
    cloud.kube_unreachable = True
    async with _worker(env, cloud) as worker:
        with pytest.raises(WorkflowFailureError):
            await env.client.execute_workflow(
                DeleteClusterWorkflow.run, _delete_input(False),
                id=names.delete_workflow_id(CLUSTER), task_queue=worker.task_queue,
            )
    assert cloud.names("delete-dns") == []
    assert cloud.statuses == ["DELETING", "ERROR"]


async def test_forced_delete_skips_failed_steps(env, cloud):
    cloud.kube_unreachable = True
    async with _worker(env, cloud) as worker:
        status = await env.client.execute_workflow(
            DeleteClusterWorkflow.run, _delete_input(True),
            id=names.delete_workflow_id(CLUSTER), task_queue=worker.task_queue,
        )
    assert status.skipped_stages == ["k8s-resources"]
    assert status.completed_stages == ["dns", "oidc", "infrastructure", "secrets"]
    assert cloud.index("delete-dns") < cloud.index("vpc-config") < cloud.index("delete-secrets")
    assert cloud.statuses == ["DELETING", "DELETED"]
