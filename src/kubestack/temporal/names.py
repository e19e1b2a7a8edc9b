# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/temporal/names.py

"""Registered activity, workflow and signal names. Workflows dispatch by these strings."""

# workflows
CREATE_CLUSTER_WORKFLOW = "kubestack-create-cluster"
UPDATE_CLUSTER_WORKFLOW = "kubestack-update-cluster"
DELETE_CLUSTER_WORKFLOW = "kubestack-delete-cluster"
DELETE_INFRA_WORKFLOW = "kubestack-delete-infrastructure"
DELETE_K8S_RESOURCES_WORKFLOW = "kubestack-delete-k8s-resources"

# signals sent by the node bootstrap agent
NODE_READY_SIGNAL = "node-ready"
NODE_BOOTSTRAP_FAILED_SIGNAL = "node-bootstrap-failed"

# cluster record
UPDATE_STATUS = "update-cluster-status"
LIST_NODE_POOLS = "list-node-pools"
SAVE_NODE_POOLS = "save-node-pools"
SAVE_NETWORK = "save-cluster-network"
GENERATE_CERTIFICATES = "generate-certificates"
CREATE_USER_ACCESS_KEY = "create-cluster-user-access-key"
DELETE_USER_ACCESS_KEY = "delete-cluster-user-access-key"
DELETE_UNUSED_SECRETS = "delete-unused-cluster-secrets"
CREATE_OIDC_CLIENT = "create-oidc-client"
DELETE_OIDC_CLIENT = "delete-oidc-client"
DELETE_DNS_RECORDS = "delete-cluster-dns-records"

# stacks
CREATE_AWS_ROLES = "create-aws-roles"
DELETE_ROLES_STACK = "delete-roles-stack"
WAIT_STACK = "wait-stack"
DELETE_STACK = "delete-stack"
LIST_STACKS = "list-cluster-stacks"

# network
CREATE_VPC = "create-vpc"
DEFAULT_SECURITY_GROUP = "get-vpc-default-security-group"
CREATE_SUBNET = "create-subnet"
DESCRIBE_SUBNETS = "describe-subnets"
UPLOAD_SSH_KEY = "upload-ssh-key-pair"
DELETE_SSH_KEY = "delete-ssh-key-pair"
CREATE_EIP = "create-elastic-ip"
RELEASE_EIP = "release-elastic-ip"
CREATE_NLB = "create-nlb"
VPC_CONFIG = "get-vpc-config"
OWNED_LOAD_BALANCERS = "get-owned-load-balancers"
WAIT_LOAD_BALANCERS = "wait-load-balancers-deleted"
ORPHAN_NICS = "get-orphan-network-interfaces"
DELETE_NIC = "delete-network-interface"

# node pools
SELECT_IMAGE = "select-image"
SELECT_VOLUME_SIZE = "select-volume-size"
POOL_CONTEXT = "get-node-pool-context"
CREATE_MASTER = "create-master"
CREATE_WORKER_POOL = "create-worker-pool"
WAIT_ASG = "wait-asg-fulfilled"
UPDATE_POOL = "update-node-pool"

# kubernetes
FETCH_KUBECONFIG = "fetch-kubeconfig"
UNTAINT_MASTER = "untaint-master"
DELETE_LB_SERVICES = "delete-load-balancer-services"
WAIT_LB_SERVICES = "wait-load-balancer-services-deleted"


def create_workflow_id(cluster: str) -> str:
    return f"kubestack-create:{cluster}"


def update_workflow_id(cluster: str) -> str:
    return f"kubestack-update:{cluster}"


def delete_workflow_id(cluster: str) -> str:
    return f"kubestack-delete:{cluster}"
