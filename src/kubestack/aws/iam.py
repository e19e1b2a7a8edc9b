# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/iam.py

from __future__ import annotations

import logging
from typing import List, Tuple

from botocore.exceptions import ClientError

from kubestack.errors import error_code

from . import tags as stack_tags

log = logging.getLogger("kubestack")


def ensure_user(iam, name: str, cluster: str) -> None:
    try:
        iam.get_user(UserName=name)
        return
    except ClientError as exc:
        if error_code(exc) != "NoSuchEntity":
            raise
    try:
        iam.create_user(UserName=name, Tags=stack_tags.to_aws({stack_tags.CLUSTER_NAME_TAG: cluster}))
    except ClientError as exc:
        if error_code(exc) != "EntityAlreadyExists":
            raise


def create_access_key(iam, name: str) -> Tuple[str, str]:
    key = iam.create_access_key(UserName=name)["AccessKey"]
    return key["AccessKeyId"], key["SecretAccessKey"]


def access_key_ids(iam, name: str) -> List[str]:
    """IDs of the user's access keys; empty when the user does not exist."""
    try:
        keys = iam.list_access_keys(UserName=name).get("AccessKeyMetadata", [])
    except ClientError as exc:
        if error_code(exc) == "NoSuchEntity":
            return []
        raise
    return [k["AccessKeyId"] for k in keys]


def delete_access_key(iam, name: str, key_id: str) -> None:
    try:
        iam.delete_access_key(UserName=name, AccessKeyId=key_id)
    except ClientError as exc:
        if error_code(exc) != "NoSuchEntity":
            raise


def delete_user(iam, name: str) -> None:
    """Delete the user's access keys, then the user. A missing user is fine."""
    keys = access_key_ids(iam, name)
    for key_id in keys:
        delete_access_key(iam, name, key_id)
    try:
        iam.delete_user(UserName=name)
    except ClientError as exc:
        if error_code(exc) != "NoSuchEntity":
            raise
    log.info("deleted IAM user %s and %d access keys", name, len(keys))
