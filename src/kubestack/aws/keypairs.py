# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/keypairs.py

from __future__ import annotations

import logging

from botocore.exceptions import ClientError

from kubestack.errors import error_code

log = logging.getLogger("kubestack")


def key_exists(ec2, name: str) -> bool:
    try:
        ec2.describe_key_pairs(KeyNames=[name])
    except ClientError as exc:
        if error_code(exc) == "InvalidKeyPair.NotFound":
            return False
        raise
    return True


def import_key(ec2, name: str, public_key: str) -> bool:
    """Import ``public_key`` unless a key of that name exists. Returns True on import."""
    if key_exists(ec2, name):
        log.info("key pair %s already present", name)
        return False
    try:
        ec2.import_key_pair(KeyName=name, PublicKeyMaterial=public_key.encode())
    except ClientError as exc:
        # a concurrent attempt got there first
        if error_code(exc) == "InvalidKeyPair.Duplicate":
            return False
        raise
    return True


def delete_key(ec2, name: str) -> None:
    try:
        ec2.delete_key_pair(KeyName=name)
    except ClientError as exc:
        if error_code(exc) == "InvalidKeyPair.NotFound":
            return
        raise
