# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/session.py

from __future__ import annotations

import boto3

from kubestack.cluster.secrets import AMAZON, SecretStore
from kubestack.errors import InvalidRequestError

ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"


class SessionFactory:
    """Turns (organization, secret, region) into an authenticated boto3 session."""

    def __init__(self, secrets: SecretStore):
        self.secrets = secrets

    def session(self, org_id: str, secret_id: str, region: str) -> boto3.Session:
        secret = self.secrets.get(org_id, secret_id)
        if secret.type != AMAZON:
            raise InvalidRequestError(f"secret {secret.name} is of type {secret.type}, expected {AMAZON}")
        missing = [k for k in (ACCESS_KEY_ID, SECRET_ACCESS_KEY) if not secret.values.get(k)]
        if missing:
            raise InvalidRequestError(f"secret {secret.name} lacks {', '.join(missing)}")
        return boto3.Session(
            aws_access_key_id=secret.values[ACCESS_KEY_ID],
            aws_secret_access_key=secret.values[SECRET_ACCESS_KEY],
            region_name=region,
        )
