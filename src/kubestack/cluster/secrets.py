# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/cluster/secrets.py

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol

import yaml

from kubestack.errors import NotFoundError

log = logging.getLogger("kubestack")

AMAZON = "amazon"
SSH = "ssh"
PKE = "pke"
ACCESS_KEY = "amazon-access-key"
KUBECONFIG = "kubeconfig"

# value key of a KUBECONFIG secret
KUBECONFIG_KEY = "kubeconfig"

TAG_READONLY = "kubestack:readonly"
TAG_HIDDEN = "kubestack:hidden"


def cluster_uid_tag(uid: str) -> str:
    return f"clusterUID:{uid}"


@dataclass
class CreateSecretRequest:
    name: str
    type: str
    values: Dict[str, str] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)


@dataclass
class SecretRecord:
    id: str
    name: str
    type: str
    values: Dict[str, str] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    version: int = 1


def secret_id(name: str) -> str:
    """IDs derive from the name so re-storing a secret never forks it."""
    return hashlib.sha256(name.encode()).hexdigest()[:16]


class SecretStore(Protocol):
    def get(self, org_id: str, secret_id: str) -> SecretRecord: ...
    def get_by_name(self, org_id: str, name: str) -> SecretRecord: ...
    def store(self, org_id: str, request: CreateSecretRequest) -> str: ...
    def update(self, org_id: str, secret_id: str, request: CreateSecretRequest) -> None: ...
    def delete(self, org_id: str, secret_id: str) -> None: ...
    def get_or_create(self, org_id: str, request: CreateSecretRequest) -> SecretRecord: ...
    def list(self, org_id: str, tags: Optional[List[str]] = None) -> List[SecretRecord]: ...


class InMemorySecretStore:
    def __init__(self) -> None:
        self._orgs: Dict[str, Dict[str, SecretRecord]] = {}
        self._lock = threading.RLock()

    def _org(self, org_id: str) -> Dict[str, SecretRecord]:
        return self._orgs.setdefault(str(org_id), {})

    def _changed(self, org_id: str) -> None:
        """Hook for persistent subclasses."""

    def _refresh(self, org_id: str) -> None:
        """Hook for persistent subclasses."""

    def get(self, org_id: str, secret_id: str) -> SecretRecord:
        with self._lock:
            self._refresh(org_id)
            try:
                return self._org(org_id)[secret_id]
            except KeyError:
                raise NotFoundError(f"secret {secret_id} not found in organization {org_id}") from None

    def get_by_name(self, org_id: str, name: str) -> SecretRecord:
        return self.get(org_id, secret_id(name))

    def store(self, org_id: str, request: CreateSecretRequest) -> str:
        sid = secret_id(request.name)
        with self._lock:
            self._refresh(org_id)
            self._org(org_id)[sid] = SecretRecord(
                id=sid,
                name=request.name,
                type=request.type,
                values=dict(request.values),
                tags=list(request.tags),
            )
            self._changed(org_id)
        return sid

    def update(self, org_id: str, secret_id: str, request: CreateSecretRequest) -> None:
        with self._lock:
            current = self.get(org_id, secret_id)
            current.values = dict(request.values)
            current.tags = list(request.tags)
            current.version += 1
            self._changed(org_id)

    def delete(self, org_id: str, secret_id: str) -> None:
        with self._lock:
            self._refresh(org_id)
            if self._org(org_id).pop(secret_id, None) is not None:
                self._changed(org_id)

    def get_or_create(self, org_id: str, request: CreateSecretRequest) -> SecretRecord:
        with self._lock:
            try:
                return self.get_by_name(org_id, request.name)
            except NotFoundError:
                return self.get(org_id, self.store(org_id, request))

    def list(self, org_id: str, tags: Optional[List[str]] = None) -> List[SecretRecord]:
        with self._lock:
            self._refresh(org_id)
            records = list(self._org(org_id).values())
        if tags:
            records = [r for r in records if all(t in r.tags for t in tags)]
        return sorted(records, key=lambda r: r.name)


class YamlSecretStore(InMemorySecretStore):
    """
    One YAML file per organization under ``base_dir``, re-read before every
    access so secrets uploaded by other processes (the node agent's
    kubeconfig, for one) are visible and never overwritten.
    """

    def __init__(self, base_dir: str | Path):
        super().__init__()
        self.base_dir = Path(base_dir).expanduser()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        log.debug("secret store files under %s", self.base_dir)

    def _path(self, org_id: str) -> Path:
        return self.base_dir / f"{org_id}.yaml"

    def _refresh(self, org_id: str) -> None:
        path = self._path(org_id)
        if not path.exists():
            self._orgs.pop(str(org_id), None)
            return
        data = yaml.safe_load(path.read_text()) or {}
        self._orgs[str(org_id)] = {sid: SecretRecord(**rec) for sid, rec in data.items()}

    def _changed(self, org_id: str) -> None:
        path = self._path(org_id)
        data = {sid: asdict(rec) for sid, rec in self._org(org_id).items()}
        path.write_text(yaml.safe_dump(data, sort_keys=True))
        path.chmod(0o600)
