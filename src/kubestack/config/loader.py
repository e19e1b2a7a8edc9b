# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/config/loader.py

import logging
import os
from pathlib import Path

import yaml

from .models import ProvisionerConfig

log = logging.getLogger("kubestack")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        elif value not in (None, ""):
            base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    1. KUBESTACK_SECRETS_FILE environment variable
    2. secrets.yaml next to the config file
    """
    env = os.environ.get("KUBESTACK_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("KUBESTACK_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file():
        return p
    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: str | Path | None = None) -> ProvisionerConfig:
    """
    Load and validate the provisioner config.

    ``path`` defaults to ``$KUBESTACK_CONFIG``; with neither set the built-in
    defaults are returned. Credentials (OIDC admin password and the like) can
    live in a sibling ``secrets.yaml`` that mirrors the config layout and is
    deep-merged before validation.
    """
    if path is None:
        path = os.environ.get("KUBESTACK_CONFIG")
    if not path:
        log.debug("No config file given, using defaults")
        return ProvisionerConfig()

    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))

    return ProvisionerConfig.model_validate(data)
