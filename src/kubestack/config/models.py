# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/config/models.py

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from . import default_images


class ImageEntry(BaseModel):
    """One machine image, optionally constrained to a Kubernetes version prefix."""

    region: str
    image_id: str
    kubernetes_version: Optional[str] = None  # e.g. "1.29" matches 1.29.x
    os: str = default_images.OS
    container_runtime: str = "containerd"


def _entries(table: Dict[str, Dict[str, str]]) -> List[ImageEntry]:
    return [
        ImageEntry(region=region, image_id=image_id, kubernetes_version=version)
        for version, regions in table.items()
        for region, image_id in regions.items()
    ]


class ImageCatalog(BaseModel):
    default: List[ImageEntry] = Field(default_factory=lambda: _entries(default_images.STANDARD))
    gpu: List[ImageEntry] = Field(default_factory=lambda: _entries(default_images.GPU))
    arm: List[ImageEntry] = Field(default_factory=lambda: _entries(default_images.ARM))
    # instance type prefixes served from the gpu list
    gpu_instance_prefixes: List[str] = Field(
        default_factory=lambda: ["p2.", "p3.", "p3dn.", "p4d.", "p5.", "g3.", "g3s.", "g4dn.", "g5.", "g6."]
    )
    # Graviton families; these never get an image from the default list
    arm_instance_prefixes: List[str] = Field(
        default_factory=lambda: [
            "a1.", "t4g.", "m6g.", "m6gd.", "m7g.", "c6g.", "c6gd.", "c6gn.", "c7g.",
            "r6g.", "r6gd.", "r7g.", "x2gd.", "g5g.", "im4gn.", "is4gen.",
        ]
    )


class PollingSettings(BaseModel):
    stack_interval_s: float = 30
    stack_attempts: int = 120
    asg_interval_s: float = 5
    asg_attempts: int = 24
    elb_interval_s: float = 10
    elb_attempts: int = 60
    k8s_interval_s: float = 10
    k8s_attempts: int = 60


class OIDCSettings(BaseModel):
    enabled: bool = False
    issuer_url: Optional[str] = None
    admin_realm: str = "master"
    realm: str = "kubestack"
    admin_client_id: str = "admin-cli"
    username: Optional[str] = None
    password: Optional[str] = None


class DNSSettings(BaseModel):
    hosted_zone_id: Optional[str] = None
    domain: Optional[str] = None


class StoreSettings(BaseModel):
    """Where the YAML-backed cluster and secret stores keep their files."""

    clusters_dir: str = "~/.kubestack/clusters"
    secrets_dir: str = "~/.kubestack/secrets"


class ProvisionerConfig(BaseModel):
    environment: str = "dev"
    templates_dir: str = "templates"
    pipeline_url: str = "http://localhost:9090"
    vpc_cidr: str = "10.0.0.0/16"
    default_volume_size: int = 0
    fallback_volume_size: int = 50
    master_ready_timeout_s: int = 3600
    global_stack_name: str = "kubestack-global"
    images: ImageCatalog = Field(default_factory=ImageCatalog)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    oidc: OIDCSettings = Field(default_factory=OIDCSettings)
    dns: DNSSettings = Field(default_factory=DNSSettings)
    stores: StoreSettings = Field(default_factory=StoreSettings)
    extra_tags: Dict[str, str] = Field(default_factory=dict)
