# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/images.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from botocore.exceptions import ClientError

from kubestack.config.models import ImageCatalog, ImageEntry
from kubestack.errors import ImageNotFoundError, VolumeSizeError, error_code

log = logging.getLogger("kubestack")


@dataclass(frozen=True)
class ImageQuery:
    region: str
    instance_type: str
    kubernetes_version: str
    os: str = "amazon-linux-2"
    container_runtime: str = "containerd"

    def describe(self) -> str:
        return (
            f"region={self.region} instance_type={self.instance_type} "
            f"kubernetes_version={self.kubernetes_version} os={self.os} "
            f"container_runtime={self.container_runtime}"
        )


class ImageSelector(Protocol):
    def select(self, query: ImageQuery) -> str: ...


def _version_matches(constraint: str | None, version: str) -> bool:
    if not constraint:
        return True
    want = constraint.lstrip("v").split(".")
    have = version.lstrip("v").split(".")
    return have[: len(want)] == want


class CatalogImageSelector:
    """Region map; version-pinned entries win over unpinned ones."""

    def __init__(self, entries: Sequence[ImageEntry]):
        self.entries = list(entries)

    def select(self, query: ImageQuery) -> str:
        candidates = [
            e for e in self.entries
            if e.region == query.region
            and e.os == query.os
            and e.container_runtime == query.container_runtime
            and _version_matches(e.kubernetes_version, query.kubernetes_version)
        ]
        if not candidates:
            raise ImageNotFoundError(f"no image found for {query.describe()}")
        candidates.sort(key=lambda e: len(e.kubernetes_version or ""), reverse=True)
        return candidates[0].image_id


class InstanceFamilyImageSelector:
    """Only answers for instance types with one of ``prefixes`` (GPU, ARM, ...)."""

    def __init__(self, inner: ImageSelector, prefixes: Sequence[str], family: str):
        self.inner = inner
        self.prefixes = tuple(prefixes)
        self.family = family

    def matches(self, instance_type: str) -> bool:
        return instance_type.startswith(self.prefixes)

    def select(self, query: ImageQuery) -> str:
        if not self.matches(query.instance_type):
            raise ImageNotFoundError(f"{query.instance_type} is not a {self.family} instance type")
        return self.inner.select(query)


class ExcludingImageSelector:
    """Refuses instance types with one of ``prefixes``; their images live in another table."""

    def __init__(self, inner: ImageSelector, prefixes: Sequence[str]):
        self.inner = inner
        self.prefixes = tuple(prefixes)

    def select(self, query: ImageQuery) -> str:
        if query.instance_type.startswith(self.prefixes):
            raise ImageNotFoundError(f"no image for architecture of {query.instance_type}")
        return self.inner.select(query)


class ImageSelectors:
    """First selector with an answer wins."""

    def __init__(self, selectors: Sequence[ImageSelector]):
        self.selectors = list(selectors)

    def select(self, query: ImageQuery) -> str:
        for selector in self.selectors:
            try:
                return selector.select(query)
            except ImageNotFoundError as exc:
                log.debug("%s: %s", type(selector).__name__, exc)
        raise ImageNotFoundError(f"no image found for {query.describe()}")


def default_selector(catalog: ImageCatalog) -> ImageSelectors:
    """ARM instances only ever get ARM images; GPU instances fall back to the default list."""
    return ImageSelectors([
        InstanceFamilyImageSelector(CatalogImageSelector(catalog.arm), catalog.arm_instance_prefixes, "ARM"),
        InstanceFamilyImageSelector(CatalogImageSelector(catalog.gpu), catalog.gpu_instance_prefixes, "GPU"),
        ExcludingImageSelector(CatalogImageSelector(catalog.default), catalog.arm_instance_prefixes),
    ])


def image_volume_size(ec2, image_id: str) -> int:
    """Size in GB of the image's root block device."""
    try:
        images = ec2.describe_images(ImageIds=[image_id]).get("Images", [])
    except ClientError as exc:
        if error_code(exc) in ("InvalidAMIID.NotFound", "InvalidAMIID.Malformed"):
            raise ImageNotFoundError(f"image {image_id} not found") from exc
        raise
    if not images:
        raise ImageNotFoundError(f"image {image_id} not found")

    image = images[0]
    root = image.get("RootDeviceName")
    mappings: List[dict] = image.get("BlockDeviceMappings", [])
    for m in mappings:
        if m.get("DeviceName") == root and "Ebs" in m:
            return int(m["Ebs"]["VolumeSize"])
    for m in mappings:
        if "Ebs" in m:
            return int(m["Ebs"]["VolumeSize"])
    raise ImageNotFoundError(f"image {image_id} has no EBS block device")


def select_volume_size(*, explicit: int, default: int, fallback: int, image_size: int) -> int:
    """
    Explicit size first, then the configured default, else the larger of the
    fallback and the image size. A chosen size below the image size fails.
    """
    if explicit > 0:
        size, source = explicit, "explicitly set"
    elif default > 0:
        size, source = default, "default configured"
    else:
        return max(fallback, image_size)

    if size < image_size:
        raise VolumeSizeError(
            f"selected volume size of {size} GB (source: {source}) "
            f"is less than the AMI size of {image_size} GB"
        )
    return size
