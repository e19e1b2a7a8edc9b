# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/aws/dns.py

from __future__ import annotations

import logging
from typing import Any, Dict, List

log = logging.getLogger("kubestack")

_KEEP_TYPES = {"SOA", "NS"}
_BATCH = 100


def cluster_records(route53, zone_id: str, suffix: str) -> List[dict]:
    """Record sets at or below ``suffix`` (apex SOA/NS excluded)."""
    suffix = suffix.rstrip(".") + "."
    found: List[dict] = []
    kwargs: Dict[str, Any] = {"HostedZoneId": zone_id}
    while True:
        resp = route53.list_resource_record_sets(**kwargs)
        for rs in resp.get("ResourceRecordSets", []):
            name = rs["Name"]
            if rs["Type"] in _KEEP_TYPES:
                continue
            if name == suffix or name.endswith("." + suffix):
                found.append(rs)
        if not resp.get("IsTruncated"):
            return found
        kwargs = {
            "HostedZoneId": zone_id,
            "StartRecordName": resp["NextRecordName"],
            "StartRecordType": resp["NextRecordType"],
        }


def delete_cluster_records(route53, zone_id: str, suffix: str) -> int:
    records = cluster_records(route53, zone_id, suffix)
    for i in range(0, len(records), _BATCH):
        batch = records[i:i + _BATCH]
        route53.change_resource_record_sets(
            HostedZoneId=zone_id,
            ChangeBatch={
                "Comment": f"cleanup of {suffix}",
                "Changes": [{"Action": "DELETE", "ResourceRecordSet": rs} for rs in batch],
            },
        )
    log.info("deleted %d DNS records under %s", len(records), suffix)
    return len(records)
