# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kubestack/oidc/keycloak.py

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from kubestack.config.models import OIDCSettings
from kubestack.errors import InvalidRequestError, KubestackError

log = logging.getLogger("kubestack")


class KeycloakError(KubestackError):
    pass


@dataclass
class _HttpResponse:
    status: int
    body: str


def _http_request(
    method: str,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    data: Optional[bytes] = None,
) -> _HttpResponse:
    req = urllib.request.Request(url, method=method, headers=headers or {}, data=data)
    try:
        with urllib.request.urlopen(req, timeout=30) as resp:
            return _HttpResponse(status=resp.status, body=resp.read().decode("utf-8", errors="replace"))
    except urllib.error.HTTPError as e:
        return _HttpResponse(status=e.code, body=e.read().decode("utf-8", errors="replace"))


class KeycloakAdmin:
    """
    Registers one confidential OIDC client per cluster in the provisioner's realm.

    Endpoints used:
    - token: /realms/<admin_realm>/protocol/openid-connect/token
    - admin: /admin/realms/<realm>/clients
    """

    def __init__(self, settings: OIDCSettings):
        if not settings.issuer_url:
            raise InvalidRequestError("oidc.issuer_url is not configured")
        self.settings = settings
        self.base = settings.issuer_url.rstrip("/")
        self._token: Optional[str] = None

    def login(self) -> None:
        payload = {
            "grant_type": "password",
            "client_id": self.settings.admin_client_id,
            "username": self.settings.username or "",
            "password": self.settings.password or "",
        }
        r = _http_request(
            "POST",
            f"{self.base}/realms/{self.settings.admin_realm}/protocol/openid-connect/token",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data=urllib.parse.urlencode(payload).encode("utf-8"),
        )
        if r.status < 200 or r.status >= 300:
            raise KeycloakError(f"Keycloak login failed ({r.status}): {r.body}")
        token = json.loads(r.body).get("access_token")
        if not token:
            raise KeycloakError(f"Keycloak login missing access_token: {r.body}")
        self._token = token

    def _headers(self) -> Dict[str, str]:
        if not self._token:
            self.login()
        return {"Authorization": f"Bearer {self._token}", "Content-Type": "application/json"}

    def _clients_url(self) -> str:
        return f"{self.base}/admin/realms/{self.settings.realm}/clients"

    def issuer(self) -> str:
        return f"{self.base}/realms/{self.settings.realm}"

    def client_uuid(self, client_id: str) -> Optional[str]:
        r = _http_request(
            "GET",
            f"{self._clients_url()}?clientId={urllib.parse.quote(client_id)}",
            headers=self._headers(),
        )
        if r.status != 200:
            raise KeycloakError(f"GET client {client_id} failed ({r.status}): {r.body}")
        items: List[Any] = json.loads(r.body or "[]")
        return items[0].get("id") if items else None

    def ensure_client(self, *, client_id: str, secret: str, redirect_uris: List[str]) -> None:
        payload = {
            "clientId": client_id,
            "enabled": True,
            "protocol": "openid-connect",
            "publicClient": False,
            "standardFlowEnabled": True,
            "directAccessGrantsEnabled": False,
            "redirectUris": redirect_uris,
            "secret": secret,
        }
        existing = self.client_uuid(client_id)
        if existing:
            r = _http_request(
                "PUT",
                f"{self._clients_url()}/{existing}",
                headers=self._headers(),
                data=json.dumps(payload).encode("utf-8"),
            )
            if r.status not in (200, 204):
                raise KeycloakError(f"Update client failed ({r.status}): {r.body}")
            return

        r = _http_request(
            "POST", self._clients_url(), headers=self._headers(), data=json.dumps(payload).encode("utf-8")
        )
        # 409: created by a previous attempt
        if r.status not in (201, 204, 409):
            raise KeycloakError(f"Create client failed ({r.status}): {r.body}")

    def delete_client(self, client_id: str) -> None:
        existing = self.client_uuid(client_id)
        if not existing:
            return
        r = _http_request("DELETE", f"{self._clients_url()}/{existing}", headers=self._headers())
        if r.status not in (200, 204, 404):
            raise KeycloakError(f"Delete client failed ({r.status}): {r.body}")
        log.info("deleted OIDC client %s", client_id)
