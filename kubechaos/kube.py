"""A minimal in-cluster client for the Kubernetes API."""

from __future__ import annotations

import json
import os
import ssl
import urllib.error
import urllib.request
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from kubechaos.pods import ChaosError, Pod, PodLister, PodNotFoundError

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")
REQUEST_TIMEOUT = 30.0


class ApiError(ChaosError):
    """The API server could not be reached or rejected a request."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def _pod_from_object(obj: Dict[str, Any]) -> Pod:
    metadata = obj.get("metadata") or {}
    deleted = metadata.get("deletionTimestamp")
    return Pod(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", ""),
        phase=(obj.get("status") or {}).get("phase", ""),
        deletion_timestamp=datetime.fromisoformat(deleted.replace("Z", "+00:00")) if deleted else None,
    )


def _error_detail(error: urllib.error.HTTPError) -> str:
    try:
        payload = json.loads(error.read())
    except (ValueError, OSError):
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return str(error.reason)


class InClusterClient:
    """Talks to the API server with a bearer token."""

    def __init__(self, host: str, token: str, ca_file: Optional[str] = None) -> None:
        self.host = host.rstrip("/")
        self.token = token
        self.ca_file = ca_file
        self._ssl_context: Optional[ssl.SSLContext] = None

    @classmethod
    def from_environment(cls) -> "InClusterClient":
        """Build a client from the service account mounted into the pod."""
        host = os.environ.get("KUBERNETES_SERVICE_HOST", "")
        port = os.environ.get("KUBERNETES_SERVICE_PORT", "")
        if not host or not port:
            raise ChaosError(
                "unable to load in-cluster configuration, KUBERNETES_SERVICE_HOST"
                " and KUBERNETES_SERVICE_PORT must be defined"
            )
        try:
            token = (SERVICE_ACCOUNT_DIR / "token").read_text().strip()
        except OSError as exc:
            raise ChaosError(f"could not read service account token: {exc}") from exc
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return cls(f"https://{host}:{port}", token, str(SERVICE_ACCOUNT_DIR / "ca.crt"))

    def _request(self, method: str, path: str) -> Dict[str, Any]:
        if self.ca_file is not None and self._ssl_context is None:
            self._ssl_context = ssl.create_default_context(cafile=self.ca_file)
        request = urllib.request.Request(
            self.host + path,
            method=method,
            headers={"Authorization": f"Bearer {self.token}", "Accept": "application/json"},
        )
        try:
            with urllib.request.urlopen(request, context=self._ssl_context, timeout=REQUEST_TIMEOUT) as response:
                body = response.read()
        except urllib.error.HTTPError as exc:
            raise ApiError(f"{method} {path}: {_error_detail(exc)}", exc.code) from exc
        except OSError as exc:
            raise ApiError(f"{method} {path}: {getattr(exc, 'reason', exc)}") from exc
        try:
            return json.loads(body) if body else {}
        except ValueError as exc:
            raise ApiError(f"{method} {path}: invalid response body") from exc

    def _pod_request(self, method: str, namespace: str, name: str) -> Dict[str, Any]:
        path = f"/api/v1/namespaces/{quote(namespace, safe='')}/pods/{quote(name, safe='')}"
        try:
            return self._request(method, path)
        except ApiError as exc:
            if exc.status == 404:
                raise PodNotFoundError(namespace, name) from exc
            raise

    def get_pod(self, namespace: str, name: str) -> Pod:
        return _pod_from_object(self._pod_request("GET", namespace, name))

    def delete_pod(self, namespace: str, name: str) -> None:
        self._pod_request("DELETE", namespace, name)

    def list_pods(self) -> List[Pod]:
        """List the pods in every namespace."""
        obj = self._request("GET", "/api/v1/pods")
        return [_pod_from_object(item) for item in obj.get("items") or []]

    def lister(self) -> PodLister:
        return PodLister(self.list_pods)