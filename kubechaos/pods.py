"""Pods and the operations that pick and delete them."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Protocol


class ChaosError(Exception):
    """A chaos operation could not be carried out."""


class PodNotFoundError(ChaosError):
    """The pod does not exist."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f'pods "{name}" not found')
        self.namespace = namespace
        self.name = name


@dataclass(frozen=True)
class Pod:
    name: str
    namespace: str
    phase: str = ""
    deletion_timestamp: Optional[datetime] = None

    @property
    def terminating(self) -> bool:
        return self.deletion_timestamp is not None


class PodLister:
    """Lists pods from a source such as a cache or an API client."""

    def __init__(self, source: Callable[[], Iterable[Pod]]) -> None:
        self._source = source

    def list(self) -> List[Pod]:
        return list(self._source())


class KubeClient(Protocol):
    def get_pod(self, namespace: str, name: str) -> Pod: ...

    def delete_pod(self, namespace: str, name: str) -> None: ...


def get_random_pod(pod_lister: PodLister) -> Pod:
    """Pick one pod at random from those the lister returns."""
    try:
        pods = pod_lister.list()
    except ChaosError as exc:
        raise ChaosError(f"could not list pods: {exc}") from exc
    if not pods:
        raise ChaosError("no pods found")
    return secrets.choice(pods)


def kill_pod(kube_client: KubeClient, pod_name: str, namespace: str) -> None:
    """Delete a pod unless it is already terminating."""
    try:
        pod = kube_client.get_pod(namespace, pod_name)
    except ChaosError as exc:
        raise ChaosError(f"could not get pod: {exc}") from exc
    if pod.terminating:
        raise ChaosError("pod is already terminating")
    try:
        kube_client.delete_pod(namespace, pod_name)
    except ChaosError as exc:
        raise ChaosError(f"could not delete pod: {exc}") from exc