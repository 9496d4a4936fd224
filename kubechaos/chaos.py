"""Chaos tasks that delete randomly chosen pods."""

from __future__ import annotations

import logging
import secrets
import threading
from typing import Callable

from kubechaos.pods import ChaosError, KubeClient, PodLister, get_random_pod, kill_pod

KEY_NAME = "name"
KEY_NAMESPACE = "namespace"
KEY_ERROR = "error"

MAX_DELAY_MS = 10000


def execute_pod_chaos(
    logger: logging.Logger,
    kube_client: KubeClient,
    pod_lister: PodLister,
) -> None:
    """Delete one pod chosen at random from the lister."""
    try:
        pod = get_random_pod(pod_lister)
    except ChaosError as exc:
        raise ChaosError(f"could not get random pod: {exc}") from exc

    logger.debug(
        "random pod selected %s=%s %s=%s",
        KEY_NAME, pod.name, KEY_NAMESPACE, pod.namespace,
    )
    try:
        kill_pod(kube_client, pod.name, pod.namespace)
    except ChaosError as exc:
        raise ChaosError(f"could not kill pod: {exc}") from exc
    logger.info(
        "pod killed %s=%s %s=%s",
        KEY_NAME, pod.name, KEY_NAMESPACE, pod.namespace,
    )


def indefinite_pod_chaos(
    logger: logging.Logger,
    kube_client: KubeClient,
    pod_lister: PodLister,
) -> Callable[[threading.Event], None]:
    """Build a task that kills a random pod after each random delay until stopped."""

    def task(stop: threading.Event) -> None:
        logger.info("starting indefinite task")
        while True:
            delay_ms = secrets.randbelow(MAX_DELAY_MS)
            if stop.wait(delay_ms / 1000):
                logger.debug("stop requested, stopping indefinite task")
                return
            try:
                execute_pod_chaos(logger, kube_client, pod_lister)
            except ChaosError as exc:
                logger.error("error executing pod chaos %s=%s", KEY_ERROR, exc)

    return task