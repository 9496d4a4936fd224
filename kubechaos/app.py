"""The chaos application: runs pod chaos in the background until told to stop."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import List, Optional

from kubechaos.chaos import indefinite_pod_chaos
from kubechaos.kube import InClusterClient
from kubechaos.pods import ChaosError, KubeClient, PodLister

APP_NAME = "kubechaos"


class App:
    """Runs the pod chaos task in a background thread."""

    def __init__(self, logger: logging.Logger, kube_client: KubeClient, pod_lister: PodLister) -> None:
        self.logger = logger
        self.kube_client = kube_client
        self.pod_lister = pod_lister
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("app already started")
        task = indefinite_pod_chaos(self.logger.getChild("pod-chaos"), self.kube_client, self.pod_lister)
        self._thread = threading.Thread(target=task, args=(self._stop,), name="pod-chaos", daemon=True)
        self._thread.start()

    def wait_for_end(self) -> None:
        """Block until shutdown is requested or SIGINT/SIGTERM arrives, then shut down."""
        previous = {}
        if threading.current_thread() is threading.main_thread():
            for sig in (signal.SIGINT, signal.SIGTERM):
                previous[sig] = signal.signal(sig, lambda signum, frame: self._stop.set())
        try:
            while not self._stop.wait(0.5):
                pass
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
        self.shutdown()

    def shutdown(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()


def main(argv: Optional[List[str]] = None) -> None:
    """Run the chaos application against the cluster it is deployed in."""
    argparse.ArgumentParser(
        prog=APP_NAME,
        description="Delete randomly chosen pods in the cluster at random intervals.",
    ).parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    logger = logging.getLogger(APP_NAME)

    try:
        client = InClusterClient.from_environment()
    except ChaosError as exc:
        logger.error("failed to create app: %s", exc)
        raise

    app = App(logger, client, client.lister())
    app.start()
    app.wait_for_end()