import logging
import signal
import threading
from unittest import mock

import pytest

from kubechaos import kube
from kubechaos.app import App, main
from kubechaos.pods import ChaosError, Pod, PodLister, PodNotFoundError


class FakeClient:
    def __init__(self, *pods):
        self.pods = {(pod.namespace, pod.name): pod for pod in pods}
        self.deleted = threading.Event()
        self.lock = threading.Lock()

    def get_pod(self, namespace, name):
        with self.lock:
            try:
                return self.pods[(namespace, name)]
            except KeyError:
                raise PodNotFoundError(namespace, name) from None

    def delete_pod(self, namespace, name):
        with self.lock:
            del self.pods[(namespace, name)]
        self.deleted.set()

    def snapshot(self):
        with self.lock:
            return list(self.pods.values())


def make_app(*pods):
    client = FakeClient(*pods)
    app = App(logging.getLogger("test-app"), client, PodLister(client.snapshot))
    return app, client


def test_start_kills_pods_until_shutdown(caplog):
    caplog.set_level(logging.DEBUG, logger="test-app")
    app, client = make_app(Pod(name="test-pod", namespace="test-namespace"))

    with mock.patch("secrets.randbelow", return_value=0):
        app.start()
        assert client.deleted.wait(5)
        app.shutdown()

    assert app.running is False
    assert client.snapshot() == []
    started = [r for r in caplog.records if r.getMessage() == "starting indefinite task"]
    assert [r.name for r in started] == ["test-app.pod-chaos"]


def test_start_twice_is_rejected():
    app, _ = make_app()
    app.start()
    try:
        with pytest.raises(RuntimeError):
            app.start()
    finally:
        app.shutdown()
    assert app.running is False


def test_wait_for_end_returns_after_shutdown():
    app, _ = make_app()
    app.start()
    timer = threading.Timer(0.1, app.shutdown)
    timer.start()

    app.wait_for_end()
    timer.join()

    assert app.running is False


def test_wait_for_end_stops_on_signal():
    app, _ = make_app()
    previous = signal.getsignal(signal.SIGINT)
    app.start()
    timer = threading.Timer(0.2, signal.raise_signal, args=(signal.SIGINT,))
    timer.start()

    app.wait_for_end()
    timer.join()

    assert app.running is False
    assert signal.getsignal(signal.SIGINT) == previous


def test_main_fails_outside_cluster(monkeypatch, tmp_path, caplog):
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    monkeypatch.delenv("KUBERNETES_SERVICE_PORT", raising=False)
    monkeypatch.setattr(kube, "SERVICE_ACCOUNT_DIR", tmp_path)
    caplog.set_level(logging.ERROR)

    with pytest.raises(ChaosError):
        main([])

    assert any("failed to create app" in r.getMessage() for r in caplog.records)


def test_main_rejects_unknown_arguments():
    with pytest.raises(SystemExit) as info:
        main(["--unknown"])
    assert info.value.code == 2