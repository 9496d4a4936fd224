from datetime import datetime

import pytest

from kubechaos.pods import (
    ChaosError,
    Pod,
    PodLister,
    PodNotFoundError,
    get_random_pod,
    kill_pod,
)


def make_pod(name="test-pod", deletion_timestamp=None):
    return Pod(
        name=name,
        namespace="test-namespace",
        phase="Running",
        deletion_timestamp=deletion_timestamp,
    )


class FakeClient:
    def __init__(self, *pods, delete_error=None):
        self.pods = {(pod.namespace, pod.name): pod for pod in pods}
        self.deleted = []
        self.delete_error = delete_error

    def get_pod(self, namespace, name):
        try:
            return self.pods[(namespace, name)]
        except KeyError:
            raise PodNotFoundError(namespace, name) from None

    def delete_pod(self, namespace, name):
        if self.delete_error is not None:
            raise self.delete_error
        del self.pods[(namespace, name)]
        self.deleted.append((namespace, name))


def lister_for(client):
    return PodLister(lambda: client.pods.values())


def test_kill_pod_success():
    pod = make_pod()
    client = FakeClient(pod)

    kill_pod(client, pod.name, pod.namespace)

    assert client.deleted == [("test-namespace", "test-pod")]
    assert client.pods == {}


def test_kill_pod_already_terminating():
    pod = make_pod(deletion_timestamp=datetime(1, 1, 1))
    client = FakeClient(pod)

    with pytest.raises(ChaosError) as info:
        kill_pod(client, pod.name, pod.namespace)

    assert str(info.value) == "pod is already terminating"
    assert client.deleted == []


def test_kill_pod_not_found():
    client = FakeClient()

    with pytest.raises(ChaosError) as info:
        kill_pod(client, "non-existent-pod", "test-namespace")

    assert "could not get pod" in str(info.value)
    assert isinstance(info.value.__cause__, PodNotFoundError)


def test_kill_pod_delete_failure():
    pod = make_pod()
    client = FakeClient(pod, delete_error=ChaosError("boom"))

    with pytest.raises(ChaosError) as info:
        kill_pod(client, pod.name, pod.namespace)

    assert str(info.value) == "could not delete pod: boom"


def test_get_random_pod_single():
    pod = make_pod()
    client = FakeClient(pod)

    random_pod = get_random_pod(lister_for(client))

    assert random_pod.name == pod.name


def test_get_random_pod_multiple():
    pod1 = make_pod()
    pod2 = make_pod(name="test-pod-2")
    client = FakeClient(pod1, pod2)
    lister = lister_for(client)

    chosen = {get_random_pod(lister).name for _ in range(200)}

    assert chosen <= {pod1.name, pod2.name}
    assert chosen == {pod1.name, pod2.name}


def test_get_random_pod_none_found():
    with pytest.raises(ChaosError) as info:
        get_random_pod(lister_for(FakeClient()))

    assert str(info.value) == "no pods found"


def test_get_random_pod_lister_failure():
    def failing():
        raise ChaosError("cache unavailable")

    with pytest.raises(ChaosError) as info:
        get_random_pod(PodLister(failing))

    assert str(info.value) == "could not list pods: cache unavailable"


def test_lister_returns_a_list_snapshot():
    pods = [make_pod(), make_pod(name="test-pod-2")]
    lister = PodLister(lambda: iter(pods))

    assert lister.list() == pods
    assert lister.list() == pods


def test_pod_terminating_flag():
    running = Pod(name="test-pod", namespace="test-namespace", phase="Running")
    stopping = Pod(
        name="test-pod",
        namespace="test-namespace",
        phase="Running",
        deletion_timestamp=datetime(1, 1, 1),
    )

    assert running.terminating is False
    assert stopping.terminating is True


def test_not_found_message():
    error = PodNotFoundError("test-namespace", "non-existent-pod")
    assert str(error) == 'pods "non-existent-pod" not found'