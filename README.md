# kubechaos

kubechaos is a small chaos-testing service for Kubernetes. Running inside a
cluster, it waits a random interval of under ten seconds, picks a random pod
from every namespace, and deletes it, over and over until it is stopped. It is
meant for checking that your workloads survive losing pods at arbitrary
moments.

A pod that is already terminating is left alone: the attempt is logged as an
error and the loop carries on with the next interval. Any other failure (no
pods, an API error) is logged the same way and does not stop the loop.

## Installation

```
pip install .
```

There are no runtime dependencies beyond the Python standard library
(Python 3.10 or later).

## Running in a cluster

Run the service from a pod whose service account may list, get and delete
pods:

```
kubechaos
```

The command takes no options besides `--help`. It builds an
`InClusterClient` with `InClusterClient.from_environment()`, which reads
`KUBERNETES_SERVICE_HOST` and `KUBERNETES_SERVICE_PORT` and the service
account token and CA certificate mounted under
`/var/run/secrets/kubernetes.io/serviceaccount`. If either variable is missing
or the token cannot be read, it logs "failed to create app" and exits with a
`ChaosError`.

It then starts the pod chaos task in a background thread and runs until it
receives SIGINT or SIGTERM, after which it stops the task and waits for it to
finish. Log lines go to standard error at INFO level; each deleted pod is
logged as `pod killed name=<pod> namespace=<namespace>`.

## Using it as a library

`kubechaos.pods` holds the pieces that pick and delete pods:

- `Pod`: a frozen dataclass with `name`, `namespace`, `phase` and
  `deletion_timestamp`, and a `terminating` property.
- `PodLister(source)`: wraps any callable returning pods; `list()` returns
  them as a list.
- `KubeClient`: the protocol a client must meet, `get_pod(namespace, name)`
  and `delete_pod(namespace, name)`.
- `get_random_pod(pod_lister)` and `kill_pod(kube_client, pod_name, namespace)`.

```python
import logging

from kubechaos.chaos import execute_pod_chaos
from kubechaos.kube import InClusterClient
from kubechaos.pods import get_random_pod, kill_pod

client = InClusterClient.from_environment()
lister = client.lister()          # lists pods in all namespaces on every call

pod = get_random_pod(lister)      # ChaosError("no pods found") when there are none
kill_pod(client, pod.name, pod.namespace)

# Or one round of chaos, with logging:
execute_pod_chaos(logging.getLogger("pod-chaos"), client, lister)
```

`kubechaos.chaos.indefinite_pod_chaos(logger, kube_client, pod_lister)`
returns a task that takes a `threading.Event` and repeats a round of chaos
after each random delay until the event is set.

`kubechaos.app.App(logger, kube_client, pod_lister)` runs that task in a
thread: `start()` (a second call raises `RuntimeError`), `wait_for_end()`
(blocks until `shutdown()` is called or, on the main thread, SIGINT/SIGTERM
arrives), `shutdown()`, and a `running` property.

`InClusterClient(host, token, ca_file=None)` can also be built directly; it
has `get_pod`, `delete_pod`, `list_pods` and `lister`.

Errors: every failure is a `ChaosError`; a missing pod raises
`PodNotFoundError`, and other problems reaching the API server, or responses
it rejects, raise `ApiError` (with the HTTP `status` when there is one).

## Development tasks

`kubechaos.devtasks` and `kubechaos.push` hold the repository's build, test,
coverage and image-publishing tasks, which drive `bazel`, `go`, `git`,
`docker`, `genhtml` and `open`. They run through a `kubechaos.devenv.Session`,
built from a runner object with `run(*args)` and `output(*args)` methods and
an optional environment mapping:

```python
from kubechaos.devenv import Session
from kubechaos.devtasks import run_alias

session = Session(my_runner)
run_alias(session, "test")        # also: build, fixit, generate, install <dep>
```

A `Session` runs each dependency once and reads `CI`, `GITHUB_ACTIONS` and
`RUNNER_DEBUG` to decide whether it is in CI (where `init` installs
bazelisk) and whether debug messages are printed. `kubechaos.push` reads
`CONTAINER_REGISTRY`, `GITHUB_REPOSITORY` and `PUSH_IMAGES`; without
`PUSH_IMAGES`, images are only tagged, and pushed only in CI. Note that
`push_one` builds just the named service but then loads, tags and pushes the
images of every service directory under `cmd/`.

## What it does not do

The package does not start any programs itself: it ships no runner that
executes commands and no command line for the development tasks. You supply
the runner passed to `Session`. It also keeps no watch-based cache of pods;
the lister from `InClusterClient.lister()` asks the API server on each call.

## Tests

```
pip install ".[test]"
pytest
```