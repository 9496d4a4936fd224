"""The development task environment: command runner, environment settings, logging."""

from __future__ import annotations

import os
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Protocol, Tuple

BAZELISK = "github.com/bazelbuild/bazelisk@latest"

_BOOLS = {
    **dict.fromkeys(("1", "t", "T", "TRUE", "true", "True"), True),
    **dict.fromkeys(("0", "f", "F", "FALSE", "false", "False"), False),
}
_HOST_ARCHES = {"arm64": "arm64", "x86_64": "amd64"}


class CommandError(Exception):
    """A command, or a task built from commands, failed."""

    def __init__(self, message: str, command: Tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.command = tuple(command)


class Level(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    def __str__(self) -> str:
        return self.value


class Runner(Protocol):
    def run(self, *args: str) -> None: ...

    def output(self, *args: str) -> str: ...


def parse_bool(value: str) -> bool:
    """Parse 1, t, true, 0, f, false and their capitalised forms."""
    try:
        return _BOOLS[value]
    except KeyError:
        raise ValueError(f"invalid boolean: {value!r}") from None


class Session:
    """One invocation of the development tasks: each dependency and setting is computed once."""

    def __init__(self, runner: Runner, environ: Optional[Mapping[str, str]] = None) -> None:
        self.runner = runner
        self.environ: Mapping[str, str] = os.environ if environ is None else environ
        self._done: Dict[Hashable, Optional[BaseException]] = {}
        self._values: Dict[str, Any] = {}

    def _once(self, key: str, compute: Callable[[], Any]) -> Any:
        if key not in self._values:
            self._values[key] = compute()
        return self._values[key]

    def _flag(self, name: str) -> bool:
        return _BOOLS.get(self.environ.get(name, ""), False)

    def run(self, *args: str) -> None:
        self.runner.run(*args)

    def output(self, *args: str) -> str:
        """Run a command and return its output without the final newline."""
        return self.runner.output(*args).removesuffix("\n")

    def depend(self, task: Callable[..., Any], *args: Any) -> None:
        """Run a task with these arguments once; re-raise its failure on every call."""
        key = (task, args)
        if key not in self._done:
            try:
                task(self, *args)
                self._done[key] = None
            except Exception as exc:
                self._done[key] = exc
        error = self._done[key]
        if error is not None:
            raise error

    def is_ci_runner(self) -> bool:
        return self._once("ci", lambda: self._flag("CI") or self._flag("GITHUB_ACTIONS"))

    def is_debug_mode(self) -> bool:
        return self._once("debug", lambda: self._flag("RUNNER_DEBUG") or not self.is_ci_runner())

    def host_arch(self) -> str:
        def compute() -> str:
            machine = self.output("uname", "-m")
            if machine not in _HOST_ARCHES:
                raise ValueError(f"unsupported host arch: {machine}")
            return _HOST_ARCHES[machine]

        return self._once("arch", compute)

    def bin_directory(self) -> str:
        return self._once("bin", lambda: self.output("bazel", "info", "bazel-bin"))

    def output_directory(self) -> str:
        return self._once("out", lambda: self.output("bazel", "info", "output_path"))

    def log(self, level: Level, message: str) -> None:
        """Print a message; debug messages only in debug mode."""
        if level is Level.DEBUG and not self.is_debug_mode():
            return
        print(f"[{level}] {message}")


def init(session: Session) -> None:
    """In CI, install bazelisk."""
    if not session.is_ci_runner():
        return

    from kubechaos.devtasks import dep_install

    session.depend(dep_install, BAZELISK)