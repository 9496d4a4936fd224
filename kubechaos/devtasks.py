"""Development tasks: build, test, dependency management and code generation."""

from __future__ import annotations

import os
import time
from typing import Any, Callable, Dict

from kubechaos.devenv import CommandError, Level, Session, init


def _elapsed(start: float) -> str:
    return f"{time.monotonic() - start:.3f}s"


def build_all(session: Session) -> None:
    """Build everything in the workspace."""
    session.depend(init)
    session.log(Level.INFO, "Building all code")
    start = time.monotonic()
    try:
        session.run("bazel", "build", "//...")
    except CommandError as exc:
        raise CommandError(f"error building all code: {exc}", exc.command) from exc
    session.log(Level.INFO, f"Build completed in {_elapsed(start)}")


def build_one(session: Session, service: str) -> None:
    """Build a single application under cmd/."""
    session.depend(init)
    session.log(Level.INFO, f"Building {service}")
    start = time.monotonic()
    try:
        session.run("bazel", "build", "//cmd/" + service)
    except CommandError as exc:
        raise CommandError(f"error building {service}: {exc}", exc.command) from exc
    session.log(Level.INFO, f"Build of {service} completed in {_elapsed(start)}")


def dep_get(session: Session, dep: str) -> None:
    """Add a Go dependency and bring the vendored modules and build files up to date."""
    try:
        session.run("go", "get", dep)
    except CommandError as exc:
        raise CommandError(f"error retrieving dependency: {exc}", exc.command) from exc
    vendor_deps(session)


def dep_install(session: Session, dep: str) -> None:
    """Install a Go tool."""
    try:
        session.run("go", "install", dep)
    except CommandError as exc:
        raise CommandError(f"error installing dependency: {exc}", exc.command) from exc


def vendor_deps(session: Session) -> None:
    """Tidy, vendor and verify modules, then regenerate the build files."""
    for command in (
        ("go", "mod", "tidy"),
        ("go", "mod", "vendor"),
        ("go", "mod", "verify"),
        ("bazel", "mod", "tidy"),
        ("bazel", "run", "//:gazelle"),
    ):
        session.run(*command)


def _generate_mock(session: Session, should_vendor: bool) -> None:
    session.depend(init)
    try:
        session.run("bazel", "run", "//:gen_mock")
    except CommandError as exc:
        raise CommandError(
            f"error writing generated mock files: {exc}", exc.command
        ) from exc
    if should_vendor:
        vendor_deps(session)


def generate_all(session: Session) -> None:
    """Run every code generator."""
    session.depend(init)
    session.depend(_generate_mock, False)


def generate_mock(session: Session) -> None:
    """Regenerate the mocks and vendor any dependencies they brought in."""
    session.depend(_generate_mock, True)
    vendor_deps(session)


def test_unit(session: Session) -> None:
    """Run the unit tests."""
    session.depend(init)
    session.log(Level.INFO, "Running unit tests")
    session.run("bazel", "test", "//...")


def _benchmark(session: Session) -> str:
    session.depend(init)
    session.log(Level.INFO, "Running benchmarks")
    try:
        return session.output(
            "bazel", "test", "--test_arg=-bench=.", "--test_arg=-run=^$", "//..."
        )
    except CommandError as exc:
        raise CommandError(f"error running benchmarks: {exc}", exc.command) from exc


def test_bench(session: Session) -> None:
    """Run the benchmarks and print their output."""
    session.depend(init)
    try:
        result = _benchmark(session)
    except CommandError as exc:
        raise CommandError(f"error running benchmarks: {exc}", exc.command) from exc
    print(result)


def coverage_run(session: Session) -> None:
    """Run the unit tests with coverage."""
    session.depend(init)
    session.log(Level.INFO, "Running unit tests with coverage")
    try:
        session.run("bazel", "coverage", "//...")
    except CommandError as exc:
        raise CommandError(f"error running unit tests: {exc}", exc.command) from exc


def coverage_view(session: Session) -> None:
    """Produce an HTML coverage report with genhtml and open it."""
    session.depend(coverage_run)
    report = os.path.join(session.output_directory(), "_coverage", "_coverage_report.dat")
    try:
        session.run("genhtml", "--branch-coverage", "--output", "genhtml", report)
    except CommandError as exc:
        raise CommandError(
            f"unable to generate HTML coverage report: {exc}", exc.command
        ) from exc
    session.run("open", os.path.join("genhtml", "index.html"))


ALIASES: Dict[str, Callable[..., Any]] = {
    "fixit": vendor_deps,
    "build": build_all,
    "test": test_unit,
    "install": dep_install,
    "generate": generate_all,
}


def run_alias(session: Session, name: str, *args: str) -> None:
    """Run the task a short alias stands for."""
    try:
        task = ALIASES[name]
    except KeyError:
        raise ValueError(f"unknown target: {name}") from None
    task(session, *args)