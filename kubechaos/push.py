"""Container image tasks: load the built images, tag them and push them to the registry."""

from __future__ import annotations

import os
import threading
import weakref
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Sequence

from kubechaos.devenv import CommandError, Level, Session, parse_bool
from kubechaos.devtasks import build_all, build_one

DEFAULT_REGISTRY_HOST = "ghcr.io"
CMD_DIRECTORY = "cmd"
LATEST_TAG = "latest"

_cache: "weakref.WeakKeyDictionary[Session, Dict[str, Any]]" = weakref.WeakKeyDictionary()
_cache_lock = threading.RLock()


def _once(session: Session, key: str, compute: Callable[[], Any]) -> Any:
    """Compute a per-session setting the first time it is asked for."""
    with _cache_lock:
        values: MutableMapping[str, Any] = _cache.setdefault(session, {})
        if key not in values:
            values[key] = compute()
        return values[key]


def container_registry(session: Session) -> str:
    """The registry images are pushed to: CONTAINER_REGISTRY, or the repository's GitHub registry."""

    def compute() -> str:
        override = session.environ.get("CONTAINER_REGISTRY", "")
        if override:
            return override
        repo_path = session.environ.get("GITHUB_REPOSITORY", "")
        if not repo_path:
            raise CommandError("GITHUB_REPOSITORY environment variable is not set")
        return f"{DEFAULT_REGISTRY_HOST}/{repo_path.lower()}"

    return _once(session, "registry", compute)


def commit_tag(session: Session) -> str:
    """The latest git tag, a described tag, or the short commit hash, whichever is found first."""

    def compute() -> str:
        for command in (
            ("git", "describe", "--tags", "--abbrev=0"),
            ("git", "describe", "--tags"),
            ("git", "rev-parse", "--short", "HEAD"),
        ):
            try:
                found = session.output(*command)
            except CommandError:
                continue
            if found:
                return found.strip()
        raise CommandError("could not determine git tag")

    return _once(session, "tag", compute)


def should_push(session: Session) -> bool:
    """Whether images are pushed: PUSH_IMAGES when set, otherwise only in CI."""

    def compute() -> bool:
        override = session.environ.get("PUSH_IMAGES", "")
        if override:
            session.log(Level.DEBUG, "Overriding push images with " + override)
            try:
                return parse_bool(override)
            except ValueError:
                return False
        return session.is_ci_runner()

    return _once(session, "push", compute)


def service_targets(directory: str) -> List[str]:
    """The names of the service directories inside a directory, in name order."""
    with os.scandir(directory) as entries:
        return sorted(entry.name for entry in entries if entry.is_dir())


def _read_targets() -> List[str]:
    try:
        return service_targets(CMD_DIRECTORY)
    except OSError as exc:
        raise CommandError(f"reading cmd directory: {exc}") from exc


def _push_targets(session: Session, targets: Sequence[str]) -> None:
    try:
        push_images(session, targets, commit_tag(session))
    except CommandError as exc:
        raise CommandError(f"pushing images: {exc}", exc.command) from exc


def push_all(session: Session) -> None:
    """Build everything, then load, tag and push the image of every service."""
    session.depend(build_all)
    _push_targets(session, _read_targets())


def push_one(session: Session, target: str) -> None:
    """Build one service, then load, tag and push the service images."""
    session.depend(build_one, target)
    _push_targets(session, _read_targets())


def push_images(session: Session, targets: Sequence[str], tag: str) -> None:
    """Push the images of several services at once; every failure is reported together."""

    def push(target: str) -> Optional[CommandError]:
        session.log(Level.DEBUG, "Pushing image " + target)
        try:
            push_image(session, f"{CMD_DIRECTORY}/{target}", tag)
        except CommandError as exc:
            return CommandError(f"pushing image {target}: {exc}", exc.command)
        return None

    if not targets:
        return

    with ThreadPoolExecutor(max_workers=len(targets)) as pool:
        futures = [pool.submit(push, target) for target in targets]
        session.log(Level.DEBUG, "Watching push errors channel")
        errors = [error for error in (future.result() for future in futures) if error]
        session.log(Level.DEBUG, "Waiting for all push jobs to finish")

    if errors:
        raise CommandError("\n".join(str(error) for error in errors), errors[0].command)


def push_image(session: Session, target: str, tag: str) -> None:
    """Load a service's image tarball into docker, tag it, and push it when pushing is on."""
    with _cache_lock:
        bin_directory = session.bin_directory()
    tarball = os.path.join(bin_directory, target, "oci.tar", "tarball.tar")
    try:
        session.run("docker", "load", "--input", tarball)
    except CommandError as exc:
        raise CommandError(
            f"loading tarball {tarball} to image: {exc}", exc.command
        ) from exc

    name = target.removeprefix(f"{CMD_DIRECTORY}/")
    registry = container_registry(session)
    versioned = f"{registry}/{name}:{tag}"
    latest = f"{registry}/{name}:{LATEST_TAG}"

    session.log(Level.DEBUG, "Tagging images with " + tag)
    try:
        session.run("docker", "tag", name, versioned)
    except CommandError as exc:
        raise CommandError(f"tagging image {name}: {exc}", exc.command) from exc
    try:
        session.run("docker", "tag", name, latest)
    except CommandError as exc:
        raise CommandError(
            f"tagging image {name} with latest tag: {exc}", exc.command
        ) from exc

    if not should_push(session):
        session.log(Level.INFO, "Skipping push of image " + name)
        return

    try:
        session.run("docker", "push", versioned)
    except CommandError as exc:
        raise CommandError(f"pushing image {name}: {exc}", exc.command) from exc
    try:
        session.run("docker", "push", latest)
    except CommandError as exc:
        raise CommandError(
            f"pushing image {name} with latest tag: {exc}", exc.command
        ) from exc