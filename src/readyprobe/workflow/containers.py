# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Container lifecycle calls delegated to the Docker engine."""

from __future__ import annotations

import logging
from typing import Any

import docker
import docker.errors

from ..errors import ContainerEngineError

logger = logging.getLogger(__name__)


class ContainerEngine:
    """
    Thin wrapper over a ``docker.DockerClient``.

    Every docker SDK failure surfaces as ``ContainerEngineError``; a missing
    container is not an error for the inspection and removal helpers.
    """

    def __init__(self, client: Any | None = None):
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = docker.from_env()
            except docker.errors.DockerException as exc:
                raise ContainerEngineError(f"Failed to connect to Docker daemon: {exc}") from exc
        return self._client

    def _find(self, name: str) -> Any | None:
        try:
            return self.client.containers.get(name)
        except docker.errors.NotFound:
            return None
        except docker.errors.DockerException as exc:
            raise ContainerEngineError(f"Failed to inspect container {name}: {exc}") from exc

    def remove_container(self, name: str, stop_timeout: int = 10) -> bool:
        """Stop and remove ``name``; returns False when it did not exist."""
        container = self._find(name)
        if container is None:
            logger.debug("no existing container named %s", name)
            return False
        try:
            container.stop(timeout=stop_timeout)
            container.remove(force=True)
        except docker.errors.NotFound:
            return False
        except docker.errors.DockerException as exc:
            raise ContainerEngineError(f"Failed to remove container {name}: {exc}") from exc
        logger.info("removed container %s", name)
        return True

    def build_image(self, context_dir: str, tag: str) -> str:
        try:
            image, build_log = self.client.images.build(path=context_dir, tag=tag, rm=True)
        except docker.errors.BuildError as exc:
            for entry in exc.build_log or []:
                if isinstance(entry, dict) and entry.get("stream"):
                    logger.debug("build: %s", entry["stream"].rstrip())
            raise ContainerEngineError(f"Image build failed for {tag}: {exc.msg}") from exc
        except docker.errors.DockerException as exc:
            raise ContainerEngineError(f"Image build failed for {tag}: {exc}") from exc
        for entry in build_log or []:
            if isinstance(entry, dict) and entry.get("stream"):
                logger.debug("build: %s", entry["stream"].rstrip())
        logger.info("built image %s (%s)", tag, image.id)
        return image.id

    def run_container(self, image: str, name: str, host_port: int, container_port: int) -> str:
        try:
            container = self.client.containers.run(
                image,
                name=name,
                detach=True,
                tty=True,
                ports={f"{container_port}/tcp": host_port},
            )
        except docker.errors.DockerException as exc:
            raise ContainerEngineError(f"Failed to start container {name} from {image}: {exc}") from exc
        logger.info("started container %s (%s) publishing %d->%d", name, container.short_id, host_port, container_port)
        return container.id

    def container_status(self, name: str) -> str | None:
        container = self._find(name)
        if container is None:
            return None
        return container.status

    def container_logs(self, name: str, tail: int = 100) -> str:
        container = self._find(name)
        if container is None:
            return ""
        try:
            raw = container.logs(tail=tail)
        except docker.errors.DockerException as exc:
            raise ContainerEngineError(f"Failed to read logs for {name}: {exc}") from exc
        return raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)

    def published_port(self, name: str, container_port: int) -> int | None:
        """Host port bound to ``container_port/tcp``, or None when unpublished."""
        container = self._find(name)
        if container is None:
            return None
        bindings = (container.ports or {}).get(f"{container_port}/tcp") or []
        for binding in bindings:
            host_port = binding.get("HostPort")
            if host_port:
                return int(host_port)
        return None
