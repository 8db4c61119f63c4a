from __future__ import annotations

import logging
from dataclasses import dataclass

import docker

from provisioner.config import DOCKER_HOST
from provisioner.services.executor_service import Outcome

logger = logging.getLogger(__name__)


@dataclass
class EngineStatus:
    reachable: bool
    version: str = ""
    api_version: str = ""
    error: str = ""


_client: docker.DockerClient | None = None


def _get_client() -> docker.DockerClient:
    global _client
    if _client is None:
        _client = docker.DockerClient(base_url=DOCKER_HOST)
    return _client


def reset_client() -> None:
    global _client
    if _client is not None:
        _client.close()
    _client = None


def engine_status() -> EngineStatus:
    """Ask the daemon for its version. Never raises."""
    try:
        info = _get_client().version()
    except docker.errors.DockerException as exc:
        reset_client()
        return EngineStatus(reachable=False, error=str(exc))
    return EngineStatus(
        reachable=True,
        version=info.get("Version", "unknown"),
        api_version=info.get("ApiVersion", ""),
    )


def verify_engine() -> Outcome:
    """Best-effort post-install check.

    A fresh group membership only applies after a new login, so an
    unreachable socket right after setup is reported, not raised.
    """
    status = engine_status()
    if status.reachable:
        logger.info("Docker engine %s reachable", status.version)
        return Outcome(attempted=True, succeeded=True)
    logger.warning("Docker engine not reachable yet: %s", status.error)
    return Outcome(attempted=True, succeeded=False, ignored_error=status.error)
