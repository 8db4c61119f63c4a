"""Host setup: Docker Engine from the vendor repository plus the shared directory layout."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from provisioner.config import (
    APPDATA_BASE,
    DOCKER_REPO_URL,
    DOCKER_SERVICE,
    ENGINE_PACKAGES,
    REPO_TOOL_PACKAGES,
    SETUP_DATA_DIRNAME,
    SETUP_WORKSPACE_DIRNAME,
    STACKS_DIRNAME,
)
from provisioner.services import docker_service, workspace_service
from provisioner.services.executor_service import Outcome, OutputSink, PrivilegedExecutor
from provisioner.services.identity_service import GroupPolicy, Identity
from provisioner.services.package_service import PackageInstaller

logger = logging.getLogger(__name__)


@dataclass
class SetupSummary:
    identity: Identity
    policy: GroupPolicy
    workspace_dir: Path
    stacks_dir: Path
    data_root: Path
    removal: Outcome = field(default_factory=Outcome.skipped)
    engine: Outcome = field(default_factory=Outcome.skipped)
    repository_added: bool = False
    group_created: bool = False
    user_added: bool = False


class HostSetup:
    def __init__(
        self,
        identity: Identity,
        executor: PrivilegedExecutor,
        installer: PackageInstaller | None = None,
        policy: GroupPolicy | None = None,
        *,
        appdata_base: str | Path = APPDATA_BASE,
        repo_url: str = DOCKER_REPO_URL,
        verify_engine: Callable[[], Outcome] = docker_service.verify_engine,
        output: OutputSink | None = None,
    ) -> None:
        self.identity = identity
        self.executor = executor
        self.installer = installer or PackageInstaller(executor)
        self.policy = policy or GroupPolicy()
        self.appdata_base = Path(appdata_base)
        self.repo_url = repo_url
        self.verify_engine = verify_engine
        self.output = output or (lambda line: None)

    def _say(self, line: str = "") -> None:
        self.output(f"{line}\n")

    def run(self) -> SetupSummary:
        identity, policy = self.identity, self.policy
        workspace_dir = identity.home / SETUP_WORKSPACE_DIRNAME
        summary = SetupSummary(
            identity=identity,
            policy=policy,
            workspace_dir=workspace_dir,
            stacks_dir=workspace_dir / STACKS_DIRNAME,
            data_root=self.appdata_base / SETUP_DATA_DIRNAME,
        )

        self._say(f"Running user: {identity.username}")
        self._say(f"Home directory: {identity.home}")
        self._say()

        self._install_engine(summary)
        self._configure_group(summary)
        self._create_layout(summary)

        self._say()
        self._say("==> Checking Docker engine...")
        summary.engine = self.verify_engine()
        return summary

    def _install_engine(self, summary: SetupSummary) -> None:
        installer = self.installer
        self._say("==> Installing Docker Engine (Docker CE repo)...")
        summary.removal = installer.remove_conflicting()
        installer.install_packages(REPO_TOOL_PACKAGES)
        summary.repository_added = installer.ensure_repository(self.repo_url)
        installer.install_packages(ENGINE_PACKAGES)
        installer.enable_service(DOCKER_SERVICE)

    def _configure_group(self, summary: SetupSummary) -> None:
        group = self.policy.group
        self._say()
        self._say(f"==> Configuring {group} group...")
        summary.group_created = self.installer.ensure_group(group)
        summary.user_added = self.installer.add_user_to_group(self.identity.username, group)

    def _create_layout(self, summary: SetupSummary) -> None:
        username, policy = self.identity.username, self.policy

        self._say()
        self._say("==> Creating Docker directory structure in home...")
        workspace_service.ensure_dir(summary.stacks_dir)
        self.executor.chown(summary.workspace_dir, username, username, recursive=True)
        self._say(f"Created: {summary.stacks_dir}")

        self._say()
        self._say(f"==> Creating {summary.data_root} for container data...")
        self.executor.make_dirs(summary.data_root)
        # Top directory only
        self.executor.chown(summary.data_root, policy.data_owner, policy.group)
        self.executor.chmod(summary.data_root, policy.data_mode)
        logger.info("Host setup finished for %s", username)
