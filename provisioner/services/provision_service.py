"""Stack provisioning: workspace tree under the user's home, data tree under APPDATA_BASE."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from provisioner.config import APPDATA_BASE, WORKSPACE_DIRNAME
from provisioner.services import identity_service, workspace_service
from provisioner.services.executor_service import OutputSink, PrivilegedExecutor
from provisioner.services.identity_service import GroupPolicy, Identity
from provisioner.services.workspace_service import StackLayout

logger = logging.getLogger(__name__)


@dataclass
class FileRecord:
    path: Path
    created: bool


@dataclass
class ProvisionSummary:
    identity: Identity
    policy: GroupPolicy
    layout: StackLayout
    directories: list[Path] = field(default_factory=list)
    files: list[FileRecord] = field(default_factory=list)

    @property
    def created_files(self) -> list[Path]:
        return [f.path for f in self.files if f.created]


class Provisioner:
    def __init__(
        self,
        identity: Identity,
        executor: PrivilegedExecutor,
        policy: GroupPolicy | None = None,
        *,
        appdata_base: str | Path = APPDATA_BASE,
        workspace_dirname: str = WORKSPACE_DIRNAME,
        group_exists: Callable[[str], bool] = identity_service.group_exists,
        output: OutputSink | None = None,
    ) -> None:
        self.identity = identity
        self.executor = executor
        self.policy = policy or GroupPolicy()
        self.appdata_base = Path(appdata_base)
        self.workspace_dirname = workspace_dirname
        self.group_exists = group_exists
        self.output = output or (lambda line: None)

    def _say(self, line: str = "") -> None:
        self.output(f"{line}\n")

    def provision(self, name: str) -> ProvisionSummary:
        name = workspace_service.validate_name(name)
        identity, policy = self.identity, self.policy
        layout = StackLayout.build(
            name,
            identity.home,
            workspace_dirname=self.workspace_dirname,
            appdata_base=self.appdata_base,
        )
        summary = ProvisionSummary(identity=identity, policy=policy, layout=layout)

        self._say(f"Using user: {identity.username}")
        self._say(f"App name : {name}")
        self._say()

        identity_service.require_group(policy.group, exists=self.group_exists)

        logger.info("Provisioning stack %s for %s", name, identity.username)
        self._ensure_workspace_base(layout)
        self._ensure_stack_tree(layout, summary)
        self._ensure_data_tree(layout)

        summary.directories = [
            layout.workspace_base,
            layout.stacks_dir,
            layout.stack_dir,
            layout.config_dir,
            layout.logs_dir,
            layout.data_root,
            layout.data_dir,
        ]
        logger.info(
            "Stack %s provisioned, %d new file(s)", name, len(summary.created_files)
        )
        return summary

    def _ensure_workspace_base(self, layout: StackLayout) -> None:
        self._say(f"==> Ensuring {layout.workspace_base} base directory and permissions")
        workspace_service.ensure_dir(layout.stacks_dir)
        # Whole base, so sibling stacks are brought back to the same policy
        self._apply_workspace_policy(layout.workspace_base)

    def _ensure_stack_tree(self, layout: StackLayout, summary: ProvisionSummary) -> None:
        self._say(f"==> Creating stack directory tree: {layout.stack_dir}")
        workspace_service.ensure_dir(layout.config_dir)
        workspace_service.ensure_dir(layout.logs_dir)

        for path in (layout.compose_file, layout.env_file):
            created = workspace_service.ensure_empty_file(path)
            summary.files.append(FileRecord(path=path, created=created))
            if created:
                self._say(f"Created empty {path.name} at: {path}")
            else:
                self._say(f"{path.name} already exists at: {path} (left unchanged)")

        self._apply_workspace_policy(layout.stack_dir)

    def _ensure_data_tree(self, layout: StackLayout) -> None:
        policy = self.policy
        self._say()
        self._say(f"==> Creating app data directory under {self.appdata_base}")
        self.executor.make_dirs(layout.data_dir)
        self.executor.chown(layout.data_root, policy.data_owner, policy.group, recursive=True)
        self.executor.chmod(layout.data_root, policy.data_mode, recursive=True)
        self._say(f"Created/verified app data tree: {layout.data_dir}")

    def _apply_workspace_policy(self, path: Path) -> None:
        # chown before chmod: the broad mode is only set once the owner is right
        self.executor.chown(path, self.identity.username, self.policy.group, recursive=True)
        self.executor.chmod(path, self.policy.workspace_mode, recursive=True)
