from __future__ import annotations

import logging
from typing import Callable, Iterable

from provisioner.config import (
    CONFLICTING_PACKAGES,
    DOCKER_REPO_ID,
    PACKAGE_MANAGER,
)
from provisioner.errors import CommandError, PackageInstallError, RepositoryError, ServiceError
from provisioner.services import identity_service
from provisioner.services.executor_service import Outcome, PrivilegedExecutor

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Sequences dnf, systemctl and group commands and interprets their exit codes."""

    def __init__(
        self,
        executor: PrivilegedExecutor,
        *,
        package_manager: str = PACKAGE_MANAGER,
        group_exists: Callable[[str], bool] = identity_service.group_exists,
        user_in_group: Callable[[str, str], bool] = identity_service.user_in_group,
    ) -> None:
        self.executor = executor
        self.package_manager = package_manager
        self.group_exists = group_exists
        self.user_in_group = user_in_group

    def remove_conflicting(self, packages: Iterable[str] = CONFLICTING_PACKAGES) -> Outcome:
        result = self.executor.run(
            [self.package_manager, "remove", "-y", *packages], check=False
        )
        if result.ok:
            return Outcome(attempted=True, succeeded=True)
        logger.warning(
            "Removing conflicting packages failed with exit code %d (ignored)", result.returncode
        )
        return Outcome(
            attempted=True,
            succeeded=False,
            ignored_error=result.output.strip() or f"exit code {result.returncode}",
        )

    def repository_registered(self, repo_id: str = DOCKER_REPO_ID) -> bool:
        try:
            result = self.executor.run([self.package_manager, "repolist"])
        except CommandError as exc:
            raise RepositoryError.wrap(exc, "Listing repositories failed") from exc
        return repo_id.lower() in result.output.lower()

    def ensure_repository(self, url: str, repo_id: str = DOCKER_REPO_ID) -> bool:
        """Register the repository unless already present. Returns True if it was added."""
        if self.repository_registered(repo_id):
            logger.debug("Repository %s already registered", repo_id)
            return False
        try:
            self.executor.run([self.package_manager, "config-manager", "--add-repo", url])
        except CommandError as exc:
            raise RepositoryError.wrap(exc, f"Adding repository {url} failed") from exc
        return True

    def install_packages(self, names: Iterable[str]) -> None:
        names = list(names)
        try:
            self.executor.run([self.package_manager, "install", "-y", *names])
        except CommandError as exc:
            raise PackageInstallError.wrap(exc, f"Installing {' '.join(names)} failed") from exc

    def enable_service(self, name: str) -> None:
        try:
            self.executor.run(["systemctl", "enable", "--now", name])
        except CommandError as exc:
            raise ServiceError.wrap(exc, f"Enabling service {name} failed") from exc

    def ensure_group(self, group: str) -> bool:
        if self.group_exists(group):
            return False
        self.executor.run(["groupadd", group])
        return True

    def add_user_to_group(self, username: str, group: str) -> bool:
        """Returns True if the membership was added, False if already a member."""
        if self.user_in_group(username, group):
            logger.debug("%s is already a member of %s", username, group)
            return False
        self.executor.run(["usermod", "-aG", group, username])
        return True
