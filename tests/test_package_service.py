import pytest

from provisioner.errors import PackageInstallError, RepositoryError, ServiceError
from provisioner.services.executor_service import CommandResult
from provisioner.services.package_service import PackageInstaller

from conftest import FakeExecutor


def _result(returncode=0, output=""):
    return CommandResult(args=[], returncode=returncode, output=output)


def _installer(responses=None, group_exists=True, member=False):
    executor = FakeExecutor(responses=responses)
    installer = PackageInstaller(
        executor,
        group_exists=lambda name: group_exists,
        user_in_group=lambda user, group: member,
    )
    return installer, executor


def _commands(executor):
    return [args for kind, args in executor.ops("run")]


class TestRemoveConflicting:
    def test_success(self):
        installer, executor = _installer()
        outcome = installer.remove_conflicting()

        assert outcome.attempted and outcome.succeeded
        assert outcome.ignored_error is None
        assert _commands(executor)[0][:3] == ["dnf", "remove", "-y"]
        assert "docker-engine" in _commands(executor)[0]

    def test_failure_is_tolerated_and_recorded(self):
        installer, _ = _installer({("dnf", "remove"): _result(1, "No match for argument: docker\n")})
        outcome = installer.remove_conflicting()

        assert outcome.attempted is True
        assert outcome.succeeded is False
        assert "No match" in outcome.ignored_error


class TestEnsureRepository:
    URL = "https://download.docker.com/linux/centos/docker-ce.repo"

    def test_skips_registered_repository(self):
        installer, executor = _installer(
            {("dnf", "repolist"): _result(0, "repo id          repo name\nDocker-CE-Stable Docker CE Stable\n")}
        )

        assert installer.ensure_repository(self.URL) is False
        assert _commands(executor) == [["dnf", "repolist"]]

    def test_adds_missing_repository(self):
        installer, executor = _installer({("dnf", "repolist"): _result(0, "appstream\nbaseos\n")})

        assert installer.ensure_repository(self.URL) is True
        assert _commands(executor)[-1] == ["dnf", "config-manager", "--add-repo", self.URL]

    def test_registration_failure(self):
        installer, _ = _installer({
            ("dnf", "repolist"): _result(0, ""),
            ("dnf", "config-manager"): _result(2, "No such command: config-manager\n"),
        })

        with pytest.raises(RepositoryError) as excinfo:
            installer.ensure_repository(self.URL)
        assert excinfo.value.exit_code == 2
        assert "config-manager" in excinfo.value.output


class TestInstallAndService:
    def test_install_packages(self):
        installer, executor = _installer()
        installer.install_packages(["docker-ce", "docker-ce-cli"])

        assert _commands(executor) == [["dnf", "install", "-y", "docker-ce", "docker-ce-cli"]]

    def test_install_failure_keeps_tool_exit_code(self):
        installer, _ = _installer({("dnf", "install"): _result(3, "Error: Unable to find a match\n")})

        with pytest.raises(PackageInstallError) as excinfo:
            installer.install_packages(["docker-ce"])
        assert excinfo.value.exit_code == 3
        assert "docker-ce" in str(excinfo.value)

    def test_enable_service(self):
        installer, executor = _installer()
        installer.enable_service("docker")

        assert _commands(executor) == [["systemctl", "enable", "--now", "docker"]]

    def test_enable_service_failure(self):
        installer, _ = _installer({("systemctl", "enable"): _result(1, "Failed to enable unit\n")})

        with pytest.raises(ServiceError):
            installer.enable_service("docker")


class TestGroupMembership:
    def test_adds_user(self):
        installer, executor = _installer(member=False)

        assert installer.add_user_to_group("alice", "docker") is True
        assert _commands(executor) == [["usermod", "-aG", "docker", "alice"]]

    def test_existing_member_is_noop(self):
        installer, executor = _installer(member=True)

        assert installer.add_user_to_group("alice", "docker") is False
        assert _commands(executor) == []

    def test_ensure_group_creates_missing_group(self):
        installer, executor = _installer(group_exists=False)

        assert installer.ensure_group("docker") is True
        assert _commands(executor) == [["groupadd", "docker"]]

    def test_ensure_group_existing(self):
        installer, executor = _installer(group_exists=True)

        assert installer.ensure_group("docker") is False
        assert _commands(executor) == []
