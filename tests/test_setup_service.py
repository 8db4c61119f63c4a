import stat
from unittest.mock import patch

import pytest

from provisioner.errors import PackageInstallError
from provisioner.main_templates import render_summary
from provisioner.services.executor_service import CommandResult, Outcome
from provisioner.services.package_service import PackageInstaller
from provisioner.services import setup_service
from provisioner.services.setup_service import HostSetup

from conftest import FakeExecutor


def _setup(identity, appdata, executor, *, member=False, engine=None):
    installer = PackageInstaller(
        executor,
        group_exists=lambda name: True,
        user_in_group=lambda user, group: member,
    )
    return HostSetup(
        identity,
        executor,
        installer,
        appdata_base=appdata,
        verify_engine=lambda: engine or Outcome(attempted=True, succeeded=True),
    )


def _commands(executor):
    return [args for kind, args in executor.ops("run")]


def test_full_run_order(identity, appdata, home):
    executor = FakeExecutor(responses={("dnf", "repolist"): CommandResult([], 0, "baseos\n")})
    summary = _setup(identity, appdata, executor).run()

    commands = [" ".join(c[:2]) for c in _commands(executor)]
    assert commands == [
        "dnf remove",
        "dnf install",
        "dnf repolist",
        "dnf config-manager",
        "dnf install",
        "systemctl enable",
        "usermod -aG",
    ]
    assert "containerd.io" in _commands(executor)[4]

    assert (home / "docker" / "stacks").is_dir()
    assert (appdata / "docker").is_dir()
    assert ("chown", home / "docker", "alice", "alice", True) in executor.ops("chown")
    assert ("chown", appdata / "docker", "root", "docker", False) in executor.ops("chown")
    assert ("chmod", appdata / "docker", 0o2775, False) in executor.ops("chmod")
    assert stat.S_IMODE((appdata / "docker").stat().st_mode) == 0o775

    assert summary.repository_added is True
    assert summary.user_added is True
    assert summary.engine.succeeded is True


def test_conflicting_removal_failure_does_not_abort(identity, appdata):
    executor = FakeExecutor(responses={("dnf", "remove"): CommandResult([], 1, "nothing to do\n")})
    summary = _setup(identity, appdata, executor).run()

    assert summary.removal.succeeded is False
    assert summary.removal.ignored_error == "nothing to do"
    assert (appdata / "docker").is_dir()


def test_install_failure_is_fatal(identity, appdata, home):
    executor = FakeExecutor(responses={("dnf", "install"): CommandResult([], 1, "Error\n")})

    with pytest.raises(PackageInstallError):
        _setup(identity, appdata, executor).run()

    assert not (home / "docker").exists()
    assert not any(c[0] == "systemctl" for c in _commands(executor))


def test_summary_mentions_relogin_and_unreachable_engine(identity, appdata):
    engine = Outcome(attempted=True, succeeded=False, ignored_error="permission denied on docker.sock")
    summary = _setup(identity, appdata, FakeExecutor(), engine=engine).run()

    text = render_summary("setup_summary.txt.j2", summary)
    assert "Setup complete." in text
    assert "Added to group: docker" in text
    assert "log out and log back in" in text
    assert "Mode  : 2775" in text
    assert "permission denied on docker.sock" in text


def test_summary_for_existing_member(identity, appdata):
    summary = _setup(identity, appdata, FakeExecutor(), member=True).run()

    text = render_summary("setup_summary.txt.j2", summary)
    assert "Already a member of group: docker" in text
    assert "log out" not in text


def test_data_root_name_is_independent_of_home_dirname(identity, appdata, home):
    with patch.object(setup_service, "SETUP_WORKSPACE_DIRNAME", "containers"):
        summary = _setup(identity, appdata, FakeExecutor()).run()

    assert summary.stacks_dir == home / "containers" / "stacks"
    assert summary.data_root == appdata / "docker"
