"""Shared fixtures: a fake privileged executor working on a tmp_path tree."""
import os
from pathlib import Path

import pytest

from provisioner.errors import CommandError
from provisioner.services.executor_service import CommandResult
from provisioner.services.identity_service import GroupPolicy, Identity


class FakeExecutor:
    """Creates directories and applies modes for real, records ownership changes.

    Commands passed to run() are recorded and answered from ``responses``
    (a dict keyed by the first two argv items); ``deny`` lists operations
    that fail as if sudo had been refused.
    """

    def __init__(self, responses=None, deny=()):
        self.calls = []
        self.responses = responses or {}
        self.deny = set(deny)

    def _check_denied(self, op, args):
        if op in self.deny:
            raise CommandError(args, 1, "sudo: permission denied\n")

    def run(self, args, *, check=True):
        self.calls.append(("run", list(args)))
        result = self.responses.get(tuple(args[:2]), CommandResult(args=list(args), returncode=0))
        result = CommandResult(args=list(args), returncode=result.returncode, output=result.output)
        if check and not result.ok:
            raise CommandError(list(args), result.returncode, result.output)
        return result

    def make_dirs(self, path):
        self._check_denied("make_dirs", ["mkdir", "-p", str(path)])
        self.calls.append(("make_dirs", Path(path)))
        Path(path).mkdir(parents=True, exist_ok=True)

    def chown(self, path, owner, group, *, recursive=False):
        self._check_denied("chown", ["chown", f"{owner}:{group}", str(path)])
        self.calls.append(("chown", Path(path), owner, group, recursive))

    def chmod(self, path, mode, *, recursive=False):
        self._check_denied("chmod", ["chmod", format(mode, "o"), str(path)])
        self.calls.append(("chmod", Path(path), mode, recursive))
        # setgid cannot always be set by an unprivileged test user
        os.chmod(path, mode & 0o777)
        if recursive:
            for root, dirs, files in os.walk(path):
                for name in dirs + files:
                    os.chmod(os.path.join(root, name), mode & 0o777)

    def ops(self, kind):
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home" / "alice"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def identity(home):
    return Identity(username="alice", home=home)


@pytest.fixture
def policy():
    return GroupPolicy(group="docker")


@pytest.fixture
def appdata(tmp_path):
    return tmp_path / "opt" / "appdata"
