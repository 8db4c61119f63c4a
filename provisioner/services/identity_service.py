from __future__ import annotations

import grp
import logging
import os
import pwd
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from provisioner.config import DATA_MODE, DATA_OWNER, SHARED_GROUP, WORKSPACE_MODE
from provisioner.errors import IdentityResolutionError, MissingDependency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    username: str
    home: Path


@dataclass(frozen=True)
class GroupPolicy:
    group: str = SHARED_GROUP
    workspace_mode: int = WORKSPACE_MODE
    data_owner: str = DATA_OWNER
    data_mode: int = DATA_MODE


def _current_username(env: Mapping[str, str]) -> str:
    user = env.get("USER")
    if user:
        return user
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError as exc:
        raise IdentityResolutionError(f"No passwd entry for uid {os.getuid()}") from exc


def resolve_identity(env: Mapping[str, str] | None = None, euid: int | None = None) -> Identity:
    """Return the acting user and their home directory.

    When running elevated (euid 0) on behalf of another user, SUDO_USER wins
    over the current user.
    """
    env = os.environ if env is None else env
    euid = os.geteuid() if euid is None else euid

    username = env.get("SUDO_USER") if euid == 0 else None
    if not username:
        username = _current_username(env)

    try:
        home = Path(pwd.getpwnam(username).pw_dir)
    except KeyError as exc:
        raise IdentityResolutionError(f"Cannot resolve home directory of user {username!r}") from exc

    if not home.is_dir():
        raise IdentityResolutionError(f"Home directory {str(home)!r} of user {username!r} does not exist")

    logger.debug("Resolved identity %s (home %s)", username, home)
    return Identity(username=username, home=home)


def group_exists(name: str) -> bool:
    try:
        grp.getgrnam(name)
    except KeyError:
        return False
    return True


def require_group(name: str, exists=group_exists) -> None:
    if not exists(name):
        raise MissingDependency(
            f"group '{name}' does not exist. Create it first (e.g. 'sudo groupadd {name}')."
        )


def user_in_group(username: str, group: str) -> bool:
    """True if the user is listed in the group or has it as primary group."""
    try:
        entry = grp.getgrnam(group)
    except KeyError:
        return False
    if username in entry.gr_mem:
        return True
    try:
        return pwd.getpwnam(username).pw_gid == entry.gr_gid
    except KeyError:
        return False
