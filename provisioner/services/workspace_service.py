from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from provisioner.config import (
    APPDATA_BASE,
    COMPOSE_FILENAME,
    DATA_SUBDIR,
    ENV_FILENAME,
    STACK_NAME_RE,
    STACKS_DIRNAME,
    WORKSPACE_DIRNAME,
)
from provisioner.errors import InvalidInput

_RESERVED_NAMES = (".", "..")


@dataclass(frozen=True)
class StackLayout:
    """Every path belonging to one stack, in the workspace and data trees."""

    name: str
    workspace_base: Path
    stacks_dir: Path
    stack_dir: Path
    config_dir: Path
    logs_dir: Path
    compose_file: Path
    env_file: Path
    data_root: Path
    data_dir: Path

    @classmethod
    def build(
        cls,
        name: str,
        home: Path,
        *,
        workspace_dirname: str = WORKSPACE_DIRNAME,
        appdata_base: str | Path = APPDATA_BASE,
    ) -> "StackLayout":
        workspace_base = Path(home) / workspace_dirname
        stacks_dir = workspace_base / STACKS_DIRNAME
        stack_dir = stacks_dir / name
        data_root = Path(appdata_base) / name
        return cls(
            name=name,
            workspace_base=workspace_base,
            stacks_dir=stacks_dir,
            stack_dir=stack_dir,
            config_dir=stack_dir / "config",
            logs_dir=stack_dir / "logs",
            compose_file=stack_dir / COMPOSE_FILENAME,
            env_file=stack_dir / ENV_FILENAME,
            data_root=data_root,
            data_dir=data_root / DATA_SUBDIR,
        )


def validate_name(value: str) -> str:
    """Return the stack name unchanged, or raise InvalidInput."""
    if not value or not STACK_NAME_RE.fullmatch(value):
        raise InvalidInput(
            "app_name can only contain letters, numbers, dots, underscores and dashes."
        )
    if value in _RESERVED_NAMES:
        raise InvalidInput(f"app_name {value!r} is not a valid directory name.")
    return value


def ensure_dir(path: Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def ensure_empty_file(path: Path) -> bool:
    """Create an empty file if absent. Returns True if it was created.

    O_EXCL makes the existence check and the creation one step, so an
    existing file is never opened for writing. A dangling symlink is
    followed and its target created, like touch does.
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o664)
    except FileExistsError:
        path = Path(path)
        if not (path.is_symlink() and not path.exists()):
            return False
        fd = os.open(path, os.O_WRONLY | os.O_CREAT, 0o664)
    os.close(fd)
    return True
