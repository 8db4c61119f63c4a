from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol

from provisioner.errors import CommandError

logger = logging.getLogger(__name__)

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

OutputSink = Callable[[str], None]


def _discard(line: str) -> None:
    pass


@dataclass
class CommandResult:
    args: list[str]
    returncode: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class Outcome:
    """Result of a best-effort step whose failure is tolerated."""

    attempted: bool
    succeeded: bool
    ignored_error: str | None = None

    @classmethod
    def skipped(cls) -> "Outcome":
        return cls(attempted=False, succeeded=False)


class PrivilegedExecutor(Protocol):
    """Runs the operations that need elevated privileges."""

    def run(self, args: list[str], *, check: bool = True) -> CommandResult: ...

    def make_dirs(self, path: Path) -> None: ...

    def chown(self, path: Path, owner: str, group: str, *, recursive: bool = False) -> None: ...

    def chmod(self, path: Path, mode: int, *, recursive: bool = False) -> None: ...


def sudo_prefix() -> list[str]:
    return [] if os.geteuid() == 0 else ["sudo"]


@dataclass
class SudoExecutor:
    """PrivilegedExecutor backed by real commands, prefixed with sudo unless already root."""

    sink: OutputSink = _discard
    prefix: list[str] = field(default_factory=sudo_prefix)

    def run(self, args: list[str], *, check: bool = True) -> CommandResult:
        argv = [*self.prefix, *args]
        logger.debug("Running %s", " ".join(argv))
        lines: list[str] = []
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            result = CommandResult(args=argv, returncode=127, output=f"{exc}\n")
        else:
            with proc:
                for line in proc.stdout:
                    text = ANSI_RE.sub("", line)
                    lines.append(text)
                    self.sink(text)
            result = CommandResult(args=argv, returncode=proc.returncode, output="".join(lines))

        if check and not result.ok:
            logger.error("%s exited with %d", " ".join(argv), result.returncode)
            raise CommandError(argv, result.returncode, result.output)
        return result

    def make_dirs(self, path: Path) -> None:
        self.run(["mkdir", "-p", str(path)])

    def chown(self, path: Path, owner: str, group: str, *, recursive: bool = False) -> None:
        self.run(["chown", *(["-R"] if recursive else []), f"{owner}:{group}", str(path)])

    def chmod(self, path: Path, mode: int, *, recursive: bool = False) -> None:
        self.run(["chmod", *(["-R"] if recursive else []), format(mode, "o"), str(path)])
