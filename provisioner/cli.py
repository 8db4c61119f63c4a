"""Command-line entry points: create-stack and setup-docker."""
from __future__ import annotations

import argparse
import logging
import sys

from provisioner.config import LOG_LEVEL
from provisioner.errors import ProvisionError
from provisioner.main_templates import render_summary
from provisioner.services import identity_service, workspace_service
from provisioner.services.executor_service import SudoExecutor
from provisioner.services.provision_service import Provisioner
from provisioner.services.setup_service import HostSetup

logger = logging.getLogger(__name__)


class _Parser(argparse.ArgumentParser):
    """Usage errors exit with status 1."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _ensure_logging() -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=getattr(logging, LOG_LEVEL, logging.WARNING),
            format="%(levelname)s: %(message)s",
        )


def _write(line: str) -> None:
    sys.stdout.write(line)
    sys.stdout.flush()


def _fail(exc: Exception, exit_code: int) -> int:
    sys.stdout.flush()
    print(f"Error: {exc}", file=sys.stderr)
    return exit_code


def create_stack(argv: list[str] | None = None) -> int:
    parser = _Parser(
        prog="create-stack",
        description="Create the workspace and data directories for a compose stack.",
    )
    parser.add_argument("app_name", help="letters, numbers, dots, underscores and dashes")
    args = parser.parse_args(argv)
    _ensure_logging()

    try:
        name = workspace_service.validate_name(args.app_name)
        identity = identity_service.resolve_identity()
        executor = SudoExecutor(sink=_write)
        summary = Provisioner(identity, executor, output=_write).provision(name)
    except ProvisionError as exc:
        return _fail(exc, exc.exit_code)
    except OSError as exc:
        logger.debug("Filesystem operation failed", exc_info=True)
        return _fail(exc, 1)

    _write(render_summary("provision_summary.txt.j2", summary))
    return 0


def setup_docker(argv: list[str] | None = None) -> int:
    parser = _Parser(
        prog="setup-docker",
        description="Install Docker Engine and create the shared directory layout.",
    )
    parser.parse_args(argv)
    _ensure_logging()

    try:
        identity = identity_service.resolve_identity()
        executor = SudoExecutor(sink=_write)
        summary = HostSetup(identity, executor, output=_write).run()
    except ProvisionError as exc:
        return _fail(exc, exc.exit_code)
    except OSError as exc:
        logger.debug("Filesystem operation failed", exc_info=True)
        return _fail(exc, 1)

    _write(render_summary("setup_summary.txt.j2", summary))
    return 0


def main_create_stack() -> None:
    sys.exit(create_stack())


def main_setup_docker() -> None:
    sys.exit(setup_docker())
