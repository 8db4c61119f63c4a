"""Exceptions raised by the provisioning services.

Every error is fatal for the pipeline that raised it. The outer surfaces
(CLI, task runner, HTTP routes) turn them into an exit code and a message.
"""
from __future__ import annotations


class ProvisionError(Exception):
    exit_code = 1

    def __init__(self, message: str, *, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class InvalidInput(ProvisionError):
    pass


class MissingDependency(ProvisionError):
    pass


class IdentityResolutionError(ProvisionError):
    pass


class CommandError(ProvisionError):
    """An external tool exited non-zero; its return code becomes the exit code."""

    def __init__(self, args: list[str], returncode: int, output: str = "") -> None:
        super().__init__(
            f"Command {' '.join(args)!r} failed with exit code {returncode}",
            output=output,
        )
        self.args_list = list(args)
        self.returncode = returncode
        if returncode < 0:
            # Killed by a signal: shell convention 128 + signal number
            self.exit_code = 128 - returncode
        else:
            self.exit_code = returncode or 1

    @classmethod
    def wrap(cls, exc: "CommandError", message: str) -> "CommandError":
        err = cls(exc.args_list, exc.returncode, exc.output)
        err.args = (f"{message}: {exc}",)
        return err


class RepositoryError(CommandError):
    pass


class PackageInstallError(CommandError):
    pass


class ServiceError(CommandError):
    pass
