"""
Locating and invoking the Rust toolchain: cargo, rustc, and the build itself.
"""

from collections.abc import Sequence
import os
from pathlib import Path
import shutil
import subprocess

from pyvider.telemetry import logger

from .exceptions import BuildError, BuildFailureError


def ensure_tool(tool_name: str, env_var: str | None = None) -> str:
    """
    Resolves an external executable, honouring an environment override first.
    """
    if env_var and os.environ.get(env_var):
        return os.environ[env_var]

    resolved = shutil.which(tool_name)
    if not resolved:
        hint = f" or set {env_var}" if env_var else ""
        raise BuildError(
            f"'{tool_name}' not found in PATH. Please install it{hint}."
        )
    return resolved


def cargo_executable() -> str:
    return os.environ.get("CARGO") or "cargo"


def rustc_executable() -> str:
    return os.environ.get("RUSTC") or "rustc"


def run_subprocess(
    command: Sequence[str],
    cwd: Path | str | None = None,
    env: dict[str, str] | None = None,
) -> str:
    """Runs a command to completion, returning stdout or raising BuildError."""
    logger.info(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            cwd=cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            check=False,
        )
    except OSError as e:
        raise BuildError(f"Could not start '{command[0]}': {e}") from e

    if result.returncode != 0:
        error_message = (
            f"Command failed with exit code {result.returncode}.\n"
            f"  Command: {' '.join(command)}\n"
            f"  Stdout:\n{result.stdout.strip()}\n"
            f"  Stderr:\n{result.stderr.strip()}"
        )
        raise BuildError(error_message)
    if result.stderr:
        logger.debug("Command stderr", output=result.stderr.strip())
    return result.stdout


class BuildInvoker:
    """Runs `cargo build --release` for the selected target and member."""

    def __init__(self, cargo: str | None = None, cwd: Path | None = None) -> None:
        self.cargo = cargo or cargo_executable()
        self.cwd = cwd

    def build_command(
        self,
        target: str | None = None,
        package: str | None = None,
        extra_args: Sequence[str] = (),
    ) -> list[str]:
        command = [self.cargo, "build", "--release"]
        if target:
            command.extend(["--target", target])
        if package:
            command.extend(["-p", package])
        command.extend(extra_args)
        return command

    def build(
        self,
        target: str | None = None,
        package: str | None = None,
        extra_args: Sequence[str] = (),
    ) -> None:
        command = self.build_command(target, package, extra_args)
        logger.info(f"Running command: {' '.join(command)}")

        # Compiler output goes straight to the user's terminal.
        try:
            result = subprocess.run(
                command, cwd=self.cwd, stdin=subprocess.DEVNULL, check=False
            )
        except OSError as e:
            raise BuildFailureError(f"Could not start '{self.cargo}': {e}") from e

        if result.returncode != 0:
            raise BuildFailureError(
                f"cargo build failed with exit code {result.returncode}; "
                "no packages were built.",
                returncode=result.returncode,
            )
        logger.info("Build finished", target=target or "host", package=package)
