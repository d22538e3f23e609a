"""Reads the workspace build graph from `cargo metadata`."""

import json
from pathlib import Path

from pyvider.telemetry import logger

from .compiler import cargo_executable, run_subprocess
from .exceptions import BuildError, ManifestError
from .models import Manifest


class ManifestReader:
    def __init__(self, cargo: str | None = None, cwd: Path | None = None) -> None:
        self.cargo = cargo or cargo_executable()
        self.cwd = cwd

    def command(self) -> list[str]:
        return [self.cargo, "metadata", "--no-deps", "--format-version", "1"]

    def read(self) -> Manifest:
        try:
            output = run_subprocess(self.command(), cwd=self.cwd)
        except BuildError as e:
            raise ManifestError(f"Failed to query cargo metadata:\n{e}") from e
        return self.parse(output)

    @staticmethod
    def parse(output: str) -> Manifest:
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise ManifestError(f"cargo metadata returned invalid JSON: {e}") from e

        manifest = Manifest.from_metadata(data)
        logger.debug(
            "Read workspace manifest",
            packages=[p.name for p in manifest.packages],
            workspace_root=str(manifest.workspace_root),
        )
        return manifest
