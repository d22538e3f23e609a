"""Assembles a complete RPM specification for each eligible workspace member."""

from collections.abc import Iterator
from pathlib import Path

from pyvider.telemetry import logger

from ..assets import resolve_mode
from ..crypto import load_signing_key
from ..exceptions import MissingFieldError, PackagingIOError
from ..models import (
    BINARY_INSTALL_DIR,
    BINARY_MODE,
    FileEntry,
    LifecycleScripts,
    Manifest,
    Package,
    PackageSpec,
    PackagingSettings,
)
from .overrides import resolve_compression, resolve_signing_key

RPM_EXTENSION = "rpm"


def select_packages(manifest: Manifest, package_filter: str | None) -> Iterator[Package]:
    """Yields members that have a bin target and match the optional name filter."""
    for package in manifest.packages:
        if package_filter is not None and package.name != package_filter:
            continue
        if not package.is_eligible:
            logger.debug("Skipping crate without bin targets", package=package.name)
            continue
        yield package


def output_file_name(package: Package, arch: str) -> str:
    return f"{package.name}-{package.version}.{arch}.{RPM_EXTENSION}"


class PackageSpecBuilder:
    def __init__(
        self,
        manifest: Manifest,
        rpm_arch: str,
        settings: PackagingSettings,
    ) -> None:
        self.manifest = manifest
        self.rpm_arch = rpm_arch
        self.settings = settings

    def release_dir(self, crate_dir: Path) -> Path:
        # Cargo only nests outputs under the triplet when --target was passed.
        return crate_dir / "target" / (self.settings.target or "") / "release"

    def build(self, package: Package) -> PackageSpec:
        crate_dir = self.manifest.crate_dir(package)
        release_dir = self.release_dir(crate_dir)
        rpm_dir = release_dir.parent / RPM_EXTENSION
        try:
            rpm_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PackagingIOError(
                f"Could not create output directory '{rpm_dir}' for crate "
                f"{package.name}: {e}"
            ) from e

        options = package.options
        if package.license is None:
            raise MissingFieldError(package.name, "license")
        if package.description is None:
            raise MissingFieldError(package.name, "description")

        files = [self._binary_entry(package, release_dir, t.name) for t in package.bin_targets]
        if options is not None:
            for asset in options.assets:
                source = crate_dir / asset.source
                files.append(
                    FileEntry(
                        source=source,
                        dest=asset.dest,
                        mode=resolve_mode(asset.mode, source),
                    )
                )

        key_path = resolve_signing_key(self.settings.signing_key, options, crate_dir)
        signing_key = load_signing_key(key_path) if key_path is not None else None

        spec = PackageSpec(
            name=package.name,
            version=package.version,
            license=package.license,
            description=package.description,
            arch=self.rpm_arch,
            compression=resolve_compression(self.settings.compression, options),
            output_path=rpm_dir / output_file_name(package, self.rpm_arch),
            vendor=", ".join(package.authors) if package.authors else None,
            url=package.homepage,
            vcs=f"git:{package.repository}" if package.repository else None,
            files=tuple(files),
            requires=options.dependencies if options else (),
            conflicts=options.conflicts if options else (),
            scripts=options.scripts if options else LifecycleScripts(),
            signing_key=signing_key,
        )
        logger.info(
            "Assembled package specification",
            package=spec.name,
            arch=spec.arch,
            files=len(spec.files),
            signed=spec.is_signed,
        )
        return spec

    @staticmethod
    def _binary_entry(package: Package, release_dir: Path, target_name: str) -> FileEntry:
        binary = release_dir / target_name
        if not binary.is_file():
            raise PackagingIOError(
                f"Built binary '{binary}' for crate {package.name} does not exist."
            )
        return FileEntry(
            source=binary,
            dest=f"{BINARY_INSTALL_DIR}/{target_name}",
            mode=BINARY_MODE,
        )
