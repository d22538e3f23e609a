"""Core logic for building a workspace and packaging each eligible crate."""

from pathlib import Path

from pyvider.telemetry import logger

from ..compiler import BuildInvoker
from ..exceptions import BuildError, InvalidPackageError, PackagingIOError
from ..manifest import ManifestReader
from ..models import PackagingSettings
from ..target import TargetResolver
from .reader import RpmReader
from .spec_builder import PackageSpecBuilder, select_packages
from .writer import PackageWriter


class BuildOrchestrator:
    """
    Runs the pipeline: read metadata, resolve the target, build, then package
    every eligible crate. The first error for any crate aborts the whole run;
    packages written before it are left in place.
    """

    def __init__(
        self,
        settings: PackagingSettings,
        manifest_reader: ManifestReader | None = None,
        target_resolver: TargetResolver | None = None,
        build_invoker: BuildInvoker | None = None,
        writer: PackageWriter | None = None,
    ) -> None:
        self.settings = settings
        self.manifest_reader = manifest_reader or ManifestReader()
        self.target_resolver = target_resolver or TargetResolver(
            strict=settings.strict_arch
        )
        self.build_invoker = build_invoker or BuildInvoker()
        self.writer = writer or PackageWriter()

    def run(self) -> list[Path]:
        logger.info("Orchestrator starting build-then-package run...")
        settings = self.settings

        manifest = self.manifest_reader.read()
        triplet = self.target_resolver.resolve(settings.target)
        self.target_resolver.warn_if_foreign(triplet)
        rpm_arch = self.target_resolver.rpm_arch(triplet)

        self.build_invoker.build(
            target=settings.target,
            package=settings.package,
            extra_args=settings.cargo_args,
        )

        builder = PackageSpecBuilder(manifest, rpm_arch, settings)
        written: list[Path] = []
        for package in select_packages(manifest, settings.package):
            logger.info("Packaging crate", package=package.name, version=package.version)
            try:
                spec = builder.build(package)
                output_path = self.writer.write(spec)
                if settings.verify:
                    RpmReader(output_path)
            except OSError as e:
                raise PackagingIOError(f"Packaging crate {package.name} failed: {e}") from e
            except (BuildError, InvalidPackageError) as e:
                e.add_note(f"while packaging crate {package.name}")
                logger.error("Packaging failed", package=package.name, error=str(e))
                raise
            written.append(output_path)

        if not written:
            logger.warning("No crates with bin targets matched", package=settings.package)
        return written
