"""The `cargo-rpm` command-line interface."""

import importlib.metadata
from pathlib import Path

import click

from .exceptions import BuildError, InvalidPackageError
from .models import Compression, PackagingSettings
from .packaging.orchestrator import BuildOrchestrator
from .packaging.reader import RpmReader

try:
    __version__ = importlib.metadata.version("cargo-rpm-builder")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"


def _describe(error: BaseException) -> str:
    notes = getattr(error, "__notes__", [])
    return "\n".join([str(error), *notes])


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__,
    "-V",
    "--version",
    prog_name="cargo-rpm",
    message="%(prog)s version %(version)s",
)
def cli() -> None:
    """Builds Cargo workspace binaries into RPM packages."""
    pass


@cli.command("package")
@click.option(
    "--compression",
    type=click.Choice([c.value for c in Compression]),
    default=None,
    help="Compression algorithm to use. Overrides [package.metadata.rpm].",
)
@click.option("-p", "--package", help="Workspace member name to build.")
@click.option("--target", help="Target triple to build for.")
@click.option(
    "-k",
    "--signing-key",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Signing key to use. Overrides [package.metadata.rpm].",
)
@click.option(
    "--permissive-arch",
    is_flag=True,
    help="Pass unknown architectures through instead of rejecting them.",
)
@click.option(
    "--verify",
    "verify_output",
    is_flag=True,
    help="Read back each written package and check its lead.",
)
@click.argument("cargo_args", nargs=-1, type=click.UNPROCESSED)
def package_command(
    compression: str | None,
    package: str | None,
    target: str | None,
    signing_key: str | None,
    permissive_arch: bool,
    verify_output: bool,
    cargo_args: tuple[str, ...],
) -> None:
    """Builds the workspace in release mode and packages each binary crate.

    Arguments after `--` are passed to `cargo build` unchanged.
    """
    settings = PackagingSettings(
        compression=Compression(compression) if compression else None,
        package=package,
        target=target,
        signing_key=Path(signing_key) if signing_key else None,
        cargo_args=cargo_args,
        strict_arch=not permissive_arch,
        verify=verify_output,
    )
    click.echo("🚀 Building and packaging crates...")
    try:
        written = BuildOrchestrator(settings).run()
    except (BuildError, InvalidPackageError) as e:
        click.secho(f"❌ Packaging Failed:\n{_describe(e)}", fg="red", err=True)
        raise click.Abort() from e

    if not written:
        click.secho("ℹ️ No crates with bin targets to package.", fg="yellow")
        return
    for path in written:
        click.secho(f"✅ Package built successfully: {path}", fg="green")


@cli.command("verify")
@click.argument(
    "package_file",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
)
def verify_command(package_file: str) -> None:
    """Checks that a file carries a valid RPM lead and signature header."""
    click.echo(f"🔍 Verifying package '{package_file}'...")
    try:
        reader = RpmReader(Path(package_file))
    except InvalidPackageError as e:
        click.secho(f"❌ Verification failed: {e}", fg="red", err=True)
        raise click.Abort() from e
    click.echo(reader.get_info())
    click.secho("✅ RPM lead verified.", fg="green")


main = cli
