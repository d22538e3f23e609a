"""Serializes package specifications to RPM files by driving rpmbuild."""

import os
from pathlib import Path
import posixpath
import shlex
import shutil
import stat
import tempfile

from pyvider.telemetry import logger

from ..compiler import ensure_tool, run_subprocess
from ..crypto import sign_package
from ..exceptions import BuildError, PackagingIOError
from ..models import Compression, FileEntry, PackageSpec

RPM_RELEASE = "1"
BUILD_ROOT = '"$RPM_BUILD_ROOT"'
RPM_SCRIPT_SECTIONS = {
    "pre_install": "%pre",
    "post_install": "%post",
    "pre_uninstall": "%preun",
    "post_uninstall": "%postun",
}
PAYLOAD_MACROS = {
    Compression.NONE: "w0.ufdio",
    Compression.GZIP: "w9.gzdio",
    Compression.BZIP2: "w9.bzdio",
    Compression.ZSTD: "w19.zstdio",
    Compression.XZ: "w6.xzdio",
}


def escape_macros(text: str) -> str:
    return text.replace("%", "%%")


def rpm_version(version: str) -> str:
    """Cargo pre-release versions use `-`, which RPM reserves; `~` sorts the same way."""
    return version.replace("-", "~")


def _tag_value(text: str) -> str:
    return escape_macros(" ".join(text.split()))


def install_commands(entry: FileEntry) -> list[str]:
    """Shell lines for the `%install` section that place one file entry."""
    permissions = stat.S_IMODE(entry.mode)
    file_type = stat.S_IFMT(entry.mode)
    dest = BUILD_ROOT + shlex.quote(entry.dest)
    parent = BUILD_ROOT + shlex.quote(posixpath.dirname(entry.dest) or "/")
    source = shlex.quote(str(entry.source))

    if file_type == stat.S_IFLNK:
        link_target = shlex.quote(os.readlink(entry.source))
        commands = [f"mkdir -p {parent}", f"ln -s {link_target} {dest}"]
    elif file_type == stat.S_IFDIR:
        commands = [
            f"mkdir -p {parent}",
            f"cp -R {source} {dest}",
            f"chmod {permissions:04o} {dest}",
        ]
    else:
        commands = [f"install -D -m {permissions:04o} {source} {dest}"]
    return [escape_macros(command) for command in commands]


def files_line(entry: FileEntry) -> str:
    """The `%files` line for one entry. Directory modes apply to the whole tree."""
    path = escape_macros(f'"{entry.dest}"')
    if stat.S_IFMT(entry.mode) == stat.S_IFLNK:
        return path
    return f"%attr({stat.S_IMODE(entry.mode):04o},root,root) {path}"


def render_spec_file(spec: PackageSpec) -> str:
    """Renders the rpmbuild spec file that packages `spec`'s prebuilt files."""
    summary = spec.description.strip().splitlines()[0] if spec.description.strip() else spec.name
    lines = [
        f"Name: {_tag_value(spec.name)}",
        f"Version: {_tag_value(rpm_version(spec.version))}",
        f"Release: {RPM_RELEASE}",
        f"Summary: {_tag_value(summary)}",
        f"License: {_tag_value(spec.license)}",
    ]
    if spec.url:
        lines.append(f"URL: {_tag_value(spec.url)}")
    if spec.vcs:
        lines.append(f"VCS: {_tag_value(spec.vcs)}")
    if spec.vendor:
        lines.append(f"Vendor: {_tag_value(spec.vendor)}")
    lines.extend(f"Requires: {_tag_value(name)}" for name in spec.requires)
    lines.extend(f"Conflicts: {_tag_value(name)}" for name in spec.conflicts)
    # Binaries are prebuilt; no dependency scanning.
    lines.append("AutoReqProv: no")

    lines += ["", "%description", escape_macros(spec.description.strip()), "", "%install"]
    for entry in spec.files:
        lines.extend(install_commands(entry))

    lines += ["", "%files"]
    lines.extend(files_line(entry) for entry in spec.files)

    for slot, body in spec.scripts.items():
        lines += ["", RPM_SCRIPT_SECTIONS[slot], escape_macros(body.rstrip("\n"))]

    return "\n".join(lines) + "\n"


class PackageWriter:
    def __init__(self, rpmbuild: str | None = None) -> None:
        self.rpmbuild = rpmbuild

    def build_command(self, spec: PackageSpec, spec_path: Path, workdir: Path) -> list[str]:
        rpmbuild = self.rpmbuild or ensure_tool("rpmbuild", "RPMBUILD")
        return [
            rpmbuild, "-bb", "--quiet",
            "--target", spec.arch,
            "--define", f"_topdir {workdir}",
            "--define", f"_rpmdir {workdir / 'RPMS'}",
            "--define", f"_build_name_fmt {spec.file_name}",
            "--define", f"_binary_payload {PAYLOAD_MACROS[spec.compression]}",
            "--define", "__os_install_post %{nil}",
            "--define", "debug_package %{nil}",
            "--define", "_build_id_links none",
            str(spec_path),
        ]

    def write(self, spec: PackageSpec) -> Path:
        with tempfile.TemporaryDirectory(
            prefix="cargo_rpm_", ignore_cleanup_errors=True
        ) as temp_dir_str:
            workdir = Path(temp_dir_str)
            spec_path = workdir / f"{spec.name}.spec"
            spec_path.write_text(render_spec_file(spec))
            staged_path = workdir / "RPMS" / spec.file_name

            try:
                run_subprocess(self.build_command(spec, spec_path, workdir), cwd=workdir)
            except BuildError as e:
                raise PackagingIOError(
                    f"Writing package for crate {spec.name} failed:\n{e}"
                ) from e
            if not staged_path.is_file():
                raise PackagingIOError(
                    f"rpmbuild succeeded but wrote no '{spec.file_name}' for crate {spec.name}."
                )

            if spec.signing_key is not None:
                sign_package(staged_path, spec.signing_key, workdir)

            try:
                spec.output_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(staged_path, spec.output_path)
            except OSError as e:
                raise PackagingIOError(
                    f"Could not write '{spec.output_path}' for crate {spec.name}: {e}"
                ) from e

        logger.info(
            "Wrote package",
            package=spec.name,
            path=str(spec.output_path),
            signed=spec.is_signed,
        )
        return spec.output_path
