"""Data model for Cargo workspace metadata and assembled RPM specifications."""

from enum import Enum
from pathlib import Path
import stat
from typing import Any, Self

from attrs import define, field

from .exceptions import ManifestError, TargetResolutionError

BINARY_MODE: int = stat.S_IFREG | 0o755
BINARY_INSTALL_DIR = "/usr/bin"
METADATA_NAMESPACE = "rpm"


class Compression(str, Enum):
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    ZSTD = "zstd"
    XZ = "xz"

    @classmethod
    def default(cls) -> "Compression":
        return cls.GZIP


@define(frozen=True, slots=True)
class Triplet:
    arch: str
    vendor: str
    os: str
    libc: str | None = None

    @classmethod
    def parse(cls, text: str) -> Self:
        parts = text.strip().split("-")
        if len(parts) < 3:
            raise TargetResolutionError(
                f"Invalid target triplet '{text}': expected at least arch-vendor-os."
            )
        arch, vendor, os_name = parts[:3]
        for label, value in (("arch", arch), ("vendor", vendor), ("os", os_name)):
            if not value:
                raise TargetResolutionError(
                    f"Invalid target triplet '{text}': No {label}"
                )
        libc = "-".join(parts[3:]) if len(parts) > 3 else None
        if libc == "":
            raise TargetResolutionError(f"Invalid target triplet '{text}': empty libc")
        return cls(arch=arch, vendor=vendor, os=os_name, libc=libc)

    def __str__(self) -> str:
        triplet = f"{self.arch}-{self.vendor}-{self.os}"
        if self.libc is not None:
            triplet += f"-{self.libc}"
        return triplet


@define(frozen=True, slots=True)
class Target:
    name: str
    kind: tuple[str, ...] = field(factory=tuple, converter=tuple)

    @property
    def is_bin(self) -> bool:
        return "bin" in self.kind


@define(frozen=True, slots=True)
class Asset:
    source: str
    dest: str
    mode: str


@define(frozen=True, slots=True)
class LifecycleScripts:
    pre_install: str | None = None
    post_install: str | None = None
    pre_uninstall: str | None = None
    post_uninstall: str | None = None

    def items(self) -> list[tuple[str, str]]:
        """Returns the (slot, body) pairs that are actually declared."""
        slots = (
            ("pre_install", self.pre_install),
            ("post_install", self.post_install),
            ("pre_uninstall", self.pre_uninstall),
            ("post_uninstall", self.post_uninstall),
        )
        return [(name, body) for name, body in slots if body is not None]


def _string_list(data: dict[str, Any], key: str, where: str) -> tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(f"'{key}' in {where} must be a list of strings.")
    return tuple(value)


def _optional_string(data: dict[str, Any], key: str, where: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ManifestError(f"'{key}' in {where} must be a string.")
    return value


@define(frozen=True, slots=True)
class PackagingOptions:
    compression: Compression = field(factory=Compression.default)
    signing_key: str | None = None
    dependencies: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()
    assets: tuple[Asset, ...] = ()
    scripts: LifecycleScripts = field(factory=LifecycleScripts)

    @classmethod
    def from_dict(cls, data: dict[str, Any], package_name: str) -> Self:
        where = f"[package.metadata.{METADATA_NAMESPACE}] of crate {package_name}"
        if not isinstance(data, dict):
            raise ManifestError(f"{where} must be a table.")

        raw_compression = data.get("compression", Compression.default().value)
        try:
            compression = Compression(raw_compression)
        except ValueError as e:
            choices = ", ".join(c.value for c in Compression)
            raise ManifestError(
                f"Unknown compression '{raw_compression}' in {where}; "
                f"expected one of: {choices}."
            ) from e

        assets = []
        for raw_asset in data.get("assets") or []:
            if (
                not isinstance(raw_asset, list)
                or len(raw_asset) != 3
                or not all(isinstance(part, str) for part in raw_asset)
            ):
                raise ManifestError(
                    f"Each asset in {where} must be [source, dest, mode], "
                    f"got {raw_asset!r}."
                )
            assets.append(Asset(*raw_asset))

        return cls(
            compression=compression,
            signing_key=_optional_string(data, "signing_key", where),
            dependencies=_string_list(data, "dependencies", where),
            conflicts=_string_list(data, "conflicts", where),
            assets=tuple(assets),
            scripts=LifecycleScripts(
                pre_install=_optional_string(data, "preinstall", where),
                post_install=_optional_string(data, "postinstall", where),
                pre_uninstall=_optional_string(data, "preuninstall", where),
                post_uninstall=_optional_string(data, "postuninstall", where),
            ),
        )


@define(frozen=True, slots=True)
class Package:
    name: str
    version: str
    manifest_path: Path
    targets: tuple[Target, ...] = ()
    license: str | None = None
    description: str | None = None
    authors: tuple[str, ...] = ()
    options: PackagingOptions | None = None
    homepage: str | None = None
    repository: str | None = None

    @property
    def bin_targets(self) -> list[Target]:
        return [target for target in self.targets if target.is_bin]

    @property
    def is_eligible(self) -> bool:
        return any(target.is_bin for target in self.targets)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        if not isinstance(data, dict):
            raise ManifestError(f"Expected a package object, got {type(data).__name__}.")
        missing = [
            key for key in ("name", "version", "targets", "manifest_path") if key not in data
        ]
        if missing:
            raise ManifestError(
                f"Package entry {data.get('name', '<unnamed>')!r} is missing: "
                f"{', '.join(missing)}"
            )
        name = data["name"]
        where = f"crate {name}"

        targets = []
        for raw_target in data["targets"]:
            try:
                targets.append(Target(name=raw_target["name"], kind=raw_target["kind"]))
            except (KeyError, TypeError) as e:
                raise ManifestError(f"Malformed target in {where}: {raw_target!r}") from e

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ManifestError(f"'metadata' in {where} must be an object.")
        raw_options = metadata.get(METADATA_NAMESPACE)
        options = (
            PackagingOptions.from_dict(raw_options, name)
            if raw_options is not None
            else None
        )

        return cls(
            name=name,
            version=data["version"],
            manifest_path=Path(data["manifest_path"]),
            targets=tuple(targets),
            license=_optional_string(data, "license", where),
            description=_optional_string(data, "description", where),
            authors=_string_list(data, "authors", where),
            options=options,
            homepage=_optional_string(data, "homepage", where),
            repository=_optional_string(data, "repository", where),
        )


@define(frozen=True, slots=True)
class Manifest:
    packages: tuple[Package, ...] = ()
    workspace_root: Path | None = None

    @classmethod
    def from_metadata(cls, data: dict[str, Any]) -> Self:
        if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
            raise ManifestError("Cargo metadata does not contain a 'packages' list.")
        root = data.get("workspace_root")
        return cls(
            packages=tuple(Package.from_dict(p) for p in data["packages"]),
            workspace_root=Path(root) if root else None,
        )

    def crate_dir(self, package: Package) -> Path:
        """The directory that build outputs and relative asset paths hang off."""
        if self.workspace_root is not None:
            return self.workspace_root
        return package.manifest_path.parent


@define(frozen=True, slots=True)
class PackagingSettings:
    """Command-line overrides for a packaging run."""

    compression: Compression | None = None
    package: str | None = None
    target: str | None = None
    signing_key: Path | None = None
    cargo_args: tuple[str, ...] = field(factory=tuple, converter=tuple)
    strict_arch: bool = True
    verify: bool = False


@define(frozen=True, slots=True)
class FileEntry:
    source: Path
    dest: str
    mode: int


@define(frozen=True, slots=True)
class PackageSpec:
    name: str
    version: str
    license: str
    description: str
    arch: str
    compression: Compression
    output_path: Path
    vendor: str | None = None
    url: str | None = None
    vcs: str | None = None
    files: tuple[FileEntry, ...] = ()
    requires: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()
    scripts: LifecycleScripts = field(factory=LifecycleScripts)
    signing_key: bytes | None = field(default=None, repr=False)

    @property
    def is_signed(self) -> bool:
        return self.signing_key is not None

    @property
    def file_name(self) -> str:
        return self.output_path.name
