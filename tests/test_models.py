"""Tests for the workspace and triplet data model."""

from pathlib import Path

import pytest

from cargo_rpm.exceptions import ManifestError, TargetResolutionError
from cargo_rpm.models import (
    Asset,
    Compression,
    Manifest,
    Package,
    PackagingOptions,
    Triplet,
)


def test_triplet_parse_four_segments() -> None:
    triplet = Triplet.parse("x86_64-unknown-linux-gnu")
    assert triplet.arch == "x86_64"
    assert triplet.vendor == "unknown"
    assert triplet.os == "linux"
    assert triplet.libc == "gnu"
    assert str(triplet) == "x86_64-unknown-linux-gnu"


def test_triplet_parse_three_segments() -> None:
    triplet = Triplet.parse("aarch64-apple-darwin")
    assert triplet.libc is None
    assert str(triplet) == "aarch64-apple-darwin"


@pytest.mark.parametrize("text", ["x86_64-linux", "x86_64", "", "x86_64--linux"])
def test_triplet_parse_rejects_malformed(text: str) -> None:
    with pytest.raises(TargetResolutionError, match="Invalid target triplet"):
        Triplet.parse(text)


def test_package_eligibility(make_package) -> None:
    eligible = Package.from_dict(make_package("hello"))
    library = Package.from_dict(make_package("core", bins=[], kinds=[["lib"]]))

    assert eligible.is_eligible
    assert [t.name for t in eligible.bin_targets] == ["hello"]
    assert not library.is_eligible


def test_package_missing_required_keys() -> None:
    with pytest.raises(ManifestError, match="missing: version, targets, manifest_path"):
        Package.from_dict({"name": "broken"})


def test_packaging_options_defaults() -> None:
    options = PackagingOptions.from_dict({}, "hello")
    assert options.compression is Compression.GZIP
    assert options.assets == ()
    assert options.scripts.items() == []


def test_packaging_options_full() -> None:
    options = PackagingOptions.from_dict(
        {
            "compression": "zstd",
            "signing_key": "keys/key.asc",
            "dependencies": ["glibc"],
            "conflicts": ["hello-old"],
            "assets": [["README.md", "/usr/share/doc/hello/README.md", "644"]],
            "preinstall": "echo pre",
            "postuninstall": "echo bye",
        },
        "hello",
    )
    assert options.compression is Compression.ZSTD
    assert options.signing_key == "keys/key.asc"
    assert options.dependencies == ("glibc",)
    assert options.conflicts == ("hello-old",)
    assert options.assets == (Asset("README.md", "/usr/share/doc/hello/README.md", "644"),)
    assert options.scripts.items() == [
        ("pre_install", "echo pre"),
        ("post_uninstall", "echo bye"),
    ]


def test_packaging_options_unknown_compression() -> None:
    with pytest.raises(ManifestError, match="Unknown compression 'lz4'"):
        PackagingOptions.from_dict({"compression": "lz4"}, "hello")


def test_packaging_options_bzip2_compression() -> None:
    options = PackagingOptions.from_dict({"compression": "bzip2"}, "hello")
    assert options.compression is Compression.BZIP2


def test_packaging_options_malformed_asset() -> None:
    with pytest.raises(ManifestError, match=r"must be \[source, dest, mode\]"):
        PackagingOptions.from_dict({"assets": [["only", "two"]]}, "hello")


def test_crate_dir_prefers_workspace_root(make_package, workspace_root: Path) -> None:
    entry = make_package("hello")
    with_root = Manifest.from_metadata(
        {"packages": [entry], "workspace_root": str(workspace_root)}
    )
    without_root = Manifest.from_metadata({"packages": [entry]})
    package = with_root.packages[0]

    assert with_root.crate_dir(package) == workspace_root
    assert without_root.crate_dir(package) == workspace_root / "hello"


def test_manifest_requires_packages_list() -> None:
    with pytest.raises(ManifestError, match="'packages' list"):
        Manifest.from_metadata({"workspace_root": "/tmp"})
