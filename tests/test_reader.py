"""Tests for the RPM lead reader."""

from pathlib import Path
import struct

import pytest

from cargo_rpm.exceptions import InvalidPackageError
from cargo_rpm.packaging.reader import (
    LEAD_STRUCT_FORMAT,
    RPM_HEADER_MAGIC,
    RPM_LEAD_MAGIC,
    RpmReader,
)


def _lead(name: bytes = b"hello-1.0.0-1", magic: bytes = RPM_LEAD_MAGIC) -> bytes:
    return struct.pack(LEAD_STRUCT_FORMAT, magic, 3, 0, 0, 1, name, 1, 5)


def test_reader_valid_package(tmp_path: Path) -> None:
    package = tmp_path / "hello-1.0.0.x86_64.rpm"
    package.write_bytes(_lead() + RPM_HEADER_MAGIC + b"\x00" * 32)

    reader = RpmReader(package)

    assert reader.lead.name == "hello-1.0.0-1"
    assert reader.lead.major == 3
    info = reader.get_info()
    assert "Format Version: 3.0" in info
    assert "Type: binary" in info


def test_reader_file_not_found() -> None:
    with pytest.raises(FileNotFoundError):
        RpmReader(Path("/tmp/non-existent-rpm-file.rpm"))


def test_reader_invalid_lead_magic(tmp_path: Path) -> None:
    bad_file = tmp_path / "bad.rpm"
    bad_file.write_bytes(_lead(magic=b"PK\x03\x04") + RPM_HEADER_MAGIC)
    with pytest.raises(InvalidPackageError, match="Invalid RPM lead magic"):
        RpmReader(bad_file)


def test_reader_missing_signature_header(tmp_path: Path) -> None:
    bad_file = tmp_path / "bad.rpm"
    bad_file.write_bytes(_lead() + b"\x00\x00\x00\x00")
    with pytest.raises(InvalidPackageError, match="signature header magic"):
        RpmReader(bad_file)


def test_reader_short_file(tmp_path: Path) -> None:
    bad_file = tmp_path / "bad.rpm"
    bad_file.write_bytes(b"this is not a valid file")
    with pytest.raises(InvalidPackageError, match="too short"):
        RpmReader(bad_file)
