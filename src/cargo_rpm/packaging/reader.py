"""Python-based reader for the RPM lead and signature header magic."""

from pathlib import Path
import struct

from attrs import define

from ..exceptions import InvalidPackageError

RPM_LEAD_MAGIC = b"\xed\xab\xee\xdb"
RPM_HEADER_MAGIC = b"\x8e\xad\xe8\x01"

# magic, major, minor, type, archnum, name, osnum, signature_type, reserved
LEAD_STRUCT_FORMAT = ">4sBBhh66shh16x"
LEAD_SIZE = struct.calcsize(LEAD_STRUCT_FORMAT)

if LEAD_SIZE != 96:
    raise AssertionError(f"Calculated RPM lead size is {LEAD_SIZE}, expected 96.")

PACKAGE_TYPES = {0: "binary", 1: "source"}


@define(frozen=True, slots=True)
class RpmLead:
    major: int
    minor: int
    package_type: int
    archnum: int
    name: str
    osnum: int
    signature_type: int


class RpmReader:
    """Reads and checks the lead of an RPM file."""

    def __init__(self, package_path: Path) -> None:
        if not package_path.is_file():
            raise FileNotFoundError(f"Package not found at: {package_path}")
        self.package_path = package_path
        self.lead = self._read_and_verify_lead()

    def _read_and_verify_lead(self) -> RpmLead:
        with self.package_path.open("rb") as f:
            lead_bytes = f.read(LEAD_SIZE)
            header_magic = f.read(len(RPM_HEADER_MAGIC))

        if len(lead_bytes) != LEAD_SIZE:
            raise InvalidPackageError(
                f"File is too short for an RPM lead ({len(lead_bytes)} bytes)."
            )
        magic, major, minor, package_type, archnum, raw_name, osnum, sig_type = (
            struct.unpack(LEAD_STRUCT_FORMAT, lead_bytes)
        )
        if magic != RPM_LEAD_MAGIC:
            raise InvalidPackageError(f"Invalid RPM lead magic. Found {magic!r}.")
        if header_magic != RPM_HEADER_MAGIC:
            raise InvalidPackageError(
                f"Invalid RPM signature header magic. Found {header_magic!r}."
            )

        return RpmLead(
            major=major,
            minor=minor,
            package_type=package_type,
            archnum=archnum,
            name=raw_name.split(b"\x00", 1)[0].decode("utf-8", errors="replace"),
            osnum=osnum,
            signature_type=sig_type,
        )

    def get_info(self) -> str:
        """Returns a human-readable string of the package information."""
        lead = self.lead
        return (
            f"RPM Package Information (parsed by Python):\n"
            f"  Format Version: {lead.major}.{lead.minor}\n"
            f"  Type: {PACKAGE_TYPES.get(lead.package_type, lead.package_type)}\n"
            f"  Name: {lead.name}\n"
            f"  Size: {self.package_path.stat().st_size} bytes"
        )
