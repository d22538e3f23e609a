"""
Target triplet resolution and the mapping from Rust architectures to RPM ones.
"""

import re

import click
from pyvider.telemetry import logger

from .compiler import run_subprocess, rustc_executable
from .exceptions import BuildError, TargetResolutionError, UnsupportedArchError
from .models import Triplet

HOST_PATTERN = re.compile(r"^host:\s*(\S+)", re.MULTILINE)
PACKAGING_OS = "linux"

# Architectures accepted unchanged under the strict policy.
RPM_NATIVE_ARCHES = frozenset({"x86_64", "aarch64", "i386", "s390x"})
RPM_ARCH_ALIASES = {
    "powerpc64": "ppc64",
    "powerpc64le": "ppc64le",
}
ARM_ARCHES = frozenset({"armv7", "arm"})


def map_rpm_arch(triplet: Triplet, strict: bool = True) -> str:
    """
    Maps a triplet to an RPM architecture name.

    Hard-float ARM (libc ending in "hf", or no libc given) becomes `armhfp`.
    Under the strict policy only the allow-list and known aliases are
    accepted; the permissive policy passes unknown architectures through and
    maps soft-float ARM to `arm-nofp`.
    """
    arch = triplet.arch
    if arch in ARM_ARCHES:
        if triplet.libc is None or triplet.libc.endswith("hf"):
            return "armhfp"
        if strict:
            raise UnsupportedArchError(
                f"Soft-float ARM target '{triplet}' has no supported RPM architecture."
            )
        return "arm-nofp"
    if arch in RPM_ARCH_ALIASES:
        return RPM_ARCH_ALIASES[arch]
    if strict and arch not in RPM_NATIVE_ARCHES:
        raise UnsupportedArchError(
            f"Architecture '{arch}' of target '{triplet}' is not a supported RPM "
            "architecture. Use --permissive-arch to pass it through unchanged."
        )
    return arch


class TargetResolver:
    def __init__(self, rustc: str | None = None, strict: bool = True) -> None:
        self.rustc = rustc or rustc_executable()
        self.strict = strict

    def detect_host(self) -> str:
        """Extracts the host triplet from `rustc --version --verbose`."""
        try:
            report = run_subprocess([self.rustc, "--version", "--verbose"])
        except BuildError as e:
            raise TargetResolutionError(
                f"Could not autodetect the host target:\n{e}"
            ) from e

        match = HOST_PATTERN.search(report)
        if not match:
            raise TargetResolutionError(
                "Could not find a 'host:' line in the rustc version report. "
                "Pass --target explicitly."
            )
        return match.group(1)

    def resolve(self, explicit: str | None = None) -> Triplet:
        source = explicit if explicit else self.detect_host()
        triplet = Triplet.parse(source)
        logger.info(
            "Resolved target",
            triplet=str(triplet),
            source="explicit" if explicit else "host",
        )
        return triplet

    def rpm_arch(self, triplet: Triplet) -> str:
        return map_rpm_arch(triplet, strict=self.strict)

    def warn_if_foreign(self, triplet: Triplet) -> bool:
        """Reports a non-fatal warning when the target OS is not Linux."""
        if triplet.os == PACKAGING_OS:
            return False
        logger.warning("Packaging for a non-Linux target", triplet=str(triplet))
        click.secho(
            f"⚠️  You are creating packages for '{triplet.os}', not for Linux. "
            "Use --target to cross compile for a Linux target.",
            fg="yellow",
            err=True,
        )
        return True
