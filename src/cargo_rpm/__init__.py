"""
This package builds the binary crates of a Cargo workspace and packages each
of them as an RPM, driving cargo, rustc and rpmbuild.
"""

from .models import Compression, PackageSpec, PackagingSettings, Triplet
from .packaging.orchestrator import BuildOrchestrator
from .target import map_rpm_arch

__all__ = [
    "BuildOrchestrator",
    "Compression",
    "PackageSpec",
    "PackagingSettings",
    "Triplet",
    "map_rpm_arch",
]
