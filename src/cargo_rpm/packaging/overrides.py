"""Precedence rules between CLI overrides and per-crate packaging options."""

from pathlib import Path
from typing import TypeVar

from ..models import Compression, PackagingOptions

T = TypeVar("T")


def first_set(*candidates: T | None) -> T | None:
    """Returns the first candidate that is not None."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def resolve_compression(
    cli_value: Compression | None, options: PackagingOptions | None
) -> Compression:
    declared = options.compression if options else None
    return first_set(cli_value, declared) or Compression.default()


def resolve_signing_key(
    cli_value: Path | str | None,
    options: PackagingOptions | None,
    crate_dir: Path,
) -> Path | None:
    if cli_value is not None:
        return Path(cli_value)
    if options is not None and options.signing_key is not None:
        return crate_dir / options.signing_key
    return None
