"""File type detection for bundled assets."""

import os
from pathlib import Path
import stat

from .exceptions import InvalidFileTypeError, ManifestError, PackagingIOError


def parse_permission(text: str) -> int:
    """Parses an octal permission string such as "644", "0755" or "0o755"."""
    digits = text.strip()
    if digits.lower().startswith("0o"):
        digits = digits[2:]
    try:
        mode = int(digits, 8)
    except ValueError as e:
        raise ManifestError(f"Invalid octal permission string '{text}'.") from e
    if mode < 0 or mode > 0o7777:
        raise ManifestError(f"Permission '{text}' is out of range (max 7777).")
    return mode


def resolve_mode(permission: str | int, path: Path) -> int:
    """
    Combines the requested permission bits with the type bits of the entry
    at `path`. Symlinks are not followed.
    """
    mode = parse_permission(permission) if isinstance(permission, str) else permission
    try:
        st_mode = os.lstat(path).st_mode
    except OSError as e:
        raise PackagingIOError(f"Cannot stat asset '{path}': {e}") from e

    if stat.S_ISREG(st_mode):
        return stat.S_IFREG | mode
    if stat.S_ISDIR(st_mode):
        return stat.S_IFDIR | mode
    if stat.S_ISLNK(st_mode):
        return stat.S_IFLNK | mode
    raise InvalidFileTypeError(path)
