from pathlib import Path


class BuildError(Exception):
    pass


class ManifestError(BuildError):
    pass


class TargetResolutionError(BuildError):
    pass


class UnsupportedArchError(BuildError):
    pass


class BuildFailureError(BuildError):
    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class MissingFieldError(BuildError):
    def __init__(self, package: str, field: str) -> None:
        super().__init__(f"Missing {field} in crate {package}")
        self.package = package
        self.field = field


class InvalidFileTypeError(BuildError):
    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Invalid file type for asset '{path}': expected a regular file, "
            "directory or symlink."
        )
        self.path = path


class PackagingIOError(BuildError):
    pass


class SigningError(BuildError):
    pass


class VerificationError(Exception):
    pass


class InvalidPackageError(VerificationError):
    pass
