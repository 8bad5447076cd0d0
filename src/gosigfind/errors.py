"""Domain-specific errors for gosigfind."""

from __future__ import annotations


class GoSigFindError(Exception):
    """Base error for gosigfind."""


class ToolchainError(GoSigFindError):
    """Raised when the Go toolchain is missing or a `go` command fails."""


class ToolchainNotFoundError(ToolchainError):
    """Raised when the `go` command cannot be found."""


class PackageError(GoSigFindError):
    """Raised when a single package cannot be turned into a scope.

    These are non-fatal: callers collect them and keep going with the
    remaining packages.
    """

    verb = "parse"

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"Couldn't {self.verb} {path}: {message}")


class ImportPathError(PackageError):
    """Raised when an import path cannot be located by the build system."""

    verb = "import"


class NoSourceFilesError(PackageError):
    """Raised when a package has no plain (non cgo) Go source files."""

    def __init__(self, path: str, message: str = "No (non cgo) Go files") -> None:
        super().__init__(path, message)


class ParseError(PackageError):
    """Raised when a Go source file of a package fails to parse."""


class TypeCheckError(PackageError):
    """Raised when type-checking a package's file set fails."""
