"""Error taxonomy shared by every pipeline stage."""

from __future__ import annotations

from typing import Iterable, Optional


class IACAError(RuntimeError):
    """Base class for all classified analysis failures."""


class UnsupportedArchitecture(IACAError):
    """Raised when the requested architecture tag is not supported."""

    def __init__(self, tag: object, supported: Iterable[str] = ()) -> None:
        self.tag = tag
        self.supported = tuple(supported)
        choices = ", ".join(self.supported) or "none"
        super().__init__(f"architecture {tag!r} not supported (choose from {choices})")


class NotSpecializable(IACAError):
    """Raised when the analysed object cannot be specialised by the JIT."""


class NoApplicableMethod(IACAError):
    """Raised when no implementation accepts the requested argument types."""


class IRGenerationFailed(IACAError):
    """Raised when the compiler produced no usable IR."""


class NoWrapperFound(IACAError):
    """Raised when the raw module holds no calling-convention wrapper."""


class AmbiguousWrapper(IACAError):
    """Raised when more than one definition looks like a wrapper."""


class UnparsableName(IACAError):
    """Raised when a wrapper name does not follow the mangling convention."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"cannot extract entry tag from wrapper name {name!r}")


class LinkConflict(IACAError):
    """Raised when a dependency module cannot be linked into the main module."""


class EmissionFailed(IACAError):
    """Raised when lowering the module to an object file fails."""


class ExecutableNotFound(IACAError):
    """Raised when the analyzer executable cannot be located."""


class AnalyzerFailed(IACAError):
    """Raised when the analyzer exits with a non-zero status."""

    def __init__(self, returncode: int, output: Optional[str] = None) -> None:
        self.returncode = returncode
        self.output = output or ""
        message = f"analyzer exited with status {returncode}"
        if self.output.strip():
            message += f": {self.output.strip().splitlines()[-1]}"
        super().__init__(message)


__all__ = [
    "IACAError",
    "UnsupportedArchitecture",
    "NotSpecializable",
    "NoApplicableMethod",
    "IRGenerationFailed",
    "NoWrapperFound",
    "AmbiguousWrapper",
    "UnparsableName",
    "LinkConflict",
    "EmissionFailed",
    "ExecutableNotFound",
    "AnalyzerFailed",
]
