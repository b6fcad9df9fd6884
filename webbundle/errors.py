"""
Exceptions raised by the release pipeline.

Every failure is fatal: stages raise one of these and the pipeline stops.
"""

from pathlib import Path
from typing import List, Optional, Union


class ReleaseError(Exception):
    """Base class for all release failures."""

    stage: Optional[str] = None

    def __init__(self, message: str, stage: Optional[str] = None):
        if stage is not None:
            self.stage = stage
        super().__init__(message)


class ConfigError(ReleaseError):
    """Raised when the release configuration is missing, unreadable or invalid."""

    stage = 'config'

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        self.errors = errors or []
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class ToolNotFoundError(ReleaseError):
    """Raised when an external tool (cargo, wasm-bindgen) is not on PATH."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"{tool} not found on PATH")


class ToolFailedError(ReleaseError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, tool: str, returncode: int):
        self.tool = tool
        self.returncode = returncode
        super().__init__(f"{tool} exited with status {returncode}")


class CompileError(ReleaseError):
    """Compile failure: source, dependency or toolchain error in the compiler stage."""

    stage = 'compile'

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class BindingGenerationError(ReleaseError):
    """Binding generation failure: bad artifact, missing outputs or missing generator."""

    stage = 'bindgen'

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class AssetEnumerationError(ReleaseError):
    """The asset tree, or an entry inside it, could not be read."""

    stage = 'archive'

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class ArchiveWriteError(ReleaseError):
    """The distribution archive could not be assembled or written."""

    stage = 'archive'

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)
