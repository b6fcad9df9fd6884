"""
Release pipeline stages.

Each stage consumes the previous stage's files and raises a ReleaseError
subclass on failure.
"""

from .base import BindingPair, Stage, StageResult
from .compiler import CompilerStage
from .bindgen import BindgenStage
from .archiver import ArchiverStage, AssetEntry, iter_asset_files

__all__ = [
    "BindingPair",
    "Stage",
    "StageResult",
    "CompilerStage",
    "BindgenStage",
    "ArchiverStage",
    "AssetEntry",
    "iter_asset_files",
]
