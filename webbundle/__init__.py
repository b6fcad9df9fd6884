"""
webbundle - release packaging for Rust/WebAssembly browser games.

Builds the crate for wasm32, generates web bindings with wasm-bindgen and
zips them with the static assets and index.html.

Modules:
    config.py - Release configuration models and loading
    yaml.py - YAML/JSON config file loader with schema validation
    toolchain.py - External tool invocation
    stages/ - Compiler, binding generator and archiver stages
    pipeline.py - The release operation
    cli.py - Command line entry point
"""

from webbundle.config import ReleaseConfig, load_config
from webbundle.errors import (
    ArchiveWriteError,
    AssetEnumerationError,
    BindingGenerationError,
    CompileError,
    ConfigError,
    ReleaseError,
)
from webbundle.pipeline import ReleaseResult, release

__version__ = "0.1.0"

__all__ = [
    "ReleaseConfig",
    "load_config",
    "release",
    "ReleaseResult",
    "ReleaseError",
    "ConfigError",
    "CompileError",
    "BindingGenerationError",
    "AssetEnumerationError",
    "ArchiveWriteError",
]
