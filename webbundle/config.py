"""
Configuration models for the release pipeline.

Defaults reproduce the plain release recipe:

    cargo build --release --target wasm32-unknown-unknown
    wasm-bindgen --no-typescript --target web --out-dir . --out-name <name> <artifact>
    zip game.zip <assets/**> index.html <name>_bg.wasm <name>.js

A ``release.yaml`` (or ``release.json``) next to the crate overrides them.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from webbundle import yaml as config_loader
from webbundle.errors import ConfigError
from webbundle.logging import get_logger

log = get_logger('config')

DEFAULT_NAME = "bevy_simon"
WASM_TARGET = "wasm32-unknown-unknown"
CONFIG_FILENAMES = ("release.yaml", "release.yml", "release.json")


class BuildProfile(str, Enum):
    """Cargo build profiles."""
    RELEASE = "release"
    DEBUG = "debug"


class CompilerOptions(BaseModel):
    """Options for the cargo build step."""

    target: str = Field(default=WASM_TARGET, min_length=1, description="Target triple passed to cargo")
    profile: BuildProfile = Field(default=BuildProfile.RELEASE, description="Optimization profile")
    locked: bool = Field(default=False, description="Pass --locked so Cargo.lock must be up to date")
    features: List[str] = Field(default_factory=list, description="Cargo features to enable")
    target_dir: Optional[Path] = Field(
        default=None,
        description="Cargo target directory (default: <project_dir>/target)"
    )


class BindgenOptions(BaseModel):
    """Options for wasm-bindgen."""

    out_dir: Path = Field(default=Path("."), description="Directory the binding pair is written to")
    out_name: Optional[str] = Field(
        default=None,
        description="Base name of the binding pair (default: artifact name)"
    )
    typescript: bool = Field(default=False, description="Also emit .d.ts declaration files")

    @field_validator('out_name')
    @classmethod
    def validate_out_name(cls, v):
        if v is not None and (not v or '/' in v or '\\' in v):
            raise ValueError("out_name must be a bare file name")
        return v


class ArchiveOptions(BaseModel):
    """Options for the distribution archive."""

    path: Path = Field(default=Path("game.zip"), description="Archive to write")
    assets_dir: Path = Field(default=Path("assets"), description="Asset tree root")
    index_html: Path = Field(default=Path("index.html"), description="Entry-point document")
    compresslevel: int = Field(default=9, ge=0, le=9, description="Deflate level (0-9)")
    follow_symlinks: bool = Field(
        default=True,
        description="Archive symlinks that resolve to regular files (directories are never followed)"
    )
    include_hidden: bool = Field(default=True, description="Include dot-files and dot-directories")
    exclude: List[str] = Field(default_factory=list, description="Glob patterns to leave out")
    overwrite: bool = Field(default=True, description="Replace an existing archive")
    allow_missing_assets: bool = Field(
        default=False,
        description="Treat a missing asset directory as an empty asset tree"
    )
    strict_entry_point: bool = Field(
        default=False,
        description="Fail when index.html does not reference the binding script"
    )


class ReleaseConfig(BaseModel):
    """Complete release configuration.

    Relative paths are resolved against ``project_dir``.
    """

    name: str = Field(default=DEFAULT_NAME, min_length=1, description="Crate name")
    project_dir: Path = Field(default=Path("."), description="Crate root")
    compiler: CompilerOptions = Field(default_factory=CompilerOptions)
    bindgen: BindgenOptions = Field(default_factory=BindgenOptions)
    archive: ArchiveOptions = Field(default_factory=ArchiveOptions)

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path against the project directory."""
        path = Path(path)
        if path.is_absolute():
            return path
        return self.project_dir / path

    @property
    def artifact_name(self) -> str:
        """Cargo writes crate ``foo-bar`` as ``foo_bar.wasm``."""
        return self.name.replace('-', '_')

    @property
    def out_name(self) -> str:
        return self.bindgen.out_name or self.artifact_name

    @property
    def target_dir(self) -> Path:
        if self.compiler.target_dir is not None:
            return self.resolve(self.compiler.target_dir)
        return self.project_dir / "target"

    @property
    def artifact_path(self) -> Path:
        """Where cargo leaves the compiled artifact."""
        return (
            self.target_dir
            / self.compiler.target
            / self.compiler.profile.value
            / f"{self.artifact_name}.wasm"
        )

    @property
    def out_dir(self) -> Path:
        return self.resolve(self.bindgen.out_dir)

    @property
    def binding_names(self) -> Tuple[str, str]:
        """(script, module) file names wasm-bindgen produces for the web target."""
        return (f"{self.out_name}.js", f"{self.out_name}_bg.wasm")

    @property
    def archive_path(self) -> Path:
        return self.resolve(self.archive.path)

    @property
    def assets_dir(self) -> Path:
        return self.resolve(self.archive.assets_dir)

    @property
    def index_html(self) -> Path:
        return self.resolve(self.archive.index_html)


_PATH = {"type": "string", "minLength": 1}
_STRING_LIST = {"type": "array", "items": {"type": "string"}}

RELEASE_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "webbundle release configuration",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "project_dir": _PATH,
        "compiler": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "target": {"type": "string", "minLength": 1},
                "profile": {"enum": [p.value for p in BuildProfile]},
                "locked": {"type": "boolean"},
                "features": _STRING_LIST,
                "target_dir": {"type": ["string", "null"]},
            },
        },
        "bindgen": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "out_dir": _PATH,
                "out_name": {"type": ["string", "null"]},
                "typescript": {"type": "boolean"},
            },
        },
        "archive": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "path": _PATH,
                "assets_dir": _PATH,
                "index_html": _PATH,
                "compresslevel": {"type": "integer", "minimum": 0, "maximum": 9},
                "follow_symlinks": {"type": "boolean"},
                "include_hidden": {"type": "boolean"},
                "exclude": _STRING_LIST,
                "overwrite": {"type": "boolean"},
                "allow_missing_assets": {"type": "boolean"},
                "strict_entry_point": {"type": "boolean"},
            },
        },
    },
}


def find_config_file(project_dir: Path) -> Optional[Path]:
    """Return the first release config file present in project_dir, if any."""
    for filename in CONFIG_FILENAMES:
        candidate = project_dir / filename
        if candidate.is_file():
            return candidate
    return None


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_config(data: Dict[str, Any], source: Optional[Path] = None) -> ReleaseConfig:
    """Validate a raw mapping into a ReleaseConfig.

    Raises:
        ConfigError: If pydantic rejects the data
    """
    try:
        return ReleaseConfig.model_validate(data)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise ConfigError(
            f"Invalid release configuration in {source or 'settings'}: {errors[0]}",
            errors=errors,
            path=source,
        ) from e


def load_config(
    path: Optional[Union[str, Path]] = None,
    project_dir: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ReleaseConfig:
    """Load the release configuration.

    Args:
        path: Explicit config file. When None, release.yaml/.yml/.json is
            looked up in project_dir; if none exists the defaults are used.
        project_dir: Crate root. Overrides project_dir from the file.
        overrides: Nested mapping applied on top of the file (CLI flags)

    Returns:
        Validated ReleaseConfig with project_dir set

    Raises:
        ConfigError: If the file is missing, malformed or invalid
    """
    base_dir = Path(project_dir) if project_dir is not None else Path(".")
    data: Dict[str, Any] = {}
    source: Optional[Path] = None

    if path is not None:
        source = Path(path)
        if not source.is_file():
            raise ConfigError(f"Config file not found: {source}", path=source)
    else:
        source = find_config_file(base_dir)

    if source is not None:
        log.debug(f"Loading release config from {source}")
        data = config_loader.load_and_validate(source, RELEASE_SCHEMA)
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {source} must contain a mapping", path=source)
        if project_dir is None:
            file_project_dir = Path(data.get("project_dir", "."))
            if not file_project_dir.is_absolute():
                file_project_dir = source.parent / file_project_dir
            base_dir = file_project_dir

    data = _deep_merge(data, overrides or {})
    data["project_dir"] = str(base_dir)
    return build_config(data, source)
