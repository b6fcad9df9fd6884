"""
The release pipeline: compile, generate bindings, archive.

Stages run strictly in order; the first failure propagates and nothing after
it runs.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from webbundle.config import ReleaseConfig, load_config
from webbundle.logging import get_logger
from webbundle.stages import ArchiverStage, BindgenStage, BindingPair, CompilerStage, StageResult

log = get_logger('pipeline')


@dataclass
class ReleaseResult:
    """Everything a successful release produced."""
    artifact: Path
    bindings: BindingPair
    archive: Path
    entries: List[str] = field(default_factory=list)
    stages: List[StageResult] = field(default_factory=list)


def release(config: Optional[ReleaseConfig] = None, skip_build: bool = False) -> ReleaseResult:
    """Build and package a release.

    Args:
        config: Release configuration; loaded from the current directory if None
        skip_build: Reuse the existing compiled artifact instead of running cargo

    Returns:
        ReleaseResult describing the archive

    Raises:
        ReleaseError: From whichever stage failed first
    """
    if config is None:
        config = load_config()

    results: List[StageResult] = []

    if skip_build:
        log.info(f"Skipping build, reusing {config.artifact_path}")
        artifact = config.artifact_path
    else:
        compiler = CompilerStage(config)
        results.append(compiler.execute())
        artifact = compiler.artifact

    bindgen = BindgenStage(config, artifact=artifact)
    results.append(bindgen.execute())

    archiver = ArchiverStage(config, bindings=bindgen.bindings)
    results.append(archiver.execute())

    return ReleaseResult(
        artifact=artifact,
        bindings=bindgen.bindings,
        archive=archiver.archive_path,
        entries=[e.arcname for e in archiver.entries],
        stages=results,
    )
