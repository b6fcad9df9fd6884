"""
Base classes for release stages.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from webbundle.config import ReleaseConfig
from webbundle.logging import get_logger

log = get_logger('stages')


@dataclass(frozen=True)
class BindingPair:
    """The script and binary module generated from one compiled artifact.

    Attributes:
        script: Path to the JS glue script (<name>.js)
        module: Path to the wasm module it loads (<name>_bg.wasm)
    """
    script: Path
    module: Path

    @property
    def names(self) -> Tuple[str, str]:
        return (self.script.name, self.module.name)

    def missing(self) -> List[Path]:
        """Members that are not regular files on disk."""
        return [p for p in (self.script, self.module) if not p.is_file()]

    @classmethod
    def for_config(cls, config: ReleaseConfig) -> 'BindingPair':
        script_name, module_name = config.binding_names
        return cls(script=config.out_dir / script_name, module=config.out_dir / module_name)


@dataclass
class StageResult:
    """Outcome of one successful stage run."""
    stage: str
    outputs: List[Path] = field(default_factory=list)
    elapsed: float = 0.0


class Stage(ABC):
    """Abstract base class for the pipeline stages.

    Each stage reads its inputs from fixed paths derived from the config and
    raises a ReleaseError subclass on failure. Stages never retry.
    """

    name = "stage"

    def __init__(self, config: ReleaseConfig):
        self.config = config

    @abstractmethod
    def run(self) -> List[Path]:
        """Perform the stage.

        Returns:
            Paths produced by the stage
        """
        pass

    def execute(self) -> StageResult:
        """Run the stage and time it."""
        log.debug(f"[{self.name}] starting")
        start = time.monotonic()
        outputs = self.run()
        elapsed = time.monotonic() - start
        log.info(f"[{self.name}] done in {elapsed:.1f}s")
        return StageResult(stage=self.name, outputs=outputs, elapsed=elapsed)
