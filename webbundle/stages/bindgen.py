"""
Binding generator stage: wasm-bindgen for the web target.
"""

from pathlib import Path
from typing import List, Optional

from webbundle.errors import BindingGenerationError, ToolFailedError, ToolNotFoundError
from webbundle.logging import get_logger
from webbundle.stages.base import BindingPair, Stage
from webbundle.toolchain import run_tool

log = get_logger('bindgen')


class BindgenStage(Stage):
    """Turns the compiled artifact into <name>.js + <name>_bg.wasm.

    The artifact is only read; wasm-bindgen writes to out_dir.
    """

    name = "bindgen"

    def __init__(self, config, artifact: Optional[Path] = None):
        super().__init__(config)
        self.artifact = Path(artifact) if artifact is not None else config.artifact_path
        self.bindings = BindingPair.for_config(config)

    def command(self) -> List[str]:
        cmd = ["wasm-bindgen"]
        if not self.config.bindgen.typescript:
            cmd.append("--no-typescript")
        cmd += [
            "--target", "web",
            "--out-dir", str(self.config.out_dir),
            "--out-name", self.config.out_name,
            str(self.artifact),
        ]
        return cmd

    def run(self) -> List[Path]:
        if not self.artifact.is_file():
            raise BindingGenerationError(f"Compiled artifact not found: {self.artifact}")

        try:
            self.config.out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BindingGenerationError(
                f"Cannot create output directory {self.config.out_dir}: {e}"
            ) from e

        try:
            run_tool(self.command(), cwd=self.config.project_dir)
        except ToolNotFoundError as e:
            raise BindingGenerationError(f"Cannot generate bindings: {e}") from e
        except ToolFailedError as e:
            raise BindingGenerationError(
                f"Binding generation failed: {e}", returncode=e.returncode
            ) from e

        missing = self.bindings.missing()
        if missing:
            names = ", ".join(p.name for p in missing)
            raise BindingGenerationError(f"wasm-bindgen did not produce: {names}")

        log.info(f"Bindings: {', '.join(self.bindings.names)} in {self.config.out_dir}")
        return [self.bindings.script, self.bindings.module]
