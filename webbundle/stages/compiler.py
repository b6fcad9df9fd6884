"""
Compiler stage: cargo build for the wasm target.
"""

from pathlib import Path
from typing import List

from webbundle.config import BuildProfile
from webbundle.errors import CompileError, ToolFailedError, ToolNotFoundError
from webbundle.logging import get_logger
from webbundle.stages.base import Stage
from webbundle.toolchain import run_tool

log = get_logger('compiler')


class CompilerStage(Stage):
    """Builds the crate into a single .wasm artifact."""

    name = "compile"

    @property
    def artifact(self) -> Path:
        return self.config.artifact_path

    def command(self) -> List[str]:
        options = self.config.compiler
        cmd = ["cargo", "build"]
        if options.profile == BuildProfile.RELEASE:
            cmd.append("--release")
        cmd += ["--target", options.target]
        if options.locked:
            cmd.append("--locked")
        if options.features:
            cmd += ["--features", ",".join(options.features)]
        if options.target_dir is not None:
            cmd += ["--target-dir", str(self.config.target_dir)]
        return cmd

    def run(self) -> List[Path]:
        try:
            run_tool(self.command(), cwd=self.config.project_dir)
        except ToolNotFoundError as e:
            raise CompileError(f"Cannot compile: {e}") from e
        except ToolFailedError as e:
            raise CompileError(f"Compilation failed: {e}", returncode=e.returncode) from e

        if not self.artifact.is_file():
            raise CompileError(f"Build did not produce {self.artifact}")

        log.info(f"Compiled artifact: {self.artifact}")
        return [self.artifact]
