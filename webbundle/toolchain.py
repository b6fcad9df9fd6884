"""
External tool invocation.

cargo and wasm-bindgen are run with inherited stdout/stderr so their
diagnostics reach the user unmodified. No timeouts, no retries.
"""
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List, Sequence, Union

from webbundle.errors import ToolFailedError, ToolNotFoundError
from webbundle.logging import get_logger

log = get_logger('toolchain')

Arg = Union[str, Path]


def find_tool(name: str) -> str:
    """Find an executable on PATH.

    Raises:
        ToolNotFoundError: If the tool is not installed
    """
    path = shutil.which(name)
    if path is None:
        raise ToolNotFoundError(name)
    return path


def format_command(args: Sequence[Arg]) -> str:
    """Render a command line for logs."""
    return shlex.join(str(a) for a in args)


def run_tool(args: Sequence[Arg], cwd: Path) -> None:
    """Run an external tool and wait for it to exit.

    Args:
        args: Tool name followed by its arguments
        cwd: Working directory for the tool

    Raises:
        ToolNotFoundError: If the tool is missing or can't be executed
        ToolFailedError: If the tool exits non-zero
    """
    tool = str(args[0])
    executable = find_tool(tool)
    cmd: List[str] = [executable] + [str(a) for a in args[1:]]

    log.info(f"Running: {format_command(args)}")
    try:
        result = subprocess.run(cmd, cwd=str(cwd))
    except OSError as e:
        raise ToolNotFoundError(tool) from e

    if result.returncode != 0:
        raise ToolFailedError(tool, result.returncode)
