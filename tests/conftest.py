"""
Shared fixtures: a throwaway crate layout and a fake cargo/wasm-bindgen.

The fake toolchain replaces shutil.which and subprocess.run inside
webbundle.toolchain, so no Rust tooling is needed to run the suite.
"""
import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Set

import pytest

from webbundle.config import load_config
from webbundle.stages import BindingPair

CRATE = "bevy_simon"

INDEX_HTML = f"""<!DOCTYPE html>
<html>
<body>
    <script type="module">
        import init from './{CRATE}.js';
        init();
    </script>
</body>
</html>
"""


class FakeToolchain:
    """Stands in for cargo and wasm-bindgen.

    Attributes:
        calls: (tool, args, cwd) for every invocation
        fail: tool -> exit status to return instead of succeeding
        missing: tools that shutil.which should not find
        silent: tools that exit 0 but write nothing
    """

    def __init__(self, crate: str = CRATE):
        self.crate = crate
        self.calls: List[tuple] = []
        self.fail: Dict[str, int] = {}
        self.missing: Set[str] = set()
        self.silent: Set[str] = set()

    def which(self, name):
        if name in self.missing:
            return None
        return f"/fake/bin/{name}"

    def run(self, cmd, cwd=None, **kwargs):
        tool = Path(cmd[0]).name
        args = list(cmd[1:])
        self.calls.append((tool, args, cwd))
        returncode = self.fail.get(tool, 0)
        if returncode == 0 and tool not in self.silent:
            if tool == "cargo":
                self._cargo(args, Path(cwd))
            elif tool == "wasm-bindgen" and "--out-dir" in args:
                self._wasm_bindgen(args)
        return subprocess.CompletedProcess(cmd, returncode)

    def tools(self) -> List[str]:
        return [call[0] for call in self.calls]

    def _cargo(self, args, cwd: Path):
        profile = "release" if "--release" in args else "debug"
        target = args[args.index("--target") + 1]
        if "--target-dir" in args:
            target_dir = Path(args[args.index("--target-dir") + 1])
        else:
            target_dir = cwd / "target"
        out = target_dir / target / profile
        out.mkdir(parents=True, exist_ok=True)
        (out / f"{self.crate.replace('-', '_')}.wasm").write_bytes(b"\0asm\x01\0\0\0compiled")

    def _wasm_bindgen(self, args):
        out_dir = Path(args[args.index("--out-dir") + 1])
        out_name = args[args.index("--out-name") + 1]
        artifact = Path(args[-1])
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / f"{out_name}.js").write_text(
            f"// glue for {artifact.name}\nconst url = '{out_name}_bg.wasm';\n"
        )
        (out_dir / f"{out_name}_bg.wasm").write_bytes(artifact.read_bytes())
        if "--no-typescript" not in args:
            (out_dir / f"{out_name}.d.ts").write_text("export default function init(): void;\n")


@pytest.fixture
def toolchain(monkeypatch):
    fake = FakeToolchain()
    monkeypatch.setattr("webbundle.toolchain.shutil.which", fake.which)
    monkeypatch.setattr("webbundle.toolchain.subprocess.run", fake.run)
    return fake


@pytest.fixture
def project(tmp_path) -> Path:
    """A crate root with index.html and two assets."""
    root = tmp_path / "game"
    root.mkdir()
    (root / "Cargo.toml").write_text(f'[package]\nname = "{CRATE}"\nversion = "0.1.0"\n')
    (root / "src").mkdir()
    (root / "src" / "main.rs").write_text("fn main() {}\n")
    (root / "index.html").write_text(INDEX_HTML)

    assets = root / "assets"
    (assets / "sound").mkdir(parents=True)
    (assets / "sprites").mkdir()
    (assets / "sound" / "blip.ogg").write_bytes(b"OggS blip")
    (assets / "sprites" / "hero.png").write_bytes(b"\x89PNG hero")
    return root


@pytest.fixture
def config(project):
    return load_config(project_dir=project)


def make_bindings(config) -> BindingPair:
    """Write a binding pair where wasm-bindgen would have."""
    pair = BindingPair.for_config(config)
    pair.script.parent.mkdir(parents=True, exist_ok=True)
    pair.script.write_text(f"const url = '{pair.module.name}';\n")
    pair.module.write_bytes(b"\0asm\x01\0\0\0")
    return pair


@pytest.fixture(autouse=True)
def reset_webbundle_logging():
    """Undo webbundle.logging.configure() between tests so caplog keeps working."""
    yield
    root = logging.getLogger("webbundle")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
    root.propagate = True


@pytest.fixture
def bindings(config) -> BindingPair:
    return make_bindings(config)
