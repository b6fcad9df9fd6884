import pytest

from webbundle.config import build_config
from webbundle.errors import BindingGenerationError
from webbundle.stages import BindgenStage


@pytest.fixture
def artifact(config):
    path = config.artifact_path
    path.parent.mkdir(parents=True)
    path.write_bytes(b"\0asm\x01\0\0\0compiled")
    return path


def test_command_matches_web_target(config):
    stage = BindgenStage(config)

    assert stage.command() == [
        "wasm-bindgen", "--no-typescript", "--target", "web",
        "--out-dir", str(config.out_dir),
        "--out-name", "bevy_simon",
        str(config.artifact_path),
    ]


def test_typescript_option_drops_flag(project):
    config = build_config({"project_dir": str(project), "bindgen": {"typescript": True}})
    assert "--no-typescript" not in BindgenStage(config).command()


def test_run_produces_binding_pair(config, artifact, toolchain):
    original = artifact.read_bytes()
    stage = BindgenStage(config)

    outputs = stage.run()

    assert [p.name for p in outputs] == ["bevy_simon.js", "bevy_simon_bg.wasm"]
    assert all(p.parent == config.out_dir for p in outputs)
    assert stage.bindings.names == ("bevy_simon.js", "bevy_simon_bg.wasm")
    assert artifact.read_bytes() == original


def test_creates_missing_out_dir(project, toolchain):
    config = build_config({"project_dir": str(project), "bindgen": {"out_dir": "dist/pkg"}})
    config.artifact_path.parent.mkdir(parents=True)
    config.artifact_path.write_bytes(b"\0asm")

    BindgenStage(config).run()

    assert (project / "dist" / "pkg" / "bevy_simon.js").is_file()


def test_missing_artifact_fails_without_running_tool(config, toolchain):
    with pytest.raises(BindingGenerationError, match="not found"):
        BindgenStage(config).run()
    assert toolchain.calls == []


def test_generator_failure(config, artifact, toolchain):
    toolchain.fail["wasm-bindgen"] = 1

    with pytest.raises(BindingGenerationError) as excinfo:
        BindgenStage(config).run()

    assert excinfo.value.returncode == 1
    assert excinfo.value.stage == "bindgen"


def test_missing_generator(config, artifact, toolchain):
    toolchain.missing.add("wasm-bindgen")

    with pytest.raises(BindingGenerationError, match="wasm-bindgen not found"):
        BindgenStage(config).run()


def test_missing_outputs_after_success(config, artifact, toolchain):
    toolchain.silent.add("wasm-bindgen")

    with pytest.raises(BindingGenerationError, match="bevy_simon.js, bevy_simon_bg.wasm"):
        BindgenStage(config).run()


def test_out_dir_that_cannot_be_created(project, toolchain):
    (project / "blocker").write_text("not a directory")
    config = build_config({"project_dir": str(project), "bindgen": {"out_dir": "blocker/pkg"}})
    config.artifact_path.parent.mkdir(parents=True)
    config.artifact_path.write_bytes(b"\0asm")

    with pytest.raises(BindingGenerationError, match="Cannot create output directory"):
        BindgenStage(config).run()

    assert toolchain.calls == []
