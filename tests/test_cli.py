"""Tests for the glslpack command-line interface."""

import json
import sys
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from loguru import logger
from typer.testing import CliRunner

from glslpack.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logger():
    """Put loguru back on the real stderr after each command."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def shader_file():
    """Create a temporary fragment stage."""
    with TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "composite.fsh"
        path.write_text(
            "#ifdef USE_EXT\n"
            "#extension GL_EXT_gpu_shader4 : enable\n"
            "#endif\n"
            "#version 120\n"
            "void main() {}\n"
        )
        yield path


@pytest.fixture
def pack_dir(pack_files):
    """Write the sample pack to a temporary shaders directory."""
    with TemporaryDirectory() as temp_dir:
        root = Path(temp_dir)
        for name, text in pack_files.items():
            (root / name).write_text(text)
        yield root


def test_help():
    """Test that the CLI help command works."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Preprocess shader pack stages" in result.stdout


def test_preprocess_to_stdout(shader_file):
    """Test that hoisted directives come first."""
    result = runner.invoke(app, ["preprocess", str(shader_file)])
    assert result.exit_code == 0
    assert result.stdout == "#version 120\nvoid main() {}\n"


def test_preprocess_with_define(shader_file):
    result = runner.invoke(app, ["preprocess", str(shader_file), "-D", "USE_EXT"])
    assert result.exit_code == 0
    assert result.stdout.startswith(
        "#extension GL_EXT_gpu_shader4 : enable\n#version 120\n"
    )


def test_preprocess_to_file(shader_file):
    output_file = shader_file.with_suffix(".out")
    result = runner.invoke(app, ["preprocess", str(shader_file), "-o", str(output_file)])
    assert result.exit_code == 0
    assert output_file.read_text() == "#version 120\nvoid main() {}\n"


def test_preprocess_failure(shader_file):
    """Test that a preprocessor diagnostic exits with status 1."""
    shader_file.write_text("#if 1\nvoid main() {}\n")
    result = runner.invoke(app, ["preprocess", str(shader_file)])
    assert result.exit_code == 1


def test_preprocess_missing_file():
    result = runner.invoke(app, ["preprocess", "does/not/exist.fsh"])
    assert result.exit_code == 1


def test_preprocess_invalid_define(shader_file):
    result = runner.invoke(app, ["preprocess", str(shader_file), "-D", "1BAD"])
    assert result.exit_code == 1


def test_directives(pack_dir):
    """Test JSON output of one program's directives."""
    result = runner.invoke(app, ["directives", str(pack_dir), "gbuffers_terrain"])
    assert result.exit_code == 0

    data = json.loads(result.stdout)
    assert data["draw_buffers"] == [0, 1, 2]
    assert data["mipmapped_buffers"] == [1]
    assert data["viewport_scale"] == 1.0


def test_directives_with_properties(pack_dir):
    properties = pack_dir / "custom.properties"
    properties.write_text("scale.composite=0.5\nblend.composite=off\n")
    result = runner.invoke(
        app, ["directives", str(pack_dir), "composite", "-p", str(properties)]
    )
    assert result.exit_code == 0

    data = json.loads(result.stdout)
    assert data["draw_buffers"] == [0, 4]
    assert data["viewport_scale"] == 0.5
    assert data["blend_mode_override"] == "OFF"


def test_directives_unknown_program(pack_dir):
    result = runner.invoke(app, ["directives", str(pack_dir), "gbuffers_water"])
    assert result.exit_code == 1


def test_resolve_reports_every_program(pack_dir):
    """Test that one failing program does not hide the others."""
    result = runner.invoke(app, ["resolve", str(pack_dir)])
    assert result.exit_code == 1
    assert "ok     gbuffers_terrain (draw buffers 0,1,2)" in result.stdout
    assert "ok     composite (draw buffers 0,4)" in result.stdout
    assert "FAILED final:" in result.stdout


def test_resolve_selected_programs(pack_dir):
    result = runner.invoke(
        app, ["resolve", str(pack_dir), "--program", "composite", "--program", "gbuffers_terrain"]
    )
    assert result.exit_code == 0
    assert "final" not in result.stdout


def test_resolve_with_fewer_render_targets(pack_dir):
    result = runner.invoke(app, ["resolve", str(pack_dir), "--program", "composite", "-r", "4"])
    assert result.exit_code == 1
    assert "FAILED composite:" in result.stdout
    assert "render target 4" in result.stdout


def test_resolve_not_a_directory(pack_dir):
    result = runner.invoke(app, ["resolve", str(pack_dir / "composite.fsh")])
    assert result.exit_code == 1
