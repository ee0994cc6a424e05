"""Command line interface for glslpack.

This module provides commands to preprocess shader stages and to inspect the
directives a shader pack declares for its programs.
"""

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, TypeVar, cast

import typer
from loguru import logger

from glslpack.config import PackConfig, parse_defines
from glslpack.errors import ShaderPackError
from glslpack.pack import ShaderPack
from glslpack.preprocessor import glsl_preprocess_source
from glslpack.properties import ShaderProperties

F = TypeVar("F", bound=Callable[..., Any])


def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="glslpack",
    help=(
        "Preprocess shader pack stages and resolve their rendering directives. "
        "Commands: preprocess, directives, resolve."
    ),
    add_completion=False,
)

PACK_DIR_ARG = typer.Argument(..., help="Shader pack 'shaders' directory")
PROPERTIES_OPT = typer.Option(
    None, "--properties", "-p", help="Properties file (default: shaders.properties in the pack)"
)
RENDER_TARGETS_OPT = typer.Option(
    None, "--render-targets", "-r", help="Number of render targets the driver supports"
)
DEFINE_OPT = typer.Option(
    None, "--define", "-D", help="Predefine a macro, NAME or NAME=VALUE (repeatable)"
)
INCLUDES_OPT = typer.Option(
    False, "--includes", help="Resolve #include relative to the pack directory"
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _build_config(render_targets: int | None, defines: list[str] | None) -> PackConfig:
    kwargs: dict[str, Any] = {}
    if render_targets is not None:
        kwargs["supported_render_targets"] = frozenset(range(render_targets))
    if defines:
        kwargs["defines"] = parse_defines(",".join(defines))
    return PackConfig.from_env(**kwargs)


def _load_pack(
    pack_dir: Path,
    properties: Path | None,
    render_targets: int | None,
    defines: list[str] | None,
    includes: bool,
) -> ShaderPack:
    """Load a pack, turning bad input into an exit code."""
    try:
        config = _build_config(render_targets, defines)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(1) from e

    if not pack_dir.is_dir():
        logger.error(f"Not a directory: {pack_dir}")
        raise typer.Exit(1)

    pack = ShaderPack.from_directory(pack_dir, config, resolve_includes=includes)
    if properties is not None:
        try:
            text = properties.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read properties file: {e}")
            raise typer.Exit(1) from e
        pack = ShaderPack(pack.provider, ShaderProperties.parse(text), pack.config)
    return pack


@typed_command(app.command("preprocess"))
def preprocess(
    shader_file: Path = typer.Argument(..., help="Shader stage file to preprocess"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout"
    ),
    defines: Optional[list[str]] = DEFINE_OPT,
) -> None:
    """Preprocess a stage and hoist its #version/#extension lines.

    Example: glslpack preprocess shaders/composite.fsh -D MC_VERSION=11605
    """
    try:
        text = shader_file.read_text(encoding="utf-8")
        macros = parse_defines(",".join(defines)) if defines else {}
        result = glsl_preprocess_source(text, macros)
    except OSError as e:
        logger.error(f"Failed to read shader file: {e}")
        raise typer.Exit(1) from e
    except ValueError as e:
        logger.error(f"Invalid define: {e}")
        raise typer.Exit(1) from e
    except ShaderPackError as e:
        logger.error(f"Preprocessing failed: {e}")
        raise typer.Exit(1) from e

    if output is None:
        typer.echo(result, nl=False)
    else:
        output.write_text(result, encoding="utf-8")
        logger.info(f"Preprocessed source written to {output}")


@typed_command(app.command("directives"))
def directives(
    pack_dir: Path = PACK_DIR_ARG,
    program: str = typer.Argument(..., help="Program name, e.g. gbuffers_terrain"),
    properties: Optional[Path] = PROPERTIES_OPT,
    render_targets: Optional[int] = RENDER_TARGETS_OPT,
    defines: Optional[list[str]] = DEFINE_OPT,
    includes: bool = INCLUDES_OPT,
) -> None:
    """Print the resolved directives of one program as JSON.

    Example: glslpack directives shaderpack/shaders gbuffers_terrain
    """
    pack = _load_pack(pack_dir, properties, render_targets, defines, includes)
    try:
        configuration = pack.resolve_program(program)
    except ShaderPackError as e:
        logger.error(f"Failed to resolve {program}: {e}")
        raise typer.Exit(1) from e

    typer.echo(json.dumps(configuration.directives.to_dict(), indent=2))


@typed_command(app.command("resolve"))
def resolve(
    pack_dir: Path = PACK_DIR_ARG,
    programs: Optional[list[str]] = typer.Option(
        None, "--program", help="Program to resolve (repeatable, default: all found)"
    ),
    properties: Optional[Path] = PROPERTIES_OPT,
    render_targets: Optional[int] = RENDER_TARGETS_OPT,
    defines: Optional[list[str]] = DEFINE_OPT,
    includes: bool = INCLUDES_OPT,
) -> None:
    """Resolve every program of a pack and report failures.

    Exits with status 1 when any program fails.

    Example: glslpack resolve shaderpack/shaders --program composite
    """
    pack = _load_pack(pack_dir, properties, render_targets, defines, includes)
    resolution = pack.resolve_programs(programs or None)

    for name, configuration in resolution.configurations.items():
        buffers = ",".join(str(index) for index in configuration.directives.draw_buffers)
        typer.echo(f"ok     {name} (draw buffers {buffers})")
    for name, error in resolution.errors.items():
        typer.echo(f"FAILED {name}: {error}")

    if not resolution.ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
