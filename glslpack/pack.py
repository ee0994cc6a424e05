"""
Shader pack loading.

A ShaderPack ties an asset provider, the parsed shader properties and the
pack config together. Programs are loaded and resolved independently, so one
broken program never prevents the others from resolving.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Protocol

from loguru import logger

from glslpack.config import PackConfig
from glslpack.constants import KNOWN_PROGRAMS, STAGE_EXTENSIONS
from glslpack.errors import ShaderPackError
from glslpack.models import ProgramSource, StageKind
from glslpack.preprocessor import preprocess_source
from glslpack.program_config import ProgramConfiguration, build_program_configuration
from glslpack.properties import ShaderProperties

PROPERTIES_FILE = "shaders.properties"


class AssetProvider(Protocol):
    """Supplies stage source text for programs."""

    def get_stage_source(self, program: str, stage: StageKind) -> str | None:
        """Return the raw source of one stage, or None if the pack lacks it."""
        ...


def stage_file_name(program: str, stage: StageKind) -> str:
    return f"{program}{STAGE_EXTENSIONS[stage.value]}"


class DictAssetProvider:
    """Asset provider backed by an in-memory mapping of file names to text."""

    def __init__(self, files: Mapping[str, str]):
        self.files = dict(files)

    def get_stage_source(self, program: str, stage: StageKind) -> str | None:
        return self.files.get(stage_file_name(program, stage))

    def resolve_include(self, path: str) -> str | None:
        return self.files.get(path.lstrip("/"))


class DirectoryAssetProvider:
    """Asset provider reading ``<root>/<program><ext>`` files.

    Only looks up the exact file names it is asked for; it never walks the
    directory.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _read(self, relative: str) -> str | None:
        path = self.root / relative
        if not path.is_file():
            return None
        logger.debug(f"Reading {path}")
        return path.read_text(encoding="utf-8", errors="replace")

    def get_stage_source(self, program: str, stage: StageKind) -> str | None:
        return self._read(stage_file_name(program, stage))

    def resolve_include(self, path: str) -> str | None:
        """Resolve an ``#include`` path relative to the shaders root."""
        relative = Path(path.lstrip("/"))
        if ".." in relative.parts:
            logger.warning(f"Refusing to include {path} outside the pack")
            return None
        return self._read(str(relative))


@dataclass(frozen=True)
class PackResolution:
    """Outcome of resolving several programs of a pack.

    Attributes:
        configurations: Program name to configuration, for programs that resolved
        errors: Program name to the error that stopped it
    """

    configurations: Mapping[str, ProgramConfiguration] = field(default_factory=dict)
    errors: Mapping[str, ShaderPackError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class ShaderPack:
    """A loaded shader pack."""

    def __init__(
        self,
        provider: AssetProvider,
        properties: ShaderProperties | None = None,
        config: PackConfig | None = None,
    ):
        """Initialize the pack.

        Args:
            provider: Source of stage texts
            properties: Parsed shaders.properties, None if the pack has none
            config: Pack config, defaults to PackConfig()
        """
        self.provider = provider
        self.properties = properties if properties is not None else ShaderProperties()
        self.config = config if config is not None else PackConfig()

    @classmethod
    def from_directory(
        cls,
        root: str | Path,
        config: PackConfig | None = None,
        resolve_includes: bool = False,
    ) -> "ShaderPack":
        """Load a pack from its shaders directory.

        Args:
            root: Directory holding the stage files and shaders.properties
            config: Pack config, defaults to PackConfig()
            resolve_includes: Resolve ``#include`` relative to the directory,
                unless the config already has a resolver

        Returns:
            The loaded shader pack
        """
        provider = DirectoryAssetProvider(root)
        config = config if config is not None else PackConfig()
        if resolve_includes and config.include_resolver is None:
            config = replace(config, include_resolver=provider.resolve_include)

        properties_path = Path(root) / PROPERTIES_FILE
        properties = None
        if properties_path.is_file():
            properties = ShaderProperties.parse(properties_path.read_text(encoding="utf-8"))
        logger.info(f"Loaded shader pack from {root}")
        return cls(provider, properties, config)

    def explicit_flips(self, program: str) -> Mapping[int, bool]:
        """Return the flip declarations of the pack for one program."""
        return self.properties.get_explicit_flips(program)

    def available_programs(self) -> list[str]:
        """List the well-known programs the provider has at least one stage for."""
        return [
            name
            for name in KNOWN_PROGRAMS
            if any(self.provider.get_stage_source(name, kind) is not None for kind in StageKind)
        ]

    def load_program(self, name: str) -> ProgramSource:
        """Load a program with every stage preprocessed.

        Raises:
            ShaderPackError: If the program has no stages at all
            InputRejected: If a stage contains an internal marker
            PreprocessFailed: If a stage fails to preprocess
        """
        texts: dict[StageKind, str | None] = {}
        for kind in StageKind:
            raw = self.provider.get_stage_source(name, kind)
            if raw is None:
                continue
            try:
                texts[kind] = preprocess_source(
                    raw, dict(self.config.defines), self.config.include_resolver
                ).text
            except ShaderPackError as e:
                raise e.with_program(name, kind.value) from e

        if not texts:
            raise ShaderPackError("No stages found", program=name)

        source = ProgramSource.from_texts(name, texts, parent=self)
        if not source.is_valid:
            logger.warning(f"Program {name} has neither vertex+fragment nor compute stages")
        return source

    def resolve_program(self, name: str) -> ProgramConfiguration:
        """Load and resolve one program.

        Raises:
            ShaderPackError: Any per-program failure
        """
        source = self.load_program(name)
        return build_program_configuration(
            source,
            self.properties,
            self.config.supported_render_targets,
            self.config.default_blend_override,
        )

    def resolve_programs(self, names: Iterable[str] | None = None) -> PackResolution:
        """Resolve several programs, recording failures per program.

        Args:
            names: Programs to resolve, defaults to available_programs()

        Returns:
            The configurations that resolved and the errors of those that did not
        """
        names = self.available_programs() if names is None else list(names)
        configurations: dict[str, ProgramConfiguration] = {}
        errors: dict[str, ShaderPackError] = {}

        for name in names:
            try:
                configurations[name] = self.resolve_program(name)
            except ShaderPackError as e:
                logger.error(f"Failed to resolve program {name}: {e}")
                errors[name] = e

        logger.info(f"Resolved {len(configurations)} programs, {len(errors)} failed")
        return PackResolution(
            configurations=MappingProxyType(configurations),
            errors=MappingProxyType(errors),
        )
