"""
Program configuration records handed to the driver adapter.

A ProgramConfiguration carries everything needed to create a program: the
final stage sources, the vertex attribute locations to bind before linking
and the resolved program directives.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from glslpack.blending import BlendModeOverride
from glslpack.constants import ATTRIBUTE_BINDINGS
from glslpack.models import ProgramSource, StageKind
from glslpack.program import ProgramDirectives, resolve_program_directives
from glslpack.properties import ShaderProperties


@dataclass(frozen=True)
class AttributeBinding:
    """A vertex attribute bound to a fixed location before linking."""

    location: int
    name: str


DEFAULT_ATTRIBUTE_BINDINGS: tuple[AttributeBinding, ...] = tuple(
    AttributeBinding(location, name) for location, name in ATTRIBUTE_BINDINGS
)


@dataclass(frozen=True)
class ProgramConfiguration:
    """Everything the driver adapter needs to build one program.

    Attributes:
        name: Program name
        stages: Stage kind to final (preprocessed) source text
        attribute_bindings: Attribute locations to bind before linking
        directives: Resolved program directives
    """

    name: str
    stages: Mapping[StageKind, str]
    directives: ProgramDirectives
    attribute_bindings: tuple[AttributeBinding, ...] = DEFAULT_ATTRIBUTE_BINDINGS

    def __post_init__(self) -> None:
        ordered = {kind: self.stages[kind] for kind in StageKind if kind in self.stages}
        object.__setattr__(self, "stages", MappingProxyType(ordered))

    def to_dict(self) -> dict[str, Any]:
        """Return a deterministic, JSON-serialisable view of the record."""
        return {
            "name": self.name,
            "stages": {kind.value: text for kind, text in self.stages.items()},
            "attribute_bindings": [
                {"location": binding.location, "name": binding.name}
                for binding in self.attribute_bindings
            ],
            "directives": self.directives.to_dict(),
        }


def build_program_configuration(
    source: ProgramSource,
    properties: ShaderProperties | None,
    supported_render_targets: frozenset[int],
    default_blend_override: BlendModeOverride | None = None,
) -> ProgramConfiguration:
    """Build the configuration record for a preprocessed program.

    Raises:
        MalformedDirective: If a comment directive has a bad payload
        UnknownRenderTarget: If a draw buffer is not supported
    """
    directives = resolve_program_directives(
        source, properties, supported_render_targets, default_blend_override
    )
    return ProgramConfiguration(
        name=source.name,
        stages={stage.kind: stage.text for stage in source.stages()},
        directives=directives,
    )
