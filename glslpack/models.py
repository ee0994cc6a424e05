"""
Data models for the shader pack configuration core.

This module contains the dataclass definitions for stage and program sources,
and for the directives extracted from shader source text.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from glslpack.pack import ShaderPack


class StageKind(Enum):
    """Programmable pipeline stages."""

    VERTEX = "vertex"
    GEOMETRY = "geometry"
    FRAGMENT = "fragment"
    COMPUTE = "compute"


@dataclass(frozen=True)
class StageSource:
    """Source text of one stage of a program.

    Attributes:
        kind: Stage the text belongs to
        program: Name of the owning program, e.g. ``gbuffers_terrain``
        text: Stage source, or None when the pack does not provide it
    """

    kind: StageKind
    program: str
    text: str | None = None

    @property
    def is_present(self) -> bool:
        return self.text is not None


@dataclass(frozen=True)
class ProgramSource:
    """A named bundle of up to four stages sharing a parent shader pack."""

    name: str
    vertex: StageSource | None = None
    geometry: StageSource | None = None
    fragment: StageSource | None = None
    compute: StageSource | None = None
    parent: "ShaderPack | None" = field(default=None, compare=False, repr=False)

    @classmethod
    def from_texts(
        cls,
        name: str,
        texts: dict[StageKind, str | None],
        parent: "ShaderPack | None" = None,
    ) -> "ProgramSource":
        """Build a program source from per-stage texts.

        Args:
            name: Program name
            texts: Mapping of stage kind to source text (None for missing)
            parent: Owning shader pack

        Returns:
            A ProgramSource with one StageSource per provided stage
        """
        stages = {
            kind.value: StageSource(kind, name, text)
            for kind, text in texts.items()
            if text is not None
        }
        return cls(name=name, parent=parent, **stages)

    def stage(self, kind: StageKind) -> StageSource | None:
        return getattr(self, kind.value)

    @property
    def fragment_text(self) -> str | None:
        return self.fragment.text if self.fragment is not None else None

    def stages(self) -> list[StageSource]:
        """Return the present stages in pipeline order."""
        return [
            stage
            for stage in (self.vertex, self.geometry, self.fragment, self.compute)
            if stage is not None and stage.is_present
        ]

    @property
    def is_valid(self) -> bool:
        """A program needs a vertex and fragment stage, or a compute stage."""
        if self.compute is not None and self.compute.is_present:
            return True
        return (
            self.vertex is not None
            and self.vertex.is_present
            and self.fragment is not None
            and self.fragment.is_present
        )


class CommentDirectiveType(Enum):
    """Kinds of directives written inside block comments."""

    DRAWBUFFERS = auto()
    RENDERTARGETS = auto()


@dataclass(frozen=True)
class CommentDirective:
    """A comment directive such as ``/* DRAWBUFFERS:0247 */``.

    Attributes:
        kind: Directive kind
        payload: Raw text after the colon, stripped of surrounding whitespace
        location: Offset of the directive in its source, used for tie-breaking
    """

    kind: CommentDirectiveType
    payload: str
    location: int


class ConstType(Enum):
    """Literal types accepted in const directives."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    VEC4 = "vec4"


ConstValue = bool | int | float | tuple[float, float, float, float]


@dataclass(frozen=True)
class ConstDirective:
    """A ``const <type> <name> = <literal>;`` declaration.

    The ``type`` tag says which member of ConstValue ``value`` holds.
    """

    type: ConstType
    name: str
    value: ConstValue
    location: int = 0
