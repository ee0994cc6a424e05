"""
Configuration for loading a shader pack.

Settings come from the caller (or the command line), with a few
environment variables as defaults:

    GLSLPACK_RENDER_TARGETS   number of render targets the driver supports
    GLSLPACK_DEFINES          comma separated NAME=VALUE macros for every stage
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from glslpack.blending import BlendModeOverride
from glslpack.constants import MAX_LEGACY_RENDER_TARGETS, MAX_RENDER_TARGETS
from glslpack.preprocessor import IncludeResolver
from glslpack.utils import is_identifier


def parse_defines(text: str) -> dict[str, str]:
    """Parse ``NAME=VALUE`` pairs separated by commas; a bare NAME means 1.

    Raises:
        ValueError: If a name is not an identifier
    """
    defines: dict[str, str] = {}
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, value = entry.partition("=")
        name = name.strip()
        if not is_identifier(name):
            raise ValueError(f"Invalid macro name: {name!r}")
        defines[name] = value.strip() if sep else "1"
    return defines


@dataclass(frozen=True)
class PackConfig:
    """Settings shared by every program of a pack.

    Attributes:
        supported_render_targets: Render target indices the driver supports
        default_blend_override: Blend override used when the properties
            have none for a program (None keeps the renderer default)
        defines: Macros predefined for every stage
        include_resolver: Resolver for ``#include``; None leaves the lines as-is
    """

    supported_render_targets: frozenset[int] = frozenset(range(MAX_RENDER_TARGETS))
    default_blend_override: BlendModeOverride | None = None
    defines: Mapping[str, str] = field(default_factory=dict)
    include_resolver: IncludeResolver | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        targets = frozenset(self.supported_render_targets)
        if not targets or min(targets) < 0:
            raise ValueError("Supported render targets must be non-empty and non-negative")
        object.__setattr__(self, "supported_render_targets", targets)
        object.__setattr__(self, "defines", MappingProxyType(dict(self.defines)))

    @classmethod
    def legacy(cls, **kwargs) -> "PackConfig":
        """Config for drivers with only the eight legacy render targets."""
        return cls(
            supported_render_targets=frozenset(range(MAX_LEGACY_RENDER_TARGETS)), **kwargs
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **kwargs) -> "PackConfig":
        """Build a config from environment variables.

        Args:
            environ: Environment to read, defaults to os.environ
            **kwargs: Explicit settings, taking precedence over the environment

        Raises:
            ValueError: If a variable holds a malformed value
        """
        environ = os.environ if environ is None else environ

        count = environ.get("GLSLPACK_RENDER_TARGETS")
        if count and "supported_render_targets" not in kwargs:
            try:
                targets = int(count)
            except ValueError:
                raise ValueError(f"GLSLPACK_RENDER_TARGETS must be an integer, got {count!r}") from None
            kwargs["supported_render_targets"] = frozenset(range(targets))

        defines = environ.get("GLSLPACK_DEFINES")
        if defines and "defines" not in kwargs:
            kwargs["defines"] = parse_defines(defines)

        return cls(**kwargs)
