"""
Pack-wide shader properties.

A shader pack ships a ``shaders.properties`` file with per-program overrides.
This module holds the parsed form the resolver consults, and a parser for the
subset of keys the configuration core understands:

    scale.<program>=<float>
    alphaTest.<program>=off | <FUNCTION> <reference>
    blend.<program>=off | <src> <dst> <srcAlpha> <dstAlpha>
    flip.<program>.<buffer>=true | false

Any other key is kept in ``other`` untouched.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from loguru import logger

from glslpack.blending import (
    AlphaTest,
    AlphaTestFunction,
    BlendFactor,
    BlendMode,
    BlendModeOverride,
)
from glslpack.constants import LEGACY_RENDER_TARGETS

_COLORTEX_RE = re.compile(r"colortex([0-9]+)")


def _frozen(mapping: Mapping | None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ShaderProperties:
    """Pack-wide configuration, immutable once the pack is loaded.

    Attributes:
        viewport_scale_overrides: Program name to viewport scale
        alpha_test_overrides: Program name to alpha test
        blend_mode_overrides: Program name to blend override
        explicit_flips: Program name to (render target to flip flag)
        other: Every other key of the properties file
    """

    viewport_scale_overrides: Mapping[str, float] = field(default_factory=dict)
    alpha_test_overrides: Mapping[str, AlphaTest] = field(default_factory=dict)
    blend_mode_overrides: Mapping[str, BlendModeOverride] = field(default_factory=dict)
    explicit_flips: Mapping[str, Mapping[int, bool]] = field(default_factory=dict)
    other: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, scale in self.viewport_scale_overrides.items():
            if not scale > 0:
                raise ValueError(f"Viewport scale for {name} must be positive, got {scale}")

        # Freeze every table so nothing can change after load
        object.__setattr__(self, "viewport_scale_overrides", _frozen(self.viewport_scale_overrides))
        object.__setattr__(self, "alpha_test_overrides", _frozen(self.alpha_test_overrides))
        object.__setattr__(self, "blend_mode_overrides", _frozen(self.blend_mode_overrides))
        object.__setattr__(
            self,
            "explicit_flips",
            _frozen({name: _frozen(flips) for name, flips in self.explicit_flips.items()}),
        )
        object.__setattr__(self, "other", _frozen(self.other))

    def get_explicit_flips(self, program: str) -> Mapping[int, bool]:
        return self.explicit_flips.get(program, MappingProxyType({}))

    @classmethod
    def parse(cls, text: str) -> "ShaderProperties":
        """Parse the text of a shader pack properties file.

        Malformed values for known keys are logged and skipped.

        Args:
            text: Properties file contents

        Returns:
            The parsed properties
        """
        scales: dict[str, float] = {}
        alpha_tests: dict[str, AlphaTest] = {}
        blends: dict[str, BlendModeOverride] = {}
        flips: dict[str, dict[int, bool]] = {}
        other: dict[str, str] = {}

        for key, value in read_properties(text).items():
            kind, _, target = key.partition(".")
            try:
                if kind == "scale" and target:
                    scales[target] = parse_scale(value)
                elif kind == "alphaTest" and target:
                    alpha_tests[target] = parse_alpha_test(value)
                elif kind == "blend" and target and "." not in target:
                    blends[target] = parse_blend_override(value)
                elif kind == "flip" and "." in target:
                    program, _, buffer = target.partition(".")
                    index = render_target_index(buffer)
                    flag = parse_bool(value)
                    flips.setdefault(program, {})[index] = flag
                else:
                    other[key] = value
            except ValueError as e:
                logger.warning(f"Ignoring property {key}={value!r}: {e}")

        logger.debug(
            f"Parsed shader properties: {len(scales)} scale, {len(alpha_tests)} alphaTest, "
            f"{len(blends)} blend, {len(flips)} flip overrides"
        )
        return cls(
            viewport_scale_overrides=scales,
            alpha_test_overrides=alpha_tests,
            blend_mode_overrides=blends,
            explicit_flips=flips,
            other=other,
        )


def read_properties(text: str) -> dict[str, str]:
    """Read Java-properties style ``key=value`` pairs.

    Supports ``=`` and ``:`` separators, ``#`` and ``!`` comments and
    backslash line continuations. Later keys override earlier ones.
    """
    entries: dict[str, str] = {}
    pending = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not pending and (not line or line[0] in "#!"):
            continue
        if line.endswith("\\"):
            pending += line[:-1]
            continue
        line = pending + line
        pending = ""

        match = re.match(r"([^=:\s]+)\s*[=:\s]\s*(.*)", line)
        if match is None:
            entries[line] = ""
        else:
            entries[match.group(1)] = match.group(2).strip()
    if pending:
        logger.warning("Properties file ends with a line continuation")
    return entries


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "1", "on"):
        return True
    if lowered in ("false", "0", "off"):
        return False
    raise ValueError(f"not a boolean: {value}")


def parse_scale(value: str) -> float:
    scale = float(value)
    if not scale > 0:
        raise ValueError(f"viewport scale must be positive, got {scale}")
    return scale


def parse_alpha_test(value: str) -> AlphaTest:
    parts = value.split()
    if len(parts) == 1 and parts[0].lower() == "off":
        return AlphaTest.OFF
    if len(parts) != 2:
        raise ValueError("expected 'off' or '<FUNCTION> <reference>'")
    function = AlphaTestFunction.from_name(parts[0])
    if function is AlphaTestFunction.OFF:
        return AlphaTest.OFF
    return AlphaTest(function, float(parts[1]))


def parse_blend_override(value: str) -> BlendModeOverride:
    parts = value.split()
    if len(parts) == 1 and parts[0].lower() == "off":
        return BlendModeOverride.OFF
    if len(parts) != 4:
        raise ValueError("expected 'off' or four blend factors")
    src_rgb, dst_rgb, src_alpha, dst_alpha = (BlendFactor.from_name(p) for p in parts)
    return BlendModeOverride(BlendMode(src_rgb, dst_rgb, src_alpha, dst_alpha))


def render_target_index(name: str) -> int:
    """Map ``colortex<N>`` or a legacy buffer name to a render target index.

    Raises:
        ValueError: If the name is not a render target
    """
    match = _COLORTEX_RE.fullmatch(name)
    if match is not None:
        return int(match.group(1))
    if name in LEGACY_RENDER_TARGETS:
        return LEGACY_RENDER_TARGETS.index(name)
    raise ValueError(f"unknown render target {name}")
