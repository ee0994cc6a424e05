"""
Alpha test and blend mode models.

These are the per-program render state overrides a shader pack can declare
in its properties file.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class AlphaTestFunction(Enum):
    """Alpha test comparison functions with their GL enum values."""

    NEVER = 0x0200
    LESS = 0x0201
    EQUAL = 0x0202
    LEQUAL = 0x0203
    GREATER = 0x0204
    NOTEQUAL = 0x0205
    GEQUAL = 0x0206
    ALWAYS = 0x0207
    OFF = None

    @classmethod
    def from_name(cls, name: str) -> "AlphaTestFunction":
        """Look up a function by name, case-insensitively.

        Raises:
            ValueError: If the name is not a known function
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown alpha test function: {name}") from None


@dataclass(frozen=True)
class AlphaTest:
    """An alpha test override: a comparison function and a reference value."""

    function: AlphaTestFunction
    reference: float = 0.0

    OFF: ClassVar["AlphaTest"]

    @property
    def is_off(self) -> bool:
        return self.function is AlphaTestFunction.OFF


AlphaTest.OFF = AlphaTest(AlphaTestFunction.OFF, 0.0)


class BlendFactor(Enum):
    """Blend factors with their GL enum values."""

    ZERO = 0
    ONE = 1
    SRC_COLOR = 0x0300
    ONE_MINUS_SRC_COLOR = 0x0301
    SRC_ALPHA = 0x0302
    ONE_MINUS_SRC_ALPHA = 0x0303
    DST_ALPHA = 0x0304
    ONE_MINUS_DST_ALPHA = 0x0305
    DST_COLOR = 0x0306
    ONE_MINUS_DST_COLOR = 0x0307
    SRC_ALPHA_SATURATE = 0x0308

    @classmethod
    def from_name(cls, name: str) -> "BlendFactor":
        """Look up a blend factor by name, accepting an optional GL_ prefix.

        Raises:
            ValueError: If the name is not a known blend factor
        """
        key = name.strip().upper()
        if key.startswith("GL_"):
            key = key[3:]
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown blend factor: {name}") from None


@dataclass(frozen=True)
class BlendMode:
    """Separate color and alpha blend factors."""

    src_rgb: BlendFactor
    dst_rgb: BlendFactor
    src_alpha: BlendFactor
    dst_alpha: BlendFactor


@dataclass(frozen=True)
class BlendModeOverride:
    """A blend override; a missing blend mode means blending is turned off.

    An absent override is spelled ``None`` by callers, which keeps "no
    override" distinct from ``BlendModeOverride.OFF``.
    """

    blend_mode: BlendMode | None = None

    OFF: ClassVar["BlendModeOverride"]

    @property
    def is_off(self) -> bool:
        return self.blend_mode is None


BlendModeOverride.OFF = BlendModeOverride(None)
