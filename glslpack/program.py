"""
Resolution of per-program directives.

This module combines the directives found in a program's fragment stage with
the pack-wide shader properties into a single ProgramDirectives record.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from loguru import logger

from glslpack.blending import AlphaTest, BlendModeOverride
from glslpack.constants import (
    DEFAULT_DRAW_BUFFERS,
    DEFAULT_VIEWPORT_SCALE,
    LEGACY_RENDER_TARGETS,
)
from glslpack.directives import (
    DispatchingDirectiveHolder,
    applied_directive,
    find_directive,
    find_directives,
    parse_payload,
)
from glslpack.errors import ShaderPackError, UnknownRenderTarget
from glslpack.models import CommentDirectiveType, ProgramSource, StageKind
from glslpack.properties import ShaderProperties


@dataclass(frozen=True)
class ProgramDirectives:
    """Rendering configuration of one program.

    Attributes:
        draw_buffers: Render targets the fragment stage writes, never empty
        viewport_scale: Viewport scale, always positive
        alpha_test_override: Alpha test override, None keeps the renderer default
        blend_mode_override: Blend override, None keeps the renderer default
        mipmapped_buffers: Render targets that get mipmaps generated
        explicit_flips: Render target to flip flag declared by the pack
    """

    draw_buffers: tuple[int, ...] = DEFAULT_DRAW_BUFFERS
    viewport_scale: float = DEFAULT_VIEWPORT_SCALE
    alpha_test_override: AlphaTest | None = None
    blend_mode_override: BlendModeOverride | None = None
    mipmapped_buffers: frozenset[int] = frozenset()
    explicit_flips: Mapping[int, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.draw_buffers:
            raise ValueError("A program needs at least one draw buffer")
        if not self.viewport_scale > 0:
            raise ValueError(f"Viewport scale must be positive, got {self.viewport_scale}")
        object.__setattr__(self, "draw_buffers", tuple(self.draw_buffers))
        object.__setattr__(self, "mipmapped_buffers", frozenset(self.mipmapped_buffers))
        object.__setattr__(self, "explicit_flips", MappingProxyType(dict(self.explicit_flips)))

    @classmethod
    def resolve(
        cls,
        source: ProgramSource,
        properties: ShaderProperties | None,
        supported_render_targets: Iterable[int],
        default_blend_override: BlendModeOverride | None = None,
    ) -> "ProgramDirectives":
        """Shorthand for resolve_program_directives."""
        return resolve_program_directives(
            source, properties, supported_render_targets, default_blend_override
        )

    def __hash__(self) -> int:
        # explicit_flips is a read-only mapping, which is not hashable itself
        return hash(
            (
                self.draw_buffers,
                self.viewport_scale,
                self.alpha_test_override,
                self.blend_mode_override,
                self.mipmapped_buffers,
                tuple(sorted(self.explicit_flips.items())),
            )
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a deterministic, JSON-serialisable view of the record."""
        alpha = self.alpha_test_override
        blend = self.blend_mode_override
        return {
            "draw_buffers": list(self.draw_buffers),
            "viewport_scale": self.viewport_scale,
            "alpha_test_override": (
                None
                if alpha is None
                else {"function": alpha.function.name, "reference": alpha.reference}
            ),
            "blend_mode_override": _blend_to_dict(blend),
            "mipmapped_buffers": sorted(self.mipmapped_buffers),
            "explicit_flips": {
                str(index): flip for index, flip in sorted(self.explicit_flips.items())
            },
        }


def _blend_to_dict(blend: BlendModeOverride | None) -> dict[str, str] | str | None:
    if blend is None:
        return None
    if blend.is_off:
        return "OFF"
    mode = blend.blend_mode
    return {
        "src_rgb": mode.src_rgb.name,
        "dst_rgb": mode.dst_rgb.name,
        "src_alpha": mode.src_alpha.name,
        "dst_alpha": mode.dst_alpha.name,
    }


def resolve_draw_buffers(
    fragment: str | None, supported_render_targets: frozenset[int]
) -> tuple[int, ...]:
    """Work out which render targets the fragment stage writes.

    Args:
        fragment: Preprocessed fragment source, None if the stage is missing
        supported_render_targets: Render targets the driver supports

    Returns:
        The draw buffers, ``(0,)`` when no directive says otherwise

    Raises:
        MalformedDirective: If the applied directive has a bad payload
        UnknownRenderTarget: If a draw buffer is not supported
    """
    if fragment is None:
        return DEFAULT_DRAW_BUFFERS

    directive = applied_directive(
        find_directive(fragment, CommentDirectiveType.DRAWBUFFERS),
        find_directive(fragment, CommentDirectiveType.RENDERTARGETS),
    )
    if directive is None:
        return DEFAULT_DRAW_BUFFERS

    buffers = parse_payload(directive)
    if not buffers:
        return DEFAULT_DRAW_BUFFERS

    for index in buffers:
        if index not in supported_render_targets:
            raise UnknownRenderTarget(
                f"{directive.kind.name} directive refers to unsupported render target {index}",
                index=index,
                supported=supported_render_targets,
            )
    return tuple(buffers)


def _mipmap_handler(
    index: int, mipmapped: set[int], legacy_name: str | None, modern: bool
) -> Callable[[bool], None]:
    def handle(enabled: bool) -> None:
        if legacy_name is not None and modern:
            logger.warning(
                f"Legacy name {legacy_name}MipmapEnabled used, prefer colortex{index}MipmapEnabled"
            )
        if enabled:
            mipmapped.add(index)
        else:
            mipmapped.discard(index)

    return handle


def resolve_mipmapped_buffers(
    fragment: str | None, supported_render_targets: frozenset[int]
) -> frozenset[int]:
    """Collect the render targets the fragment stage enables mipmaps for.

    Both ``colortex<N>MipmapEnabled`` and the legacy ``<name>MipmapEnabled``
    spellings are honoured; the last declaration in source order wins.
    """
    mipmapped: set[int] = set()
    if fragment is None:
        return frozenset()

    modern = len(supported_render_targets) > len(LEGACY_RENDER_TARGETS)
    holder = DispatchingDirectiveHolder()
    for index in sorted(supported_render_targets):
        holder.accept_const_boolean_directive(
            f"colortex{index}MipmapEnabled", _mipmap_handler(index, mipmapped, None, modern)
        )
        if index < len(LEGACY_RENDER_TARGETS):
            legacy_name = LEGACY_RENDER_TARGETS[index]
            holder.accept_const_boolean_directive(
                f"{legacy_name}MipmapEnabled",
                _mipmap_handler(index, mipmapped, legacy_name, modern),
            )

    holder.process_directives(find_directives(fragment))
    return frozenset(mipmapped)


def resolve_program_directives(
    source: ProgramSource,
    properties: ShaderProperties | None,
    supported_render_targets: Iterable[int],
    default_blend_override: BlendModeOverride | None = None,
) -> ProgramDirectives:
    """Resolve the directives of one program.

    Only the fragment stage contributes draw buffers and mipmap flags. A
    missing fragment stage keeps the defaults.

    Args:
        source: The program, stages already preprocessed
        properties: Pack-wide shader properties, None when the pack has none
        supported_render_targets: Render targets the driver supports
        default_blend_override: Blend override used when the properties have
            none for this program

    Returns:
        The resolved program directives

    Raises:
        MalformedDirective: If a comment directive has a bad payload
        UnknownRenderTarget: If a draw buffer is not supported
    """
    supported = frozenset(supported_render_targets)
    fragment = source.fragment_text

    try:
        draw_buffers = resolve_draw_buffers(fragment, supported)
        mipmapped = resolve_mipmapped_buffers(fragment, supported)
    except ShaderPackError as e:
        raise e.with_program(source.name, StageKind.FRAGMENT.value) from e

    if properties is not None:
        viewport_scale = properties.viewport_scale_overrides.get(
            source.name, DEFAULT_VIEWPORT_SCALE
        )
        alpha_test = properties.alpha_test_overrides.get(source.name)
        blend = properties.blend_mode_overrides.get(source.name, default_blend_override)
    else:
        viewport_scale = DEFAULT_VIEWPORT_SCALE
        alpha_test = None
        blend = default_blend_override

    if source.parent is not None:
        explicit_flips = source.parent.explicit_flips(source.name)
    elif properties is not None:
        explicit_flips = properties.get_explicit_flips(source.name)
    else:
        explicit_flips = {}

    directives = ProgramDirectives(
        draw_buffers=draw_buffers,
        viewport_scale=viewport_scale,
        alpha_test_override=alpha_test,
        blend_mode_override=blend,
        mipmapped_buffers=mipmapped,
        explicit_flips=explicit_flips,
    )
    logger.debug(f"Resolved directives for {source.name}: {directives.to_dict()}")
    return directives
