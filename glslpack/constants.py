"""
Constants shared across the shader pack configuration core.

This module contains the legacy render target names, stage file extensions,
the fixed vertex attribute bindings and the list of well-known program names.
"""

# Legacy render target names, indexed by render target. Only indices 0-3 have
# a legacy name in draw buffer contexts; gaux1-gaux4 (4-7) only show up in
# mipmap-enable keys.
LEGACY_RENDER_TARGETS: tuple[str, ...] = (
    "gcolor",
    "gdepth",
    "gnormal",
    "composite",
    "gaux1",
    "gaux2",
    "gaux3",
    "gaux4",
)

# Render targets available on modern and legacy drivers
MAX_RENDER_TARGETS = 16
MAX_LEGACY_RENDER_TARGETS = len(LEGACY_RENDER_TARGETS)

DEFAULT_DRAW_BUFFERS: tuple[int, ...] = (0,)
DEFAULT_VIEWPORT_SCALE = 1.0

# Stage file extensions used by shader packs
STAGE_EXTENSIONS: dict[str, str] = {
    "vertex": ".vsh",
    "geometry": ".gsh",
    "fragment": ".fsh",
    "compute": ".csh",
}

# Vertex attributes bound before linking, as (location, name)
ATTRIBUTE_BINDINGS: tuple[tuple[int, str], ...] = (
    (10, "mc_Entity"),
    (11, "mc_midTexCoord"),
    (12, "at_tangent"),
)

# Maximum nesting depth of #include resolution
MAX_INCLUDE_DEPTH = 32

# Programs a shader pack may provide, in pipeline order
KNOWN_PROGRAMS: tuple[str, ...] = (
    "shadow",
    "shadowcomp",
    "prepare",
    "gbuffers_basic",
    "gbuffers_line",
    "gbuffers_textured",
    "gbuffers_textured_lit",
    "gbuffers_skybasic",
    "gbuffers_skytextured",
    "gbuffers_clouds",
    "gbuffers_terrain",
    "gbuffers_damagedblock",
    "gbuffers_block",
    "gbuffers_beaconbeam",
    "gbuffers_entities",
    "gbuffers_entities_glowing",
    "gbuffers_armor_glint",
    "gbuffers_spidereyes",
    "gbuffers_hand",
    "gbuffers_weather",
    "deferred",
    *(f"deferred{i}" for i in range(1, 16)),
    "gbuffers_water",
    "gbuffers_hand_water",
    "composite",
    *(f"composite{i}" for i in range(1, 16)),
    "final",
)
