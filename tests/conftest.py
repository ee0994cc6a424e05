"""Fixtures and configuration for pytest."""

import textwrap

import pytest
from loguru import logger

from glslpack.blending import (
    AlphaTest,
    AlphaTestFunction,
    BlendFactor,
    BlendMode,
    BlendModeOverride,
)
from glslpack.models import ProgramSource, StageKind
from glslpack.pack import DictAssetProvider, ShaderPack
from glslpack.properties import ShaderProperties

VERTEX_SOURCE = textwrap.dedent(
    """\
    #version 120
    void main() {
        gl_Position = ftransform();
    }
    """
)


@pytest.fixture
def supported_targets():
    """Render targets of a modern driver."""
    return frozenset(range(16))


@pytest.fixture
def legacy_targets():
    """Render targets of a legacy driver."""
    return frozenset(range(8))


@pytest.fixture
def make_program():
    """Factory building a program source from a fragment stage text."""

    def _make(fragment, name="gbuffers_terrain", vertex=VERTEX_SOURCE):
        return ProgramSource.from_texts(
            name, {StageKind.VERTEX: vertex, StageKind.FRAGMENT: fragment}
        )

    return _make


@pytest.fixture
def additive_blend():
    return BlendModeOverride(
        BlendMode(
            BlendFactor.SRC_ALPHA,
            BlendFactor.ONE,
            BlendFactor.ONE,
            BlendFactor.ONE_MINUS_SRC_ALPHA,
        )
    )


@pytest.fixture
def properties(additive_blend):
    """Shader properties with one override of every kind."""
    return ShaderProperties(
        viewport_scale_overrides={"composite": 0.5},
        alpha_test_overrides={"gbuffers_terrain": AlphaTest(AlphaTestFunction.GREATER, 0.1)},
        blend_mode_overrides={
            "gbuffers_water": additive_blend,
            "gbuffers_terrain": BlendModeOverride.OFF,
        },
        explicit_flips={"composite": {2: True, 4: False}},
    )


@pytest.fixture
def pack_files():
    """Stage files of a small but complete shader pack."""
    return {
        "gbuffers_terrain.vsh": VERTEX_SOURCE,
        "gbuffers_terrain.fsh": textwrap.dedent(
            """\
            #version 120
            #ifdef MC_GL_EXT
            #extension GL_EXT_gpu_shader4 : enable
            #endif
            const bool colortex1MipmapEnabled = true;
            void main() {
                /* DRAWBUFFERS:012 */
                gl_FragData[0] = vec4(1.0);
            }
            """
        ),
        "composite.vsh": VERTEX_SOURCE,
        "composite.fsh": textwrap.dedent(
            """\
            #version 120
            /* RENDERTARGETS:0,4 */
            void main() {}
            """
        ),
        "final.vsh": VERTEX_SOURCE,
        "final.fsh": "#version 120\n#if UNDEFINED_MACRO > 1\n#endif\nvoid main() {}\n",
    }


@pytest.fixture
def pack(pack_files, properties):
    """A shader pack served from memory."""
    return ShaderPack(DictAssetProvider(pack_files), properties)


@pytest.fixture
def log_messages():
    """Capture loguru records as (level, message) pairs."""
    messages = []
    handler_id = logger.add(
        lambda message: messages.append(
            (message.record["level"].name, message.record["message"])
        ),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)
