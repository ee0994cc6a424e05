"""Tests for #version/#extension hoisting."""

import textwrap

import pytest

from glslpack.errors import InputRejected, PreprocessFailed
from glslpack.preprocessor import (
    EXTENSION_MARKER,
    VERSION_MARKER,
    collect_hoisted,
    glsl_preprocess_source,
    preprocess_source,
)


class TestPreprocessSource:
    """Test cases for preprocess_source / glsl_preprocess_source."""

    def test_version_inside_conditional_is_hoisted(self):
        """Test hoisting of a #version behind a macro check."""
        # Arrange
        source = textwrap.dedent(
            """\
            #define USE_LOD
            #ifdef USE_LOD
            #version 130
            #extension GL_ARB_shader_texture_lod : enable
            #endif
            uniform sampler2D tex;
            void main() {}
            """
        )

        # Act
        result = preprocess_source(source)

        # Assert
        assert result.hoisted_lines == [
            "#version 130",
            "#extension GL_ARB_shader_texture_lod : enable",
        ]
        assert result.text.startswith(
            "#version 130\n#extension GL_ARB_shader_texture_lod : enable\n"
        )
        assert "uniform sampler2D tex;" in result.body
        assert "void main() {}" in result.body
        assert "#version" not in result.body

    def test_inactive_branch_directives_are_not_hoisted(self):
        source = textwrap.dedent(
            """\
            #version 120
            #ifdef MC_GL_ARB_shader_texture_lod
            #extension GL_ARB_shader_texture_lod : require
            #endif
            void main() {}
            """
        )

        result = preprocess_source(source)

        assert result.hoisted_lines == ["#version 120"]
        assert "GL_ARB_shader_texture_lod" not in result.text

    def test_predefined_macro_enables_branch(self):
        source = textwrap.dedent(
            """\
            #version 120
            #ifdef MC_GL_ARB_shader_texture_lod
            #extension GL_ARB_shader_texture_lod : require
            #endif
            """
        )

        result = preprocess_source(source, {"MC_GL_ARB_shader_texture_lod": "1"})

        assert result.hoisted_lines == [
            "#version 120",
            "#extension GL_ARB_shader_texture_lod : require",
        ]

    def test_order_and_duplicates_are_preserved(self):
        source = textwrap.dedent(
            """\
            #extension GL_EXT_gpu_shader4 : enable
            void helper() {}
            #version 120
            #extension GL_EXT_gpu_shader4 : enable
            """
        )

        result = preprocess_source(source)

        assert result.hoisted_lines == [
            "#extension GL_EXT_gpu_shader4 : enable",
            "#version 120",
            "#extension GL_EXT_gpu_shader4 : enable",
        ]

    def test_no_directives_gives_empty_hoist(self):
        result = preprocess_source("void main() {}\n")

        assert result.hoist == ""
        assert result.hoisted_lines == []
        assert result.text == "\nvoid main() {}\n"

    def test_comments_survive(self):
        source = "#version 120\n/* DRAWBUFFERS:01 */\nvoid main() {}\n"

        text = glsl_preprocess_source(source)

        assert "/* DRAWBUFFERS:01 */" in text

    def test_output_is_a_fixed_point(self):
        """Test that preprocessing the output again changes nothing."""
        source = textwrap.dedent(
            """\
            #define FOG 1
            #if FOG
            #version 120
            #endif
            // fog
            float fog = FOG;
            void main() {}
            """
        )

        once = glsl_preprocess_source(source)
        twice = glsl_preprocess_source(once)

        assert twice == once

    def test_trailing_comment_on_directive_is_dropped(self):
        result = preprocess_source("#version 120 // legacy profile\n")

        assert result.hoisted_lines == ["#version 120"]

    def test_marker_in_input_is_rejected(self):
        source = f"{VERSION_MARKER} 120\nvoid main() {{}}\n"

        with pytest.raises(InputRejected):
            preprocess_source(source)

    def test_marker_in_comment_is_rejected(self):
        source = f"// {EXTENSION_MARKER}\nvoid main() {{}}\n"

        with pytest.raises(InputRejected):
            glsl_preprocess_source(source)

    def test_marker_in_included_file_is_rejected(self):
        files = {"lib.glsl": f"{VERSION_MARKER} 460\n"}

        with pytest.raises(InputRejected):
            preprocess_source(
                '#version 120\n#include "lib.glsl"\n', include_resolver=files.get
            )

    def test_block_comment_on_version_line(self):
        result = preprocess_source("#version 120 /* legacy\nprofile */\nvoid main() {}\n")

        assert result.hoisted_lines == ["#version 120"]
        assert result.body == "void main() {}"
        assert result.body.count("*/") == result.body.count("/*")

    def test_preprocess_failure_propagates(self):
        with pytest.raises(PreprocessFailed) as excinfo:
            preprocess_source("#if 1\n#version 120\n")

        assert excinfo.value.line == 1


class TestCollectHoisted:
    """Test cases for collect_hoisted."""

    def test_markers_become_directives(self):
        processed = f"\n{VERSION_MARKER} 330 core\nvoid main() {{}}\n{EXTENSION_MARKER} GL_foo : enable"

        result = collect_hoisted(processed)

        assert result.hoist == "#version 330 core\n#extension GL_foo : enable"
        assert result.body == "void main() {}"

    def test_body_keeps_inner_blank_lines(self):
        result = collect_hoisted("a\n\nb\n")

        assert result.body == "a\n\nb"
