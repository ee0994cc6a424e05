"""Tests for the line-based GLSL preprocessor."""

import textwrap

import pytest

from glslpack.errors import PreprocessFailed
from glslpack.preprocessor import EXTENSION_MARKER, VERSION_MARKER, GlslPreprocessor


def process(text: str, **kwargs) -> str:
    return GlslPreprocessor(**kwargs).process(textwrap.dedent(text))


def code_lines(output: str) -> list[str]:
    return [line for line in output.split("\n") if line.strip()]


class TestConditionals:
    """Test cases for conditional compilation."""

    def test_ifdef_else(self):
        output = process(
            """\
            #define USE_FOG
            #ifdef USE_FOG
            float fog = 1.0;
            #else
            float fog = 0.0;
            #endif
            """
        )

        assert code_lines(output) == ["float fog = 1.0;"]

    def test_ifndef(self):
        output = process(
            """\
            #ifndef USE_FOG
            float fog = 0.0;
            #endif
            """
        )

        assert code_lines(output) == ["float fog = 0.0;"]

    def test_if_elif_else(self):
        source = """\
            #if SHADOW_QUALITY == 0
            low();
            #elif SHADOW_QUALITY == 1
            medium();
            #else
            high();
            #endif
            """

        assert code_lines(process(source, defines={"SHADOW_QUALITY": "0"})) == ["low();"]
        assert code_lines(process(source, defines={"SHADOW_QUALITY": "1"})) == ["medium();"]
        assert code_lines(process(source, defines={"SHADOW_QUALITY": "2"})) == ["high();"]

    def test_defined_operator(self):
        output = process(
            """\
            #define A
            #if defined(A) && !defined B
            yes();
            #endif
            """
        )

        assert code_lines(output) == ["yes();"]

    def test_nested_inactive_branch_is_not_evaluated(self):
        """Test that expressions inside a skipped branch are never evaluated."""
        output = process(
            """\
            #if 0
            #if UNDEFINED_MACRO / 0
            never();
            #endif
            #elif 1
            taken();
            #endif
            """
        )

        assert code_lines(output) == ["taken();"]

    def test_only_first_true_branch_is_taken(self):
        output = process(
            """\
            #if 1
            first();
            #elif 1
            second();
            #else
            third();
            #endif
            """
        )

        assert code_lines(output) == ["first();"]

    def test_line_count_is_preserved(self):
        source = "#ifdef X\na\n#else\nb\n#endif\nc"

        output = process(source)

        assert output.split("\n") == ["", "", "", "b", "", "c"]

    def test_unmatched_endif(self):
        with pytest.raises(PreprocessFailed) as excinfo:
            process("void main() {}\n#endif\n")

        assert excinfo.value.line == 2
        assert "unmatched #endif" == excinfo.value.diagnostic

    def test_unterminated_if(self):
        with pytest.raises(PreprocessFailed, match="Unterminated conditional"):
            process("#if 1\nvoid main() {}\n")

    def test_else_after_else(self):
        with pytest.raises(PreprocessFailed):
            process("#if 1\n#else\n#else\n#endif\n")

    def test_undefined_macro_in_if(self):
        with pytest.raises(PreprocessFailed, match="undefined macro 'MC_VERSION'"):
            process("#if MC_VERSION >= 11300\n#endif\n")

    def test_error_directive(self):
        with pytest.raises(PreprocessFailed, match="#error unsupported"):
            process("#ifndef OK\n#error unsupported\n#endif\n")

    @pytest.mark.parametrize(
        ("defines", "expected"),
        [
            ({}, ["old();"]),
            ({"MC_VERSION": "11605"}, ["new();"]),
        ],
    )
    def test_defined_guard_short_circuits(self, defines, expected):
        output = process(
            """\
            #if defined(MC_VERSION) && MC_VERSION >= 11300
            new();
            #else
            old();
            #endif
            """,
            defines=defines,
        )

        assert code_lines(output) == expected


class TestMacros:
    """Test cases for #define / #undef handling."""

    def test_define_and_expand(self):
        output = process(
            """\
            #define SHADOW_RES 2048
            const int shadowMapResolution = SHADOW_RES;
            """
        )

        assert code_lines(output) == ["const int shadowMapResolution = 2048;"]

    def test_undef(self):
        output = process(
            """\
            #define A 1
            #undef A
            int a = A;
            """
        )

        assert code_lines(output) == ["int a = A;"]

    def test_line_continuation(self):
        output = process(
            """\
            #define LONG_MACRO(x) \\
                ((x) + 1)
            int a = LONG_MACRO(2);
            """
        )

        assert code_lines(output) == ["int a = ((2) + 1);"]
        assert len(output.split("\n")) == 4

    def test_invocation_spanning_lines(self):
        output = process(
            """\
            #define ADD(a, b) ((a) + (b))
            float v = ADD(1.0,
                          2.0);
            """
        )

        assert "float v = ((1.0) + (2.0));" in output


class TestComments:
    """Test cases for comment handling."""

    def test_comments_are_preserved(self):
        output = process(
            """\
            // line comment
            /* DRAWBUFFERS:012 */
            void main() {}
            """
        )

        assert code_lines(output) == ["// line comment", "/* DRAWBUFFERS:012 */", "void main() {}"]

    def test_macros_not_expanded_in_comments(self):
        output = process(
            """\
            #define GAMMA 2.2
            float g = GAMMA; // GAMMA stays here
            """
        )

        assert code_lines(output) == ["float g = 2.2; // GAMMA stays here"]

    def test_directives_inside_block_comment_are_ignored(self):
        output = process(
            """\
            /*
            #define HIDDEN 1
            #error not a directive
            */
            int h = HIDDEN;
            """
        )

        assert "#define HIDDEN 1" in output
        assert "int h = HIDDEN;" in output

    def test_block_comment_opened_on_directive_line(self):
        output = process("#define A 1 /* start of note\nstill note */\nint a = A;\n")

        assert code_lines(output) == ["int a = 1;"]
        assert "*/" not in output

    def test_directive_after_comment_close(self):
        output = process("/* note\nend */ #define X 1\nint x = X;\n")

        assert "/* note end */" in output
        assert "int x = 1;" in output
        assert output.count("/*") == output.count("*/")


class TestPassThrough:
    """Test cases for directives left to the driver."""

    def test_pragma_passes_through(self):
        output = process("#pragma optimize(on)\nvoid main() {}\n")

        assert code_lines(output)[0] == "#pragma optimize(on)"

    def test_include_without_resolver_passes_through(self):
        output = process('#include "/lib/settings.glsl"\n')

        assert code_lines(output) == ['#include "/lib/settings.glsl"']

    def test_include_with_resolver(self):
        files = {"/lib/settings.glsl": "#define SHADOWS\nconst float exposure = 1.0;"}

        output = process(
            """\
            #include "/lib/settings.glsl"
            #ifdef SHADOWS
            shadows();
            #endif
            """,
            include_resolver=files.get,
        )

        assert code_lines(output) == ["const float exposure = 1.0;", "shadows();"]

    def test_missing_include(self):
        with pytest.raises(PreprocessFailed, match="Included file not found"):
            process('#include "missing.glsl"\n', include_resolver=lambda path: None)

    def test_recursive_include(self):
        files = {"a.glsl": '#include "a.glsl"'}

        with pytest.raises(PreprocessFailed, match="nested too deeply"):
            process('#include "a.glsl"\n', include_resolver=files.get)


class TestHoistedDirectives:
    """Test cases for #version/#extension marking."""

    def test_active_directives_are_marked(self):
        output = process(
            """\
            #version 120
            #extension GL_EXT_gpu_shader4 : require
            """
        )

        assert code_lines(output) == [
            f"{VERSION_MARKER} 120",
            f"{EXTENSION_MARKER} GL_EXT_gpu_shader4 : require",
        ]

    def test_inactive_directives_are_dropped(self):
        output = process(
            """\
            #ifdef NEVER
            #extension GL_ARB_shader_texture_lod : enable
            #endif
            """
        )

        assert EXTENSION_MARKER not in output
        assert "#extension" not in output
