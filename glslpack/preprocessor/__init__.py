"""
GLSL preprocessing for shader pack stages.

This module provides the public preprocessing entry points: macro expansion
and conditional compilation with comments preserved, plus hoisting of the
``#version``/``#extension`` directives that survive.
"""

from glslpack.preprocessor.hoisting import (
    PreprocessedSource,
    collect_hoisted,
    glsl_preprocess_source,
    preprocess_source,
)
from glslpack.preprocessor.processor import (
    EXTENSION_MARKER,
    VERSION_MARKER,
    GlslPreprocessor,
    IncludeResolver,
    check_markers,
)

__all__ = [
    "EXTENSION_MARKER",
    "VERSION_MARKER",
    "GlslPreprocessor",
    "IncludeResolver",
    "PreprocessedSource",
    "check_markers",
    "collect_hoisted",
    "glsl_preprocess_source",
    "preprocess_source",
]
