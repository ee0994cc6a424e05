"""
Extraction of rendering directives embedded in shader source.
"""

from glslpack.directives.comment import (
    applied_directive,
    find_directive,
    parse_digit_list,
    parse_digits,
    parse_payload,
)
from glslpack.directives.const import find_directives, parse_literal
from glslpack.directives.holder import DirectiveHandler, DispatchingDirectiveHolder

__all__ = [
    "DirectiveHandler",
    "DispatchingDirectiveHolder",
    "applied_directive",
    "find_directive",
    "find_directives",
    "parse_digit_list",
    "parse_digits",
    "parse_literal",
    "parse_payload",
]
