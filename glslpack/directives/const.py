"""
Parser for const-declaration directives.

Shader packs configure the renderer through top-level declarations such as
``const bool colortex2MipmapEnabled = true;``. The parser returns every such
declaration with a literal it can read; deciding which names matter is left
to the DispatchingDirectiveHolder.
"""

import re

from loguru import logger

from glslpack.models import ConstDirective, ConstType, ConstValue
from glslpack.preprocessor.expression import parse_int_literal
from glslpack.utils import brace_depths, line_number, mask_comments

_CONST_RE = re.compile(
    r"\bconst\s+(bool|int|float|vec4)\s+([A-Za-z_][A-Za-z0-9_]*)\s*=\s*([^;]*?)\s*;"
)
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.[0-9]*|\.[0-9]+|[0-9]+)(?:[eE][+-]?[0-9]+)?(?:f|F|lf|LF)?"
)
_VEC4_RE = re.compile(r"vec4\s*\(([^()]*)\)")


def parse_bool(literal: str) -> bool:
    if literal == "true":
        return True
    if literal == "false":
        return False
    raise ValueError(f"Invalid bool literal: {literal}")


def parse_int(literal: str) -> int:
    sign = 1
    if literal[:1] in ("-", "+"):
        sign = -1 if literal[0] == "-" else 1
        literal = literal[1:].lstrip()
    return sign * parse_int_literal(literal)


def parse_float(literal: str) -> float:
    if _FLOAT_RE.fullmatch(literal) is None:
        raise ValueError(f"Invalid float literal: {literal}")
    digits = literal.rstrip("fFlL")
    return float(digits)


def parse_vec4(literal: str) -> tuple[float, float, float, float]:
    match = _VEC4_RE.fullmatch(literal)
    if match is None:
        raise ValueError(f"Invalid vec4 literal: {literal}")
    components = [part.strip() for part in match.group(1).split(",")]
    if len(components) != 4:
        raise ValueError(f"vec4 literal needs 4 components: {literal}")
    r, g, b, a = (parse_float(part) for part in components)
    return (r, g, b, a)


LITERAL_PARSERS = {
    ConstType.BOOL: parse_bool,
    ConstType.INT: parse_int,
    ConstType.FLOAT: parse_float,
    ConstType.VEC4: parse_vec4,
}


def parse_literal(const_type: ConstType, literal: str) -> ConstValue:
    """Parse a literal following the GLSL rules for the given type.

    Raises:
        ValueError: If the literal is not valid for the type
    """
    return LITERAL_PARSERS[const_type](literal.strip())


def find_directives(text: str) -> list[ConstDirective]:
    """Find all top-level const declarations with parseable literals.

    Declarations inside comments or inside braces are skipped, as are
    declarations whose value is not a plain literal (most shaders declare
    plenty of computed constants).

    Args:
        text: Stage source, usually preprocessed

    Returns:
        Directives in order of appearance
    """
    masked = mask_comments(text)
    matches = list(_CONST_RE.finditer(masked))
    depths = brace_depths(masked, [match.start() for match in matches])

    directives = []
    for match, depth in zip(matches, depths):
        if depth != 0:
            continue
        type_name, name, literal = match.groups()
        const_type = ConstType(type_name)
        try:
            value = parse_literal(const_type, literal)
        except ValueError:
            logger.debug(
                f"Skipping const {name} with non-literal value {literal!r} "
                f"on line {line_number(text, match.start())}"
            )
            continue
        directives.append(
            ConstDirective(
                type=const_type, name=name, value=value, location=match.start()
            )
        )

    logger.debug(f"Found {len(directives)} const directives")
    return directives
