"""
Character and token utilities shared by the preprocessor and directive parsers.
"""

import re

# Multi-character punctuators first so the alternation picks the longest one
_TOKEN_RE = re.compile(
    r"""
    (?P<ws>[ \t\r\f\v]+)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<number>\.?[0-9](?:[eE][+-]|[A-Za-z0-9_.])*)
    |(?P<punct>\#\#|<<|>>|<=|>=|==|!=|&&|\|\||\+\+|--|[-+*/%<>=!~&|^?:,;.()\[\]{}\#])
    |(?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)


def is_identifier_start(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_identifier_char(ch: str) -> bool:
    return is_identifier_start(ch) or ch.isdigit()


def is_identifier(text: str) -> bool:
    """Check whether text is a single GLSL/C identifier."""
    return (
        bool(text)
        and is_identifier_start(text[0])
        and all(is_identifier_char(ch) for ch in text[1:])
    )


def tokenize(code: str) -> list[str]:
    """Split a piece of code (no comments) into tokens.

    Whitespace runs are kept as tokens, so joining the result gives back the
    input exactly.
    """
    return [match.group(0) for match in _TOKEN_RE.finditer(code)]


def split_comments(line: str, in_block: bool) -> tuple[list[tuple[bool, str]], bool]:
    """Split one line into code and comment segments.

    Args:
        line: A single line without its newline
        in_block: Whether the line starts inside a block comment

    Returns:
        Tuple of (segments, in_block) where each segment is
        ``(is_comment, text)`` and in_block tells whether a block comment is
        still open at the end of the line
    """
    segments: list[tuple[bool, str]] = []
    pos = 0
    length = len(line)

    while pos < length:
        if in_block:
            end = line.find("*/", pos)
            if end == -1:
                segments.append((True, line[pos:]))
                pos = length
            else:
                segments.append((True, line[pos : end + 2]))
                pos = end + 2
                in_block = False
            continue

        block = line.find("/*", pos)
        single = line.find("//", pos)
        starts = [i for i in (block, single) if i != -1]
        if not starts:
            segments.append((False, line[pos:]))
            break

        start = min(starts)
        if start > pos:
            segments.append((False, line[pos:start]))
        if start == single:
            segments.append((True, line[start:]))
            break
        end = line.find("*/", start + 2)
        if end == -1:
            segments.append((True, line[start:]))
            in_block = True
            pos = length
        else:
            segments.append((True, line[start : end + 2]))
            pos = end + 2

    return segments, in_block


def mask_comments(text: str) -> str:
    """Replace every comment character except newlines with a space.

    Offsets in the returned text line up with offsets in the input.
    """
    out: list[str] = []
    in_block = False
    for line in text.split("\n"):
        segments, in_block = split_comments(line, in_block)
        out.append(
            "".join(" " * len(part) if is_comment else part for is_comment, part in segments)
        )
    return "\n".join(out)


def brace_depths(text: str, offsets: list[int]) -> list[int]:
    """Compute the ``{}`` nesting depth at each of the given sorted offsets.

    The text is expected to have comments masked already.
    """
    depths: list[int] = []
    depth = 0
    pos = 0
    for offset in offsets:
        chunk = text[pos:offset]
        depth += chunk.count("{") - chunk.count("}")
        depths.append(max(depth, 0))
        pos = offset
    return depths


def line_number(text: str, offset: int) -> int:
    """Return the 1-based line number of an offset."""
    return text.count("\n", 0, offset) + 1
