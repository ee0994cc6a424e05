"""
Parser for directives written inside block comments.

Fragment stages declare their outputs with ``/* DRAWBUFFERS:0247 */`` or
``/* RENDERTARGETS:0,2,4,7,10,11 */``. When a directive appears several times
the last occurrence wins, since authors routinely leave stale directives
commented out above the active one.
"""

import re

from loguru import logger

from glslpack.errors import MalformedDirective
from glslpack.models import CommentDirective, CommentDirectiveType
from glslpack.utils import line_number

_DIRECTIVE_PATTERNS: dict[CommentDirectiveType, re.Pattern[str]] = {
    kind: re.compile(r"/\*\s*" + kind.name + r":(.*?)\*/", re.DOTALL)
    for kind in CommentDirectiveType
}


def find_directive(text: str, kind: CommentDirectiveType) -> CommentDirective | None:
    """Find the last comment directive of the given kind.

    Args:
        text: Preprocessed stage source
        kind: Directive kind to look for

    Returns:
        The last directive of that kind, or None when there is none
    """
    last = None
    for match in _DIRECTIVE_PATTERNS[kind].finditer(text):
        last = match
    if last is None:
        return None

    directive = CommentDirective(
        kind=kind, payload=last.group(1).strip(), location=last.start()
    )
    logger.debug(
        f"Found {kind.name} directive {directive.payload!r} "
        f"on line {line_number(text, directive.location)}"
    )
    return directive


def parse_digits(payload: str) -> list[int]:
    """Parse a DRAWBUFFERS payload, one render target per digit.

    Raises:
        MalformedDirective: If the payload contains anything but digits
    """
    buffers = []
    for ch in payload:
        if not "0" <= ch <= "9":
            raise MalformedDirective(
                f"Invalid character {ch!r} in DRAWBUFFERS directive {payload!r}",
                kind=CommentDirectiveType.DRAWBUFFERS.name,
                payload=payload,
            )
        buffers.append(int(ch))
    return buffers


def parse_digit_list(payload: str) -> list[int]:
    """Parse a RENDERTARGETS payload, a comma separated list of integers.

    Raises:
        MalformedDirective: If an entry is not a decimal integer
    """
    if not payload.strip():
        return []

    buffers = []
    for entry in payload.split(","):
        entry = entry.strip()
        if not entry.isascii() or not entry.isdigit():
            raise MalformedDirective(
                f"Invalid render target {entry!r} in RENDERTARGETS directive {payload!r}",
                kind=CommentDirectiveType.RENDERTARGETS.name,
                payload=payload,
            )
        buffers.append(int(entry))
    return buffers


def parse_payload(directive: CommentDirective) -> list[int]:
    """Parse a comment directive payload into render target indices.

    An empty payload yields an empty list; the caller decides the fallback.
    """
    if not directive.payload:
        logger.warning(f"Empty {directive.kind.name} directive at {directive.location}")
        return []
    if directive.kind is CommentDirectiveType.DRAWBUFFERS:
        return parse_digits(directive.payload)
    return parse_digit_list(directive.payload)


def applied_directive(
    drawbuffers: CommentDirective | None, rendertargets: CommentDirective | None
) -> CommentDirective | None:
    """Pick the directive in effect when both kinds may be present.

    The one at the larger offset wins, even when it sits inside a line comment
    or inside a larger commented-out block.
    """
    match (drawbuffers, rendertargets):
        case (None, None):
            return None
        case (directive, None) | (None, directive):
            return directive
        case _:
            if drawbuffers.location > rendertargets.location:
                return drawbuffers
            return rendertargets
