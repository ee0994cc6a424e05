"""
Line-based GLSL preprocessor.

Handles macro definitions, conditional compilation and (optionally) includes,
keeping comments intact. ``#version`` and ``#extension`` lines in active
branches are not emitted as-is: they are rewritten with a sentinel marker so
the hoisting step can find exactly the ones that survived.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from glslpack.constants import MAX_INCLUDE_DEPTH
from glslpack.errors import InputRejected, PreprocessFailed
from glslpack.preprocessor.expression import evaluate_expression
from glslpack.preprocessor.macros import MacroTable, UnterminatedInvocation, parse_define
from glslpack.utils import is_identifier, split_comments, tokenize

# '$' is outside the GLSL character set, so these can never come from a shader
VERSION_MARKER = "$$glslpack_version$$"
EXTENSION_MARKER = "$$glslpack_extension$$"

HOISTED_DIRECTIVES: dict[str, str] = {
    "version": VERSION_MARKER,
    "extension": EXTENSION_MARKER,
}

IncludeResolver = Callable[[str], str | None]

_DIRECTIVE_RE = re.compile(r"\s*#\s*([A-Za-z_]\w*)?(.*)", re.DOTALL)
_INCLUDE_RE = re.compile(r'\s*(?:"([^"]+)"|<([^>]+)>)\s*')


def check_markers(text: str) -> None:
    """Reject source text that contains an internal sentinel marker.

    Raises:
        InputRejected: If a marker is present
    """
    for marker in HOISTED_DIRECTIVES.values():
        if marker in text:
            raise InputRejected(f"Shader source contains the reserved marker {marker!r}")


@dataclass
class _Conditional:
    """State of one open #if group."""

    parent_active: bool
    active: bool
    taken: bool
    line: int
    seen_else: bool = False


class GlslPreprocessor:
    """A C-style preprocessor aware of GLSL's ``#version``/``#extension``.

    One instance processes one source; the macro table it builds is not
    shared with other sources.
    """

    def __init__(
        self,
        defines: dict[str, str] | None = None,
        include_resolver: IncludeResolver | None = None,
    ):
        """Initialize the preprocessor.

        Args:
            defines: Predefined macros, name to replacement text
            include_resolver: Callable returning the text of an included
                file, or None when it cannot be found. Without a resolver,
                ``#include`` lines pass through untouched.
        """
        self.macros = MacroTable(defines)
        self.include_resolver = include_resolver

    def process(self, text: str) -> str:
        """Preprocess a source.

        Args:
            text: Raw source text

        Returns:
            The preprocessed text, hoisted directives rewritten with markers

        Raises:
            InputRejected: If an included file contains an internal marker
            PreprocessFailed: On any preprocessor diagnostic
        """
        out: list[str] = []
        self._process_text(text, out, depth=0)
        return "\n".join(out)

    def _process_text(self, text: str, out: list[str], depth: int) -> None:
        lines = text.split("\n")
        stack: list[_Conditional] = []
        in_block = False
        index = 0

        while index < len(lines):
            line_no = index + 1
            line = lines[index]
            index += 1
            segments, ends_in_block = split_comments(line, in_block)
            active = all(group.active for group in stack)

            if self._starts_directive(segments):
                if in_block:
                    # The comment left open by the previous line ends here
                    tail = segments[0][1]
                    if active:
                        out[-1] = f"{out[-1]} {tail}"
                    line = line[len(tail) :]
                    in_block = False
                logical = line
                while logical.endswith("\\") and index < len(lines):
                    logical = logical[:-1] + lines[index]
                    index += 1
                    out.append("")
                segments, ends_in_block = split_comments(logical, False)
                # A block comment opened on a directive line extends the directive
                while ends_in_block and index < len(lines):
                    logical = f"{logical}\n{lines[index]}"
                    index += 1
                    out.append("")
                    segments, ends_in_block = split_comments(logical, False)
                in_block = ends_in_block
                code = "".join(part for is_comment, part in segments if not is_comment)
                self._directive(code, logical, line_no, stack, out, depth)
                continue

            in_block = ends_in_block
            if not active:
                out.append("")
                continue

            tokens = self._line_tokens(segments)
            while True:
                try:
                    expanded = self.macros.expand(tokens, line=line_no)
                    break
                except UnterminatedInvocation:
                    # Invocation arguments continue on the next line
                    if index >= len(lines) or lines[index].lstrip().startswith("#"):
                        raise
                    segments, in_block = split_comments(lines[index], in_block)
                    tokens = tokens + ["\n"] + self._line_tokens(segments)
                    index += 1
            out.append("".join(expanded))

        if stack:
            raise PreprocessFailed(
                "Unterminated conditional directive",
                line=stack[-1].line,
                diagnostic="missing #endif",
            )

    @staticmethod
    def _starts_directive(segments: list[tuple[bool, str]]) -> bool:
        """Whether the first code on a line, after any comments, is a ``#``."""
        for is_comment, part in segments:
            if is_comment:
                continue
            stripped = part.lstrip()
            if stripped:
                return stripped.startswith("#")
        return False

    @staticmethod
    def _line_tokens(segments: list[tuple[bool, str]]) -> list[str]:
        tokens: list[str] = []
        for is_comment, part in segments:
            if is_comment:
                tokens.append(part)
            else:
                tokens.extend(tokenize(part))
        return tokens

    def _directive(
        self,
        code: str,
        logical: str,
        line_no: int,
        stack: list[_Conditional],
        out: list[str],
        depth: int,
    ) -> None:
        match = _DIRECTIVE_RE.match(code)
        name = match.group(1) or ""
        rest = match.group(2)
        active = all(group.active for group in stack)

        if name in ("if", "ifdef", "ifndef"):
            if active:
                result = self._condition(name, rest, line_no)
                stack.append(_Conditional(True, result, result, line_no))
            else:
                stack.append(_Conditional(False, False, True, line_no))
            out.append("")
            return

        if name in ("elif", "else", "endif"):
            if not stack:
                raise PreprocessFailed(
                    f"#{name} without #if",
                    line=line_no,
                    diagnostic=f"unmatched #{name}",
                )
            group = stack[-1]
            if name == "endif":
                stack.pop()
            elif group.seen_else:
                raise PreprocessFailed(
                    f"#{name} after #else",
                    line=line_no,
                    diagnostic=f"#{name} after #else",
                )
            elif group.taken or not group.parent_active:
                group.active = False
                group.seen_else = name == "else"
            else:
                group.seen_else = name == "else"
                group.active = group.seen_else or self._condition("if", rest, line_no)
                group.taken = group.active
            out.append("")
            return

        if not active:
            out.append("")
            return

        if name == "":
            # Null directive
            out.append("")
        elif name == "define":
            self.macros.define(parse_define(rest, line_no))
            out.append("")
        elif name == "undef":
            target = rest.strip()
            if not is_identifier(target):
                raise PreprocessFailed(
                    "Macro name missing in #undef", line=line_no, diagnostic=code
                )
            self.macros.undefine(target)
            out.append("")
        elif name == "error":
            raise PreprocessFailed(
                f"#error {rest.strip()}", line=line_no, diagnostic=rest.strip()
            )
        elif name in HOISTED_DIRECTIVES:
            out.append(f"{HOISTED_DIRECTIVES[name]} {rest.strip()}")
        elif name == "include" and self.include_resolver is not None:
            self._include(rest, line_no, out, depth)
        else:
            # #pragma, #line, #include without a resolver, ...
            out.append(logical)

    def _condition(self, name: str, rest: str, line_no: int) -> bool:
        if name in ("ifdef", "ifndef"):
            target = rest.strip()
            if not is_identifier(target):
                raise PreprocessFailed(
                    f"Macro name missing in #{name}", line=line_no, diagnostic=rest
                )
            defined = self.macros.is_defined(target)
            return defined if name == "ifdef" else not defined

        tokens = self._replace_defined(tokenize(rest.strip()), line_no)
        return evaluate_expression(self.macros.expand(tokens, line=line_no), line_no)

    def _replace_defined(self, tokens: list[str], line_no: int) -> list[str]:
        out: list[str] = []
        significant = [token for token in tokens if not token.isspace()]
        pos = 0
        while pos < len(significant):
            token = significant[pos]
            pos += 1
            if token != "defined":
                out.append(token)
                continue
            parenthesized = pos < len(significant) and significant[pos] == "("
            if parenthesized:
                pos += 1
            if pos >= len(significant) or not is_identifier(significant[pos]):
                raise PreprocessFailed(
                    "Macro name missing after 'defined'",
                    line=line_no,
                    diagnostic="".join(tokens),
                )
            out.append("1" if self.macros.is_defined(significant[pos]) else "0")
            pos += 1
            if parenthesized:
                if pos >= len(significant) or significant[pos] != ")":
                    raise PreprocessFailed(
                        "Missing ')' after 'defined'",
                        line=line_no,
                        diagnostic="".join(tokens),
                    )
                pos += 1
        return out

    def _include(self, rest: str, line_no: int, out: list[str], depth: int) -> None:
        match = _INCLUDE_RE.fullmatch(rest)
        if match is None:
            raise PreprocessFailed(
                "Malformed #include", line=line_no, diagnostic=rest.strip()
            )
        path = match.group(1) or match.group(2)
        if depth >= MAX_INCLUDE_DEPTH:
            raise PreprocessFailed(
                f"#include nested too deeply including {path}",
                line=line_no,
                diagnostic=path,
            )
        included = self.include_resolver(path)
        if included is None:
            raise PreprocessFailed(
                f"Included file not found: {path}", line=line_no, diagnostic=path
            )
        check_markers(included)
        logger.debug(f"Including {path}")
        self._process_text(included, out, depth + 1)


