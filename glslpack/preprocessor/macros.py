"""
Macro definitions and macro expansion for the GLSL preprocessor.
"""

from dataclasses import dataclass

from loguru import logger

from glslpack.errors import PreprocessFailed
from glslpack.utils import is_identifier, tokenize

VARIADIC = "..."


class UnterminatedInvocation(PreprocessFailed):
    """A function-like macro invocation whose argument list is still open."""


@dataclass(frozen=True)
class Macro:
    """A preprocessor macro.

    Attributes:
        name: Macro name
        params: Parameter names for function-like macros, None for object-like
        body: Replacement list as tokens (whitespace tokens kept)
    """

    name: str
    params: tuple[str, ...] | None
    body: tuple[str, ...]

    @property
    def is_function_like(self) -> bool:
        return self.params is not None

    @property
    def is_variadic(self) -> bool:
        return bool(self.params) and self.params[-1] == VARIADIC


def _strip_ws(tokens: list[str]) -> list[str]:
    start, end = 0, len(tokens)
    while start < end and tokens[start].isspace():
        start += 1
    while end > start and tokens[end - 1].isspace():
        end -= 1
    return tokens[start:end]


def parse_define(text: str, line: int | None = None) -> Macro:
    """Parse the text following ``#define``.

    Args:
        text: Everything after the directive name
        line: Line number used in diagnostics

    Returns:
        The parsed macro

    Raises:
        PreprocessFailed: If the macro name or parameter list is malformed
    """
    tokens = tokenize(text.strip())
    if not tokens or not is_identifier(tokens[0]):
        raise PreprocessFailed(
            "Macro name missing in #define", line=line, diagnostic=text
        )

    name = tokens[0]
    rest = tokens[1:]
    params: tuple[str, ...] | None = None

    # A parameter list only counts when '(' follows the name directly
    if rest and rest[0] == "(":
        names: list[str] = []
        pos = 1
        expect_name = True
        while True:
            if pos >= len(rest):
                raise PreprocessFailed(
                    f"Unterminated parameter list for macro {name}",
                    line=line,
                    diagnostic=text,
                )
            token = rest[pos]
            pos += 1
            if token.isspace():
                continue
            if token == ")" and (not expect_name or not names):
                break
            if expect_name and (is_identifier(token) or token == "."):
                if token == ".":
                    # '...' arrives as three '.' tokens
                    if rest[pos : pos + 2] != [".", "."]:
                        raise PreprocessFailed(
                            f"Invalid parameter list for macro {name}",
                            line=line,
                            diagnostic=text,
                        )
                    pos += 2
                    token = VARIADIC
                if token in names:
                    raise PreprocessFailed(
                        f"Duplicate parameter '{token}' in macro {name}",
                        line=line,
                        diagnostic=text,
                    )
                names.append(token)
                expect_name = False
            elif not expect_name and token == "," and names[-1] != VARIADIC:
                expect_name = True
            else:
                raise PreprocessFailed(
                    f"Invalid parameter list for macro {name}",
                    line=line,
                    diagnostic=text,
                )
        params = tuple(names)
        rest = rest[pos:]

    return Macro(name=name, params=params, body=tuple(_strip_ws(rest)))


class MacroTable:
    """The set of macros defined while preprocessing one source."""

    def __init__(self, defines: dict[str, str] | None = None):
        self.macros: dict[str, Macro] = {}
        for name, value in (defines or {}).items():
            self.define(parse_define(f"{name} {value}"))

    def define(self, macro: Macro) -> None:
        previous = self.macros.get(macro.name)
        if previous is not None and previous != macro:
            logger.warning(f"Macro {macro.name} redefined")
        self.macros[macro.name] = macro
        logger.debug(f"Defined macro {macro.name}")

    def undefine(self, name: str) -> None:
        self.macros.pop(name, None)

    def is_defined(self, name: str) -> bool:
        return name in self.macros

    def expand(
        self,
        tokens: list[str],
        hidden: frozenset[str] = frozenset(),
        line: int | None = None,
    ) -> list[str]:
        """Expand every macro invocation in a token list.

        Args:
            tokens: Tokens to expand
            hidden: Names that must not expand again (currently being expanded)
            line: Line number used in diagnostics

        Returns:
            The expanded tokens
        """
        out: list[str] = []
        pos = 0
        while pos < len(tokens):
            token = tokens[pos]
            macro = self.macros.get(token)
            if macro is None or token in hidden:
                out.append(token)
                pos += 1
                continue

            if not macro.is_function_like:
                body = self._paste(list(macro.body))
                out.extend(self.expand(body, hidden | {token}, line))
                pos += 1
                continue

            # Function-like macro names only expand when followed by '('
            lookahead = pos + 1
            while lookahead < len(tokens) and tokens[lookahead].isspace():
                lookahead += 1
            if lookahead >= len(tokens) or tokens[lookahead] != "(":
                out.append(token)
                pos += 1
                continue

            args, pos = self._collect_arguments(tokens, lookahead, macro, line)
            body = self._substitute(macro, args, hidden, line)
            out.extend(self.expand(body, hidden | {token}, line))
        return out

    def _collect_arguments(
        self, tokens: list[str], open_pos: int, macro: Macro, line: int | None
    ) -> tuple[list[list[str]], int]:
        args: list[list[str]] = [[]]
        depth = 0
        pos = open_pos
        while pos < len(tokens):
            token = tokens[pos]
            pos += 1
            if token == "(":
                depth += 1
                if depth == 1:
                    continue
            elif token == ")":
                depth -= 1
                if depth == 0:
                    break
            elif token == "," and depth == 1:
                args.append([])
                continue
            args[-1].append(token)
        else:
            raise UnterminatedInvocation(
                f"Unterminated argument list invoking macro {macro.name}",
                line=line,
                diagnostic=macro.name,
            )

        args = [_strip_ws(arg) for arg in args]
        params = macro.params or ()
        if len(params) == 0 and args == [[]]:
            args = []
        if macro.is_variadic and len(args) >= len(params) - 1:
            fixed = len(params) - 1
            variadic: list[str] = []
            for index, arg in enumerate(args[fixed:]):
                if index:
                    variadic.extend([",", " "])
                variadic.extend(arg)
            args = args[:fixed] + [variadic]
        if len(args) != len(params):
            raise PreprocessFailed(
                f"Macro {macro.name} expects {len(params)} arguments, got {len(args)}",
                line=line,
                diagnostic=macro.name,
            )
        return args, pos

    def _substitute(
        self,
        macro: Macro,
        args: list[list[str]],
        hidden: frozenset[str],
        line: int | None,
    ) -> list[str]:
        params = list(macro.params or ())
        lookup = {
            ("__VA_ARGS__" if name == VARIADIC else name): index
            for index, name in enumerate(params)
        }
        body = list(macro.body)
        out: list[str] = []

        for index, token in enumerate(body):
            if token in lookup:
                arg = args[lookup[token]]
                if self._next_to_paste(body, index):
                    out.extend(arg)
                else:
                    out.extend(self.expand(arg, hidden, line))
            elif token == "#" and index + 1 < len(body) and body[index + 1] in lookup:
                out.append('"' + "".join(args[lookup[body[index + 1]]]) + '"')
                body[index + 1] = ""
            else:
                out.append(token)

        return self._paste([token for token in out if token != ""])

    @staticmethod
    def _next_to_paste(body: list[str], index: int) -> bool:
        before = [t for t in body[:index] if not t.isspace()]
        after = [t for t in body[index + 1 :] if not t.isspace()]
        return (bool(before) and before[-1] == "##") or (bool(after) and after[0] == "##")

    @staticmethod
    def _paste(tokens: list[str]) -> list[str]:
        """Apply ``##`` token pasting."""
        if "##" not in tokens:
            return tokens
        out: list[str] = []
        pos = 0
        while pos < len(tokens):
            token = tokens[pos]
            if token != "##":
                out.append(token)
                pos += 1
                continue
            while out and out[-1].isspace():
                out.pop()
            pos += 1
            while pos < len(tokens) and tokens[pos].isspace():
                pos += 1
            right = tokens[pos] if pos < len(tokens) else ""
            left = out.pop() if out else ""
            out.append(left + right)
            pos += 1
        return out
