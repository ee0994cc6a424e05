"""
Hoisting of ``#version`` and ``#extension`` directives.

Strict drivers require these directives at the very top of a shader, while
shader packs often put them inside conditional branches or after other
directives. Only the directives that survive conditional compilation are
hoisted, in their original order, duplicates included.
"""

from dataclasses import dataclass

from loguru import logger

from glslpack.preprocessor.processor import (
    HOISTED_DIRECTIVES,
    GlslPreprocessor,
    IncludeResolver,
    check_markers,
)


@dataclass(frozen=True)
class PreprocessedSource:
    """Result of preprocessing one stage.

    Attributes:
        hoist: The surviving ``#version``/``#extension`` lines, newline separated
        body: The preprocessed text with those lines removed
    """

    hoist: str
    body: str

    @property
    def text(self) -> str:
        """The final stage source: hoisted lines first, then the body."""
        return f"{self.hoist}\n{self.body}\n"

    @property
    def hoisted_lines(self) -> list[str]:
        return self.hoist.split("\n") if self.hoist else []


def collect_hoisted(processed: str) -> PreprocessedSource:
    """Split marker lines out of preprocessed text.

    Args:
        processed: Output of GlslPreprocessor.process

    Returns:
        The hoist block (markers turned back into directives) and the body
    """
    names_by_marker = {marker: name for name, marker in HOISTED_DIRECTIVES.items()}
    hoisted: list[str] = []
    body: list[str] = []

    for line in processed.split("\n"):
        marker, _, rest = line.partition(" ")
        name = names_by_marker.get(marker)
        if name is None:
            body.append(line)
            continue
        hoisted.append(f"#{name} {rest}".rstrip())
        body.append("")

    return PreprocessedSource(hoist="\n".join(hoisted), body="\n".join(body).strip("\n"))


def preprocess_source(
    text: str,
    defines: dict[str, str] | None = None,
    include_resolver: IncludeResolver | None = None,
) -> PreprocessedSource:
    """Preprocess a raw stage source and hoist its surviving directives.

    Args:
        text: Raw stage source
        defines: Predefined macros
        include_resolver: Optional include resolver, see GlslPreprocessor

    Returns:
        The preprocessed source split into hoist block and body

    Raises:
        InputRejected: If the source contains an internal marker
        PreprocessFailed: On any preprocessor diagnostic
    """
    check_markers(text)
    processed = GlslPreprocessor(defines, include_resolver).process(text)
    result = collect_hoisted(processed)
    logger.debug(f"Preprocessed source, hoisted {len(result.hoisted_lines)} directives")
    return result


def glsl_preprocess_source(
    text: str,
    defines: dict[str, str] | None = None,
    include_resolver: IncludeResolver | None = None,
) -> str:
    """Preprocess a raw stage source into the final text handed to the driver."""
    return preprocess_source(text, defines, include_resolver).text
