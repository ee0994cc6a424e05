"""
Exceptions raised while loading and resolving a shader pack.

Every error is scoped to a single program: the pack loader records it against
the program name and moves on to the next program.
"""

from collections.abc import Iterable
from typing import Any


class ShaderPackError(Exception):
    """Base exception for shader pack configuration errors.

    The class tracks which program (and optionally which stage) the error
    belongs to, and formats that location into the message.

    Examples:
        >>> raise ShaderPackError("Bad directive", program="gbuffers_terrain")
        ShaderPackError: Bad directive in program gbuffers_terrain
    """

    def __init__(
        self,
        message: str,
        program: str | None = None,
        stage: str | None = None,
    ):
        """Initialize the exception with a message and optional location.

        Args:
            message: The error message
            program: Name of the program being processed
            stage: Name of the stage being processed
        """
        self.message = message
        self.program = program
        self.stage = stage

        location_info = self._details()
        if program:
            location_info += f" in program {program}"
            if stage:
                location_info += f" ({stage})"

        super().__init__(f"{message}{location_info}")

    def _details(self) -> str:
        return ""

    def _copy_kwargs(self) -> dict[str, Any]:
        return {}

    def with_program(self, program: str, stage: str | None = None) -> "ShaderPackError":
        """Create a new error of the same type bound to a program.

        Args:
            program: Program name to associate with the error
            stage: Optional stage name

        Returns:
            A new error instance carrying the location
        """
        return type(self)(
            self.message,
            program=program,
            stage=stage or self.stage,
            **self._copy_kwargs(),
        )


class InputRejected(ShaderPackError):
    """Raised when stage source contains an internal sentinel marker."""


class PreprocessFailed(ShaderPackError):
    """Raised when the preprocessor reports a diagnostic.

    Attributes:
        line: 1-based line of the offending directive, if known
        diagnostic: The underlying preprocessor diagnostic
    """

    def __init__(
        self,
        message: str,
        program: str | None = None,
        stage: str | None = None,
        line: int | None = None,
        diagnostic: str | None = None,
    ):
        self.line = line
        self.diagnostic = diagnostic or message
        super().__init__(message, program=program, stage=stage)

    def _details(self) -> str:
        return f" (line {self.line})" if self.line is not None else ""

    def _copy_kwargs(self) -> dict[str, Any]:
        return {"line": self.line, "diagnostic": self.diagnostic}


class MalformedDirective(ShaderPackError):
    """Raised when a directive payload does not follow the directive grammar."""

    def __init__(
        self,
        message: str,
        program: str | None = None,
        stage: str | None = None,
        kind: str | None = None,
        payload: str | None = None,
    ):
        self.kind = kind
        self.payload = payload
        super().__init__(message, program=program, stage=stage)

    def _copy_kwargs(self) -> dict[str, Any]:
        return {"kind": self.kind, "payload": self.payload}


class UnknownRenderTarget(ShaderPackError):
    """Raised when a directive refers to a render target the driver lacks."""

    def __init__(
        self,
        message: str,
        program: str | None = None,
        stage: str | None = None,
        index: int | None = None,
        supported: Iterable[int] = (),
    ):
        self.index = index
        self.supported = frozenset(supported)
        super().__init__(message, program=program, stage=stage)

    def _copy_kwargs(self) -> dict[str, Any]:
        return {"index": self.index, "supported": self.supported}
