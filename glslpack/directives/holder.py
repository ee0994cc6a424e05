"""
Registry dispatching const directives to typed handlers.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from loguru import logger

from glslpack.models import ConstDirective, ConstType, ConstValue


@dataclass(frozen=True)
class DirectiveHandler:
    """A handler tagged with the literal type it accepts."""

    type: ConstType
    callback: Callable[[ConstValue], None]


class DispatchingDirectiveHolder:
    """Maps recognized const names to handlers.

    Directives with an unregistered name are ignored: shaders declare many
    constants that have nothing to do with pack configuration.

    Examples:
        >>> holder = DispatchingDirectiveHolder()
        >>> holder.accept_const_boolean_directive("fooEnabled", print)
        >>> _ = holder.process_directive(ConstDirective(ConstType.BOOL, "fooEnabled", True))
        True
    """

    def __init__(self) -> None:
        self.handlers: dict[str, DirectiveHandler] = {}

    def _accept(
        self, const_type: ConstType, name: str, callback: Callable[[ConstValue], None]
    ) -> None:
        previous = self.handlers.get(name)
        if previous is not None and previous.type is not const_type:
            logger.warning(
                f"Handler for {name} re-registered as {const_type.value} "
                f"(was {previous.type.value})"
            )
        self.handlers[name] = DirectiveHandler(const_type, callback)

    def accept_const_boolean_directive(
        self, name: str, callback: Callable[[bool], None]
    ) -> None:
        self._accept(ConstType.BOOL, name, callback)

    def accept_const_int_directive(
        self, name: str, callback: Callable[[int], None]
    ) -> None:
        self._accept(ConstType.INT, name, callback)

    def accept_const_float_directive(
        self, name: str, callback: Callable[[float], None]
    ) -> None:
        self._accept(ConstType.FLOAT, name, callback)

    def accept_const_vec4_directive(
        self, name: str, callback: Callable[[tuple[float, float, float, float]], None]
    ) -> None:
        self._accept(ConstType.VEC4, name, callback)

    def process_directive(self, directive: ConstDirective) -> bool:
        """Dispatch one directive to its handler.

        Args:
            directive: The const directive

        Returns:
            Whether a handler consumed the directive
        """
        handler = self.handlers.get(directive.name)
        if handler is None:
            return False
        if handler.type is not directive.type:
            logger.warning(
                f"Ignoring const {directive.type.value} {directive.name}: "
                f"expected a {handler.type.value} directive"
            )
            return False

        logger.debug(f"Applying const directive {directive.name} = {directive.value}")
        handler.callback(directive.value)
        return True

    def process_directives(self, directives: Iterable[ConstDirective]) -> int:
        """Dispatch directives in order, returning how many were consumed."""
        return sum(self.process_directive(directive) for directive in directives)
