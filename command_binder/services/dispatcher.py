import inspect
import logging
from typing import Any, Callable, Dict, Optional

from ..core.identity import Principal


logger = logging.getLogger(__name__)

Handler = Callable[[Any, Principal], Any]


class CommandDispatcher:
    """Routes a bound command to the handler registered for its class.

    Handlers take ``(command, principal)`` and may be plain functions or
    coroutines. A handler registered for a base class also serves its
    subclasses unless a more specific handler exists.
    """

    def __init__(self) -> None:
        self._handlers: Dict[type, Handler] = {}

    def register(self, command_type: type, handler: Handler) -> None:
        if command_type in self._handlers:
            logger.warning(f"Replacing handler for {command_type.__name__}")
        self._handlers[command_type] = handler

    def handler(self, command_type: type) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            self.register(command_type, func)
            return func

        return decorator

    def resolve(self, command_type: type) -> Optional[Handler]:
        for klass in command_type.__mro__:
            handler = self._handlers.get(klass)
            if handler is not None:
                return handler
        return None

    async def dispatch(self, command: Any, principal: Principal) -> Any:
        handler = self.resolve(type(command))
        if handler is None:
            raise LookupError(f"No handler registered for {type(command).__name__}")

        result = handler(command, principal)
        if inspect.isawaitable(result):
            result = await result
        return result
