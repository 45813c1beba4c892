import logging
from typing import ClassVar, Dict, Iterator, Optional, Type

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


logger = logging.getLogger(__name__)


class CommandRegistrationError(ValueError):
    """Raised when two different command classes claim the same type name."""


class UnknownCommandTypeError(LookupError):
    """Raised when a type discriminator names no registered command."""

    def __init__(self, type_name: str):
        super().__init__(f"Unknown command type: {type_name!r}")
        self.type_name = type_name


class CommandRegistry:
    """Maps type discriminator names to command classes and back."""

    def __init__(self) -> None:
        self._by_name: Dict[str, Type["Command"]] = {}
        self._by_type: Dict[Type["Command"], str] = {}

    def register(self, command_type: Type["Command"], name: Optional[str] = None) -> Type["Command"]:
        name = name or default_type_name(command_type)
        existing = self._by_name.get(name)
        if existing is not None and existing is not command_type:
            raise CommandRegistrationError(
                f"Type name {name!r} is already registered to {existing.__module__}.{existing.__qualname__}"
            )
        self._by_name[name] = command_type
        self._by_type[command_type] = name
        logger.debug(f"Registered command type {name}")
        return command_type

    def resolve(self, name: str) -> Type["Command"]:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownCommandTypeError(name) from None

    def name_for(self, command_type: Type["Command"]) -> str:
        try:
            return self._by_type[command_type]
        except KeyError:
            raise UnknownCommandTypeError(default_type_name(command_type)) from None

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._by_name
        return item in self._by_type

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)


def default_type_name(command_type: type) -> str:
    return f"{command_type.__module__}.{command_type.__qualname__}"


default_registry = CommandRegistry()


class Command(BaseModel):
    """Base class for every payload bound from a request body.

    Subclasses are registered in ``default_registry`` when they are defined.
    Set ``type_name`` on a subclass to publish it under a stable name instead
    of its dotted import path.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type_name: ClassVar[Optional[str]] = None

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        # Only a name declared on the class itself counts, never an inherited one
        default_registry.register(cls, cls.__dict__.get("type_name"))
