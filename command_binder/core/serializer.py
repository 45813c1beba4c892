"""JSON encoding of commands with an embedded type discriminator.

A serialized command is a JSON object whose first key names the concrete
command class, followed by the command's fields in camelCase::

    {
      "$type": "billing.refund",
      "orderId": "A-1",
      "amount": 12.5
    }

Decoding resolves the discriminator through a ``CommandRegistry`` and lets
pydantic validate the remaining fields.
"""

import json
from typing import Any, Optional, Union

from pydantic import ValidationError

from .commands import Command, CommandRegistry, UnknownCommandTypeError, default_registry
from .config import Config


class CommandDeserializationError(ValueError):
    """Raised when a payload cannot be decoded into a command."""


def serialize_command(
    command: Command,
    registry: Optional[CommandRegistry] = None,
    *,
    indent: Optional[int] = 2,
) -> str:
    registry = registry or default_registry
    payload = {Config.TYPE_DISCRIMINATOR_KEY: registry.name_for(type(command))}
    payload.update(command.model_dump(mode="json", by_alias=True))
    return json.dumps(payload, indent=indent)


def deserialize_command(
    payload: Union[str, bytes],
    registry: Optional[CommandRegistry] = None,
) -> Any:
    """Decode ``payload`` into a command when it carries a type discriminator.

    Args:
        payload: JSON text or UTF-8 bytes
        registry: Registry used to resolve the discriminator

    Returns:
        A ``Command`` instance for discriminated objects, otherwise the plain
        decoded JSON value (dict, list, str, number, bool or None)

    Raises:
        CommandDeserializationError: malformed JSON, an unknown type name or
            fields that fail validation
    """
    registry = registry or default_registry
    try:
        value = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CommandDeserializationError(f"Malformed JSON: {e}") from e

    if not isinstance(value, dict) or Config.TYPE_DISCRIMINATOR_KEY not in value:
        return value

    fields = dict(value)
    type_name = fields.pop(Config.TYPE_DISCRIMINATOR_KEY)
    if not isinstance(type_name, str):
        raise CommandDeserializationError("Type discriminator must be a string")

    try:
        command_type = registry.resolve(type_name)
        return command_type.model_validate(fields)
    except UnknownCommandTypeError as e:
        raise CommandDeserializationError(str(e)) from e
    except ValidationError as e:
        raise CommandDeserializationError(f"Invalid fields for {type_name}: {e.error_count()} error(s)") from e
