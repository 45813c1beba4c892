"""Typed command binding and declarative authorization for FastAPI."""

__version__ = "1.0.0"

from .core.authorization import (
    AllowAnonymous,
    AuthenticatedIdentity,
    AuthorizationChain,
    AuthorizationOutcome,
    ClaimMatch,
    CommandAuthorization,
    DefaultCommandAuthorization,
    RoleMatch,
)
from .core.binder import BindingResult, CommandBinder, CommandBinderProvider, ModelState, bind_command
from .core.commands import Command, CommandRegistry, default_registry
from .core.identity import Claim, Principal
from .core.markers import allow_anonymous, authorize, claim_requirement, read_metadata
from .core.serializer import CommandDeserializationError, deserialize_command, serialize_command

__all__ = [
    "AllowAnonymous",
    "AuthenticatedIdentity",
    "AuthorizationChain",
    "AuthorizationOutcome",
    "BindingResult",
    "Claim",
    "ClaimMatch",
    "Command",
    "CommandAuthorization",
    "CommandBinder",
    "CommandBinderProvider",
    "CommandDeserializationError",
    "CommandRegistry",
    "DefaultCommandAuthorization",
    "ModelState",
    "Principal",
    "RoleMatch",
    "allow_anonymous",
    "authorize",
    "bind_command",
    "claim_requirement",
    "default_registry",
    "deserialize_command",
    "read_metadata",
    "serialize_command",
]
