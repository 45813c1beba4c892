"""Declarative authorization markers for command classes.

    @authorize(roles="Administrator, Auditor")
    @claim_requirement("department", "billing")
    class RefundOrder(BillingCommand):
        ...

Markers apply to the decorated class only. A subclass of a marked command
starts with no markers and must be decorated again.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, TypeVar, Union

from .identity import Claim


_ANONYMOUS_ATTR = "__allow_anonymous__"
_ROLES_ATTR = "__authorize_roles__"
_CLAIM_ATTR = "__claim_requirement__"

# Distinguishes "authorize() without roles" from "no authorize marker"
_NO_ROLES = object()

T = TypeVar("T", bound=type)


@dataclass(frozen=True)
class CommandMetadata:
    allow_anonymous: bool = False
    requires_authorization: bool = False
    roles: Optional[Tuple[str, ...]] = None
    claim: Optional[Claim] = None


def allow_anonymous(cls: T) -> T:
    setattr(cls, _ANONYMOUS_ATTR, True)
    return cls


def _split_roles(roles: Union[str, Iterable[str]]) -> Tuple[str, ...]:
    if isinstance(roles, str):
        roles = roles.split(",")
    return tuple(r.strip() for r in roles if r and r.strip())


def authorize(roles: Union[str, Iterable[str], None] = None):
    """Require an authenticated caller in at least one of ``roles``.

    ``roles`` is a comma-separated string or an iterable of role names.
    """
    value = _NO_ROLES if roles is None else _split_roles(roles)

    def decorator(cls: T) -> T:
        setattr(cls, _ROLES_ATTR, value)
        return cls

    return decorator


def claim_requirement(claim_type: str, claim_value: str):
    """Require the caller to carry exactly this claim."""
    claim = Claim(claim_type, claim_value)

    def decorator(cls: T) -> T:
        setattr(cls, _CLAIM_ATTR, claim)
        return cls

    return decorator


def read_metadata(command: object) -> CommandMetadata:
    cls = command if isinstance(command, type) else type(command)
    own = vars(cls)

    roles = own.get(_ROLES_ATTR)
    return CommandMetadata(
        allow_anonymous=bool(own.get(_ANONYMOUS_ATTR, False)),
        requires_authorization=roles is not None,
        roles=None if roles is None or roles is _NO_ROLES else roles,
        claim=own.get(_CLAIM_ATTR),
    )
