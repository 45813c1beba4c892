import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Tuple

from fastapi import Request

from .config import Config


logger = logging.getLogger(__name__)

PRINCIPAL_NAME_HEADER = "x-principal-name"
PRINCIPAL_ROLES_HEADER = "x-principal-roles"
PRINCIPAL_CLAIMS_HEADER = "x-principal-claims"

NAME_CLAIM_TYPE = "name"


@dataclass(frozen=True)
class Claim:
    """A typed key/value fact about the caller."""

    type: str
    value: str


@dataclass(frozen=True)
class Principal:
    """The caller of a request and the claims its identity carries.

    A principal is authenticated when it was issued by some authentication
    scheme, i.e. ``authentication_type`` is set. Claims alone do not make a
    caller authenticated.
    """

    claims: Tuple[Claim, ...] = field(default_factory=tuple)
    authentication_type: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "claims", tuple(self.claims))

    @property
    def is_authenticated(self) -> bool:
        return bool(self.authentication_type)

    @property
    def name(self) -> Optional[str]:
        return next((c.value for c in self.claims if c.type == NAME_CLAIM_TYPE), None)

    @property
    def roles(self) -> Tuple[str, ...]:
        return tuple(c.value for c in self.claims if c.type == Config.ROLE_CLAIM_TYPE)

    def is_in_role(self, role: str) -> bool:
        return role in self.roles

    def has_claim(self, claim_type: str, claim_value: str) -> bool:
        return any(c.type == claim_type and c.value == claim_value for c in self.claims)

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @classmethod
    def authenticated(
        cls,
        authentication_type: str,
        *,
        name: Optional[str] = None,
        roles: Iterable[str] = (),
        claims: Iterable[Claim] = (),
    ) -> "Principal":
        collected = []
        if name:
            collected.append(Claim(NAME_CLAIM_TYPE, name))
        collected.extend(Claim(Config.ROLE_CLAIM_TYPE, role) for role in roles)
        collected.extend(claims)
        return cls(claims=tuple(collected), authentication_type=authentication_type)


def get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None)
    if isinstance(principal, Principal):
        return principal
    return Principal.anonymous()


def _parse_claims(raw: str) -> list[Claim]:
    claims = []
    for pair in raw.split(";"):
        pair = pair.strip()
        if not pair:
            continue
        claim_type, sep, claim_value = pair.partition("=")
        if not sep or not claim_type.strip():
            logger.warning(f"Ignoring malformed claim header entry: {pair!r}")
            continue
        claims.append(Claim(claim_type.strip(), claim_value.strip()))
    return claims


def principal_from_headers(headers: Mapping[str, str]) -> Principal:
    """Build a principal from X-Principal-* headers.

    Only meant for development and tests, where no real authentication
    scheme sits in front of the service. Without ``X-Principal-Name`` the
    caller is anonymous even if roles or claims are sent.
    """
    name = (headers.get(PRINCIPAL_NAME_HEADER) or "").strip()
    if not name:
        return Principal.anonymous()

    roles = [r.strip() for r in (headers.get(PRINCIPAL_ROLES_HEADER) or "").split(",") if r.strip()]
    claims = _parse_claims(headers.get(PRINCIPAL_CLAIMS_HEADER) or "")
    return Principal.authenticated("headers", name=name, roles=roles, claims=claims)
