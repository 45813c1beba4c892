"""Authorization checks run against a bound command and its caller.

Each check looks at the markers declared on the command class (see
``markers``) and the caller's ``Principal`` and answers with an
``AuthorizationOutcome``. Checks are combined by ``AuthorizationChain``:

- every check runs, and the command is authorized only if none denied it;
- a final grant (``AllowAnonymous`` on a marked command) authorizes the
  command outright;
- an empty chain, or one where every check abstained, denies.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .identity import Principal
from .markers import read_metadata


logger = logging.getLogger(__name__)

NO_BODY = "unauthorized:no-body"
INVALID_JSON = "unauthorized:invalid-json"
TYPE_MISMATCH = "parsing:type-mismatch"
ROLE = "unauthorized:role"
CLAIM = "unauthorized:claim"
DENIED = "unauthorized:denied"


@dataclass(frozen=True)
class AuthorizationOutcome:
    granted: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    final: bool = False
    abstained: bool = False

    @classmethod
    def allow(cls, *, final: bool = False) -> "AuthorizationOutcome":
        return cls(granted=True, final=final)

    @classmethod
    def deny(cls, reason: str, message: str) -> "AuthorizationOutcome":
        return cls(granted=False, reason=reason, message=message)

    @classmethod
    def abstain(cls) -> "AuthorizationOutcome":
        return cls(granted=True, abstained=True)


class CommandAuthorization(ABC):
    """A single authorization rule evaluated for a command and its caller."""

    @abstractmethod
    def evaluate(self, command: object, principal: Principal) -> AuthorizationOutcome:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AllowAnonymous(CommandAuthorization):
    def evaluate(self, command: object, principal: Principal) -> AuthorizationOutcome:
        if read_metadata(command).allow_anonymous:
            return AuthorizationOutcome.allow(final=True)
        return AuthorizationOutcome.abstain()


class RoleMatch(CommandAuthorization):
    def evaluate(self, command: object, principal: Principal) -> AuthorizationOutcome:
        metadata = read_metadata(command)
        if not metadata.requires_authorization:
            return AuthorizationOutcome.allow()
        if not metadata.roles:
            return AuthorizationOutcome.deny(ROLE, "roles is not defined.")
        if principal.is_authenticated and any(principal.is_in_role(r) for r in metadata.roles):
            return AuthorizationOutcome.allow()
        return AuthorizationOutcome.deny(ROLE, "User is not in role.")


class ClaimMatch(CommandAuthorization):
    def evaluate(self, command: object, principal: Principal) -> AuthorizationOutcome:
        claim = read_metadata(command).claim
        if claim is None:
            return AuthorizationOutcome.allow()
        if principal.has_claim(claim.type, claim.value):
            return AuthorizationOutcome.allow()
        return AuthorizationOutcome.deny(CLAIM, "User does not have claim.")


class AuthenticatedIdentity(CommandAuthorization):
    def evaluate(self, command: object, principal: Principal) -> AuthorizationOutcome:
        if principal.is_authenticated:
            return AuthorizationOutcome.allow()
        return AuthorizationOutcome.deny(DENIED, "User is not authenticated.")


@dataclass(frozen=True)
class ChainResult:
    granted: bool
    failures: Tuple[AuthorizationOutcome, ...] = ()
    final: bool = False

    @property
    def reason(self) -> Optional[str]:
        return self.failures[0].reason if self.failures else (None if self.granted else DENIED)


class AuthorizationChain(CommandAuthorization):
    """Logical AND over an ordered list of checks."""

    def __init__(self, checks: Optional[Iterable[CommandAuthorization]] = None):
        self.checks: List[CommandAuthorization] = list(checks or [])

    def __len__(self) -> int:
        return len(self.checks)

    def __iter__(self) -> Iterator[CommandAuthorization]:
        return iter(self.checks)

    def __repr__(self) -> str:
        return f"AuthorizationChain({self.checks!r})"

    def run(self, command: object, principal: Principal) -> ChainResult:
        if not self.checks:
            logger.debug(f"No authorization checks registered, denying {type(command).__name__}")
            return ChainResult(granted=False)

        failures = []
        decided = False
        for check in self.checks:
            if isinstance(check, AuthorizationChain):
                # Nested chains contribute every failure, not just their first
                nested = check.run(command, principal)
                if nested.final:
                    return nested
                if nested.granted:
                    decided = True
                else:
                    failures.extend(nested.failures or (AuthorizationOutcome.deny(DENIED, "Access denied."),))
                continue

            outcome = check.evaluate(command, principal)
            if outcome.granted and outcome.final:
                return ChainResult(granted=True, final=True)
            if not outcome.granted:
                failures.append(outcome)
            elif not outcome.abstained:
                decided = True

        return ChainResult(granted=decided and not failures, failures=tuple(failures))

    def evaluate(self, command: object, principal: Principal) -> AuthorizationOutcome:
        result = self.run(command, principal)
        if result.granted:
            return AuthorizationOutcome.allow()
        first = result.failures[0] if result.failures else None
        return AuthorizationOutcome.deny(
            result.reason or DENIED,
            first.message if first and first.message else "Access denied.",
        )


class DefaultCommandAuthorization(AuthorizationChain):
    """Anonymous commands pass; everything else needs an authenticated
    caller that satisfies the command's claim and role markers."""

    def __init__(self) -> None:
        super().__init__([AllowAnonymous(), ClaimMatch(), RoleMatch(), AuthenticatedIdentity()])

    def __repr__(self) -> str:
        return "DefaultCommandAuthorization()"


def as_chain(authorizations: Optional[Sequence[CommandAuthorization]]) -> AuthorizationChain:
    if isinstance(authorizations, AuthorizationChain):
        return authorizations
    return AuthorizationChain(authorizations)
