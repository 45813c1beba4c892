import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar, Union

from fastapi import HTTPException, Request

from .authorization import (
    DENIED,
    INVALID_JSON,
    NO_BODY,
    TYPE_MISMATCH,
    CommandAuthorization,
    as_chain,
)
from .commands import CommandRegistry, default_registry
from .config import Config
from .identity import Principal, get_principal
from .serializer import CommandDeserializationError, deserialize_command
from .validation import validate_body_size, validate_content_type


logger = logging.getLogger(__name__)

UNAUTHORIZED_KEY = "Unauthorized"
PARSING_KEY = "Parsing"

C = TypeVar("C")


@dataclass(frozen=True)
class BindingError:
    code: str
    message: str


class ModelState:
    """Errors collected while binding one request, grouped by key."""

    def __init__(self) -> None:
        self._errors: Dict[str, List[BindingError]] = {}

    def add_error(self, code: str, message: str) -> None:
        key = UNAUTHORIZED_KEY if code.startswith("unauthorized:") else PARSING_KEY
        self._errors.setdefault(key, []).append(BindingError(code, message))

    @property
    def is_valid(self) -> bool:
        return not self._errors

    @property
    def error_count(self) -> int:
        return sum(len(errors) for errors in self._errors.values())

    @property
    def codes(self) -> List[str]:
        return [e.code for errors in self._errors.values() for e in errors]

    def keys(self) -> List[str]:
        return list(self._errors)

    def __getitem__(self, key: str) -> List[BindingError]:
        return list(self._errors[key])

    def to_dict(self) -> Dict[str, List[str]]:
        return {key: [e.message for e in errors] for key, errors in self._errors.items()}


@dataclass
class BindingResult:
    model: Any = None
    model_state: ModelState = field(default_factory=ModelState)
    is_success: bool = False

    @classmethod
    def success(cls, model: Any) -> "BindingResult":
        return cls(model=model, is_success=True)

    @classmethod
    def failed(cls, code: str, message: str) -> "BindingResult":
        result = cls()
        result.model_state.add_error(code, message)
        return result


class CommandBinder:
    """Binds a request body to an instance of ``command_type``.

    The body must be a serialized command whose type discriminator names
    ``command_type`` or one of its subclasses, and the authorization chain
    must approve it for the calling principal. With no authorizations
    every command is rejected.
    """

    def __init__(
        self,
        command_type: type,
        authorizations: Optional[Sequence[CommandAuthorization]] = None,
        registry: Optional[CommandRegistry] = None,
    ):
        if command_type is None:
            raise TypeError("command_type is required")
        self.command_type = command_type
        self.chain = as_chain(authorizations)
        self.registry = registry or default_registry

    def _decode(self, payload: Union[str, bytes]) -> Any:
        return deserialize_command(payload, self.registry)

    def bind_body(self, body: Union[bytes, str, None], principal: Optional[Principal] = None) -> BindingResult:
        principal = principal or Principal.anonymous()

        if isinstance(body, bytes):
            try:
                body = body.decode("utf-8-sig")
            except UnicodeDecodeError:
                return BindingResult.failed(INVALID_JSON, "not valid json.")

        if body is None or not body.strip():
            return BindingResult.failed(NO_BODY, "no command.")

        try:
            model = self._decode(body)
        except CommandDeserializationError as e:
            logger.info(f"Rejected body for {self.command_type.__name__}: {e}")
            return BindingResult.failed(INVALID_JSON, "not valid json.")

        if not isinstance(model, self.command_type) and isinstance(model, str) and model.strip():
            # Some clients send the command object JSON-encoded as a string; an empty one is a type mismatch
            try:
                model = self._decode(model)
            except CommandDeserializationError as e:
                logger.info(f"Rejected string-encoded body for {self.command_type.__name__}: {e}")
                return BindingResult.failed(INVALID_JSON, "not valid json.")

        if not isinstance(model, self.command_type):
            logger.info(f"Body is {type(model).__name__}, expected {self.command_type.__name__}")
            return BindingResult.failed(TYPE_MISMATCH, "Cant parse to object.")

        chain_result = self.chain.run(model, principal)
        if chain_result.granted:
            return BindingResult.success(model)

        result = BindingResult(model=None)
        for failure in chain_result.failures:
            if failure.reason != DENIED:
                result.model_state.add_error(failure.reason, failure.message or "Access denied.")
        result.model_state.add_error(DENIED, "Access denied.")
        logger.info(
            f"Denied {type(model).__name__} for {principal.name or 'anonymous'}: {', '.join(result.model_state.codes)}"
        )
        return result

    async def bind(self, request: Request) -> BindingResult:
        if request is None:
            raise TypeError("request is required")
        body = await request.body()
        return self.bind_body(body, get_principal(request))


class CommandBinderProvider:
    """Hands out a ``CommandBinder`` for parameters of exactly ``command_type``."""

    def __init__(
        self,
        command_type: type,
        authorizations: Optional[Sequence[CommandAuthorization]] = None,
        registry: Optional[CommandRegistry] = None,
    ):
        self.command_type = command_type
        self.chain = as_chain(authorizations)
        self.registry = registry

    def get_binder(self, parameter_type: Optional[type]) -> Optional[CommandBinder]:
        if parameter_type is None:
            raise TypeError("parameter_type is required")
        if parameter_type is self.command_type:
            return CommandBinder(self.command_type, self.chain, self.registry)
        return None


def binding_error_detail(result: BindingResult) -> Dict[str, Any]:
    return {
        "errors": result.model_state.to_dict(),
        "codes": result.model_state.codes,
    }


def bind_command(
    command_type: Type[C],
    authorizations: Optional[Sequence[CommandAuthorization]] = None,
    registry: Optional[CommandRegistry] = None,
) -> Callable[[Request], Any]:
    """Create a FastAPI dependency that binds and authorizes a command.

        @app.post("/billing")
        async def billing(command: BillingCommand = Depends(bind_command(BillingCommand, [DefaultCommandAuthorization()]))):
            ...

    Failures are raised as ``HTTPException`` with the collected errors as
    detail and ``Config.BINDING_ERROR_STATUS_CODE`` as status.
    """
    binder = CommandBinder(command_type, authorizations, registry)

    async def dependency(request: Request) -> Any:
        validate_content_type(request.headers.get("content-type"))
        validate_body_size(request.headers.get("content-length"))
        body = await request.body()
        validate_body_size(len(body))

        result = binder.bind_body(body, get_principal(request))
        if not result.is_success:
            raise HTTPException(status_code=Config.BINDING_ERROR_STATUS_CODE, detail=binding_error_detail(result))
        return result.model

    return dependency
