import logging
import time
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .core.authorization import DefaultCommandAuthorization
from .core.binder import bind_command
from .core.commands import default_registry
from .core.config import Config
from .core.identity import get_principal
from .core.middleware import attach_principal, global_exception_handler, log_requests
from .services.commands import ServiceCommand, dispatcher

logger = logging.getLogger(__name__)

# Initialize FastAPI
app = FastAPI(title="Command Binder API", version=__version__)

# CORS setup
ALLOWED_ORIGINS = Config.allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

@app.middleware("http")
async def _attach_principal(request, call_next):
    return await attach_principal(request, call_next)

@app.middleware("http")
async def _log_requests(request, call_next):
    return await log_requests(request, call_next)

@app.exception_handler(Exception)
async def _global_exception_handler(request, exc):
    return await global_exception_handler(request, exc)


bind_service_command = bind_command(ServiceCommand, [DefaultCommandAuthorization()])


@app.post("/commands")
async def submit_command(request: Request, command: ServiceCommand = Depends(bind_service_command)):
    """Run a bound and authorized service command.

    - The body is a serialized ``ServiceCommand`` with its ``$type``
    - Binding or authorization failures never reach this handler
    - The command is dispatched to the handler registered for its class
    """
    request_start_time = time.time()
    command_type = default_registry.name_for(type(command))

    try:
        result = await dispatcher.dispatch(command, get_principal(request))
    except LookupError as e:
        logger.error(f"{command_type}: {e}")
        raise HTTPException(status_code=501, detail=f"Command {command_type} is not supported")

    total_time = time.time() - request_start_time
    logger.info(f"{command_type} handled in {total_time:.2f}s")

    return {
        "status": "success",
        "command": command_type,
        "result": result,
    }


@app.get("/health")
async def health_check():
    """Basic health and configuration checks for the API."""
    health_start_time = time.time()

    try:
        Config.validate()
        health_duration = time.time() - health_start_time

        return {
            "status": "healthy",
            "service": "command-binder-api",
            "registered_commands": len(default_registry),
            "timestamp": datetime.now().isoformat(),
            "response_time_ms": round(health_duration * 1000, 2)
        }
    except ValueError as e:
        health_duration = time.time() - health_start_time
        logger.error(f"Health check failed: {str(e)} - Duration: {health_duration:.1f}s")

        return {
            "status": "unhealthy",
            "service": "command-binder-api",
            "timestamp": datetime.now().isoformat(),
            "error": str(e),
            "response_time_ms": round(health_duration * 1000, 2)
        }


@app.get("/")
async def root():
    """Return basic API information."""

    return {
        "service": "Command Binder API",
        "version": __version__,
        "endpoints": {
            "commands": "/commands",
            "health": "/health"
        },
        "commands": sorted(name for name in default_registry if name.startswith("service.")),
        "timestamp": datetime.now().isoformat(),
        "description": "Binds typed commands from request bodies and authorizes them against role and claim markers"
    }
