import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables.

    Controls how command bodies are decoded, how callers are identified and
    how binding failures are reported back over HTTP.
    """

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")

    TYPE_DISCRIMINATOR_KEY: str = os.getenv("TYPE_DISCRIMINATOR_KEY", "$type")
    ROLE_CLAIM_TYPE: str = os.getenv("ROLE_CLAIM_TYPE", "role")

    MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(1024 * 1024)))
    BINDING_ERROR_STATUS_CODE: int = int(os.getenv("BINDING_ERROR_STATUS_CODE", "400"))

    # Development only: builds the caller identity from X-Principal-* headers
    TRUST_PRINCIPAL_HEADERS: bool = _env_flag("TRUST_PRINCIPAL_HEADERS")

    @staticmethod
    def allowed_origins(extra_origins: List[str] | None = None) -> List[str]:
        env_origins = [o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
        merged = list(env_origins)
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    @classmethod
    def validate(cls) -> None:
        if not cls.TYPE_DISCRIMINATOR_KEY:
            raise ValueError("TYPE_DISCRIMINATOR_KEY must not be empty")
        if not cls.ROLE_CLAIM_TYPE:
            raise ValueError("ROLE_CLAIM_TYPE must not be empty")
        if cls.MAX_BODY_BYTES <= 0:
            raise ValueError("MAX_BODY_BYTES must be a positive number of bytes")
        if not 400 <= cls.BINDING_ERROR_STATUS_CODE <= 499:
            raise ValueError("BINDING_ERROR_STATUS_CODE must be a 4xx status code")
