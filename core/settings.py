import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.exceptions import StartupError


def env(key, default=None):
    """Fetch an env var with a default, treat empty as missing."""
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


class ProxySettings(BaseModel):
    upstream: str = Field(..., description="Base URL every /proxy/ request is resolved against")
    host: str = Field("0.0.0.0", description="Address to bind to")
    port: int = Field(8000, ge=1, le=65535, description="Port to listen on")
    delay: int = Field(0, ge=0, description="Seed delay (ms) used when no delay record is stored")
    store_path: Optional[str] = Field(None, description="Directory for the JSON file store; memory when unset")
    log_level: str = Field("INFO", description="Root log level")

    @field_validator("upstream")
    @classmethod
    def validate_upstream(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Upstream must be an absolute http(s) URL, got {v!r}")
        return v

    @classmethod
    def from_env(cls, **overrides) -> "ProxySettings":
        """
        Build settings from the environment, with explicit overrides winning.

        Raises:
            StartupError: if UPSTREAM is missing or any value is invalid
        """
        values = {
            "upstream": env("UPSTREAM"),
            "host": env("HOST", "0.0.0.0"),
            "port": env("PORT", "8000"),
            "delay": env("DELAY", "0"),
            "store_path": env("STORE_PATH"),
            "log_level": env("LOG_LEVEL", "INFO"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        if not values["upstream"]:
            raise StartupError("UPSTREAM environment variable is required")

        try:
            return cls(**values)
        except ValidationError as e:
            problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
            raise StartupError(f"Invalid configuration: {problems}")
