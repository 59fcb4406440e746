"""
Client Configuration — validated settings for the vault API client.

Only the API origin is environment-driven:
    SECUREVAULT_API_URL = <scheme>://<host>[:port][/prefix]

The master secret variant comes from the build (``conf.MASTER_SECRET_MODE``)
and stays fixed for the lifetime of a ``ClientConfig``.

Security Note:
    Configuration never carries credentials. Tokens and secrets live only
    in the objects that use them.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

from .conf import (
    API_URL_ENV,
    DEFAULT_API_URL,
    MASTER_FIELD,
    MASTER_SECRET_MODE,
    REQUEST_TIMEOUT,
    REVEAL_WINDOW,
    MasterSecretMode,
)

logger = logging.getLogger("securevault.config")


def get_api_url() -> str:
    """Read the API origin from SECUREVAULT_API_URL.

    Returns:
        Base URL without trailing slash; the default origin when unset.
    """
    raw = os.environ.get(API_URL_ENV)
    if not raw:
        logger.debug("%s not set, using %s", API_URL_ENV, DEFAULT_API_URL)
        return DEFAULT_API_URL
    return raw


class ClientConfig(BaseModel):
    """Validated client configuration."""

    base_url: str = Field(default=DEFAULT_API_URL)
    master_secret_mode: MasterSecretMode = Field(default=MASTER_SECRET_MODE)
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    reveal_window: float = Field(default=REVEAL_WINDOW, gt=0)

    model_config = {"frozen": True}

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) origin and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported API URL: {v}")
        return v.rstrip("/")

    @property
    def master_field(self) -> str:
        """Wire name of the master secret field for this build."""
        return MASTER_FIELD[self.master_secret_mode]

    @classmethod
    def from_env(cls, **kwargs) -> "ClientConfig":
        """Create ClientConfig with the base URL loaded from environment.

        Returns:
            Populated ClientConfig instance.
        """
        return cls(base_url=get_api_url(), **kwargs)
