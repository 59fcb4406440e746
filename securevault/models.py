"""
Data models exchanged with the vault API.

Wire names are camelCase (``appName``, ``maskedPassword``); Python code uses
snake_case through field aliases. Secret-bearing fields are excluded from
``repr`` so they never end up in logs or tracebacks.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field

from .conf import MASTER_FIELD, MasterSecretMode


class Identity(BaseModel):
    """Authenticated identity returned by register/login."""

    username: str
    session_token: str = Field(alias="token", repr=False)

    model_config = {"frozen": True, "populate_by_name": True}


class Credentials(BaseModel):
    """Registration/login input."""

    username: str
    login_secret: str = Field(repr=False)
    master_secret: Optional[str] = Field(default=None, repr=False)

    def login_body(self) -> dict[str, Any]:
        return {"username": self.username, "loginPassword": self.login_secret}

    def register_body(self, mode: MasterSecretMode) -> dict[str, Any]:
        body = self.login_body()
        body[MASTER_FIELD[mode]] = self.master_secret
        return body


class VaultEntry(BaseModel):
    """One stored credential as shown in the list view. Never plaintext."""

    id: int
    app_name: str = Field(alias="appName")
    app_username: str = Field(alias="appUsername")
    masked_secret: str = Field(alias="maskedPassword")

    model_config = {"frozen": True, "populate_by_name": True}


class ValidationResult(BaseModel):
    """Strength flags of a candidate secret."""

    min_length: bool = False
    has_upper_case: bool = False
    has_lower_case: bool = False
    has_number: bool = False
    has_special_char: bool = False

    model_config = {"frozen": True}

    @property
    def is_strong(self) -> bool:
        return all((
            self.min_length,
            self.has_upper_case,
            self.has_lower_case,
            self.has_number,
            self.has_special_char,
        ))

    def failed(self) -> list[str]:
        """Names of the flags that are not satisfied."""
        return [name for name, ok in self if not ok]
