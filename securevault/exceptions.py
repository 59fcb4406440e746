"""
SecureVault error taxonomy.

Every failure the client reports is one of a closed set of kinds. Callers
dispatch on ``err.kind`` and never probe response shapes.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    REGISTRATION = "registration"
    SESSION_EXPIRED = "session_expired"
    DECRYPTION = "decryption"
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"
    REVEAL_STATE = "reveal_state"


class VaultError(Exception):
    """Base class for all SecureVault errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT
    default_message: str = "Vault operation failed"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        self.message = message or self.default_message
        self.status = status
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value} status={self.status}: {self.message}>"


class ValidationError(VaultError):
    """Client-side policy failure, raised before any network call."""
    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class AuthenticationError(VaultError):
    """Bad login credentials."""
    kind = ErrorKind.AUTHENTICATION
    default_message = "Authentication failed"


class RegistrationError(VaultError):
    """Registration rejected (duplicate username, server-side policy)."""
    kind = ErrorKind.REGISTRATION
    default_message = "Registration failed"


class SessionExpiredError(VaultError):
    """The bearer token is missing or no longer accepted."""
    kind = ErrorKind.SESSION_EXPIRED
    default_message = "Session expired, please log in again"


class DecryptionError(VaultError):
    """Master secret rejected. Does not end the session."""
    kind = ErrorKind.DECRYPTION
    default_message = "Failed to decrypt password"


class NotFoundError(VaultError):
    """Vault entry does not exist (or no longer does)."""
    kind = ErrorKind.NOT_FOUND
    default_message = "Password entry not found"


class TransportError(VaultError):
    """Network failure or an unclassified response."""
    kind = ErrorKind.TRANSPORT
    default_message = "Unable to reach the vault service"


class RevealStateError(VaultError):
    """Reveal transition not allowed from the current state."""
    kind = ErrorKind.REVEAL_STATE
    default_message = "Reveal request not allowed in the current state"
