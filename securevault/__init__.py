"""SecureVault Client — security protocol for a remote credential vault.

Security Note (Threat Model):
    The bearer token, revealed plaintext and master secret attempts exist
    only in process memory for as long as the owning object needs them.
    Python strings cannot be wiped, so a memory dump taken while a secret is
    revealed could expose it. The reveal window bounds that exposure; it
    does not remove it.
"""

from .version import __version__
from .conf import MasterSecretMode
from .config import ClientConfig
from .exceptions import (
    AuthenticationError,
    DecryptionError,
    ErrorKind,
    NotFoundError,
    RegistrationError,
    RevealStateError,
    SessionExpiredError,
    TransportError,
    ValidationError,
    VaultError,
)
from .models import Identity, ValidationResult, VaultEntry
from .validation import validate_pin, validate_secret_strength
from .transport import ApiConnection, SessionView, VaultClient
from .session import SessionManager
from .reveal import RevealController, RevealSession, RevealState
from .registry import EntryRegistry
from .dashboard import VaultDashboard

__all__ = [
    "__version__",
    "MasterSecretMode",
    "ClientConfig",
    "ErrorKind",
    "VaultError",
    "ValidationError",
    "AuthenticationError",
    "RegistrationError",
    "SessionExpiredError",
    "DecryptionError",
    "NotFoundError",
    "TransportError",
    "RevealStateError",
    "Identity",
    "ValidationResult",
    "VaultEntry",
    "validate_pin",
    "validate_secret_strength",
    "ApiConnection",
    "SessionView",
    "VaultClient",
    "SessionManager",
    "RevealController",
    "RevealSession",
    "RevealState",
    "EntryRegistry",
    "VaultDashboard",
]
