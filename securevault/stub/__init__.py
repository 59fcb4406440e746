"""In-memory reference implementation of the remote vault API.

Used for local development and as the server side of the test suite. It is
not a storage engine: nothing survives the process.
"""

from .app import ApiRejected, VaultStore, create_app
from .crypto import decrypt_secret, encrypt_secret, hash_secret, verify_secret

__all__ = [
    "ApiRejected",
    "VaultStore",
    "create_app",
    "decrypt_secret",
    "encrypt_secret",
    "hash_secret",
    "verify_secret",
]
