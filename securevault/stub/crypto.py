"""
Reference API Crypto — key derivation, secret hashing and entry encryption.

- Verifiers: PBKDF2-HMAC-SHA256(secret, salt) -> ``b64(salt|digest)``
- Entries:   PBKDF2(master_secret, salt) -> AES-256-GCM -> ``b64(salt|nonce|ct)``

Every encrypted entry carries its own salt, so each entry is sealed under its
own key derived from the master secret.

Security Note:
    Never log plaintext, master secrets or ciphertext values.
"""
import os
import base64
import logging

from cryptography.exceptions import InvalidKey, InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger("securevault.stub")

SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
KEY_LENGTH = 32  # AES-256
ITERATIONS = 65536
TAG_SIZE = 16


class DecryptFailure(Exception):
    """Ciphertext could not be opened with the given master secret."""


def _kdf(salt: bytes, iterations: int = ITERATIONS) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )


def derive_key(secret: str, salt: bytes, iterations: int = ITERATIONS) -> bytes:
    """Derive a 32-byte key from ``secret`` using PBKDF2-HMAC-SHA256.

    Args:
        secret: Master secret (password or PIN).
        salt: Random per-use salt.
        iterations: PBKDF2 work factor.

    Returns:
        32-byte derived key.
    """
    return _kdf(salt, iterations).derive(secret.encode("utf-8"))


# ---------------------------------------------------------------------------
# Verifiers (login and master secrets)
# ---------------------------------------------------------------------------

def hash_secret(secret: str, iterations: int = ITERATIONS) -> str:
    salt = os.urandom(SALT_SIZE)
    digest = derive_key(secret, salt, iterations)
    return base64.b64encode(salt + digest).decode("ascii")


def verify_secret(secret: str, verifier: str, iterations: int = ITERATIONS) -> bool:
    """Check ``secret`` against a verifier produced by ``hash_secret``."""
    raw = base64.b64decode(verifier)
    salt, digest = raw[:SALT_SIZE], raw[SALT_SIZE:]
    try:
        _kdf(salt, iterations).verify(secret.encode("utf-8"), digest)
    except InvalidKey:
        return False
    return True


# ---------------------------------------------------------------------------
# Entry encryption
# ---------------------------------------------------------------------------

def encrypt_secret(plaintext: str, master_secret: str, iterations: int = ITERATIONS) -> str:
    """Encrypt a stored credential under a key derived from the master secret.

    Format: base64([salt 16B][nonce 12B][encrypted_payload + GCM_tag 16B])
    """
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(master_secret, salt, iterations)
    ct = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(salt + nonce + ct).decode("ascii")


def decrypt_secret(blob: str, master_secret: str, iterations: int = ITERATIONS) -> str:
    """Decrypt a credential sealed by ``encrypt_secret``.

    Raises:
        DecryptFailure: Wrong master secret or tampered/short ciphertext.
    """
    raw = base64.b64decode(blob)
    _min = SALT_SIZE + NONCE_SIZE + TAG_SIZE
    if len(raw) < _min:
        raise DecryptFailure(
            f"ciphertext too short: {len(raw)} bytes (minimum {_min})"
        )
    salt = raw[:SALT_SIZE]
    nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    ct = raw[SALT_SIZE + NONCE_SIZE:]
    key = derive_key(master_secret, salt, iterations)
    try:
        return AESGCM(key).decrypt(nonce, ct, None).decode("utf-8")
    except InvalidTag as err:
        raise DecryptFailure("authentication tag mismatch") from err
