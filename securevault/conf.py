"""
SecureVault constants.

The master secret variant is a build-time choice: a deployment speaks either
``masterPin`` or ``masterPassword`` on the wire, never both.
"""
from enum import Enum


class MasterSecretMode(str, Enum):
    PASSWORD = "password"
    PIN = "pin"


# Build variant for the master secret.
MASTER_SECRET_MODE = MasterSecretMode.PIN

# Wire field carrying the master secret, per variant.
MASTER_FIELD = {
    MasterSecretMode.PASSWORD: "masterPassword",
    MasterSecretMode.PIN: "masterPin",
}

API_URL_ENV = "SECUREVAULT_API_URL"
DEFAULT_API_URL = "http://localhost:8080"
REQUEST_TIMEOUT = 10.0

# Seconds a revealed secret stays visible.
REVEAL_WINDOW = 30

MASKED_SECRET = "********"

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
PIN_LENGTH = 4

PASSWORD_VALIDATION_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase "
    "letter, one number, and one special character"
)
PIN_VALIDATION_MESSAGE = "Master PIN must be exactly 4 digits"
