"""
Validation Engine — client-side policy checks for secrets and forms.

The strength rules mirror the server's acceptance pattern exactly so that
client and server never disagree about what is acceptable. All checks are
pure and cheap enough to run on every keystroke; the ``check_*`` helpers
raise ``ValidationError`` so a form can be refused before any network call.
"""
import re
from typing import Optional

from .conf import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    PASSWORD_VALIDATION_MESSAGE,
    PIN_VALIDATION_MESSAGE,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    MasterSecretMode,
)
from .exceptions import ValidationError
from .models import ValidationResult

SPECIAL_CHARACTERS = frozenset("!@#$%^&*()_+-=[]{};':\"\\|,.<>/?")

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_PIN = re.compile(r"[0-9]{4}")


def validate_secret_strength(candidate: str) -> ValidationResult:
    """Compute each strength flag of ``candidate`` independently."""
    return ValidationResult(
        min_length=len(candidate) >= PASSWORD_MIN_LENGTH,
        has_upper_case=_UPPER.search(candidate) is not None,
        has_lower_case=_LOWER.search(candidate) is not None,
        has_number=_DIGIT.search(candidate) is not None,
        has_special_char=any(c in SPECIAL_CHARACTERS for c in candidate),
    )


def is_strong_secret(candidate: str) -> bool:
    return validate_secret_strength(candidate).is_strong


def validate_pin(candidate: str) -> bool:
    """True iff ``candidate`` is exactly four ASCII decimal digits."""
    return _PIN.fullmatch(candidate) is not None


def validate_username(username: str) -> bool:
    return (
        bool(username.strip())
        and USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH
    )


def validate_master_secret(candidate: str, mode: MasterSecretMode) -> bool:
    """Apply the policy of the build's master secret variant."""
    if mode is MasterSecretMode.PIN:
        return validate_pin(candidate)
    return is_strong_secret(candidate)


def _require(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value


def _check_length(secret: str, label: str) -> None:
    if len(secret) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"{label} must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(secret) > PASSWORD_MAX_LENGTH:
        raise ValidationError(f"{label} must be at most {PASSWORD_MAX_LENGTH} characters")


def _check_master(master_secret: str, mode: MasterSecretMode) -> None:
    if mode is MasterSecretMode.PASSWORD:
        _check_length(master_secret, "Master password")
    if not validate_master_secret(master_secret, mode):
        if mode is MasterSecretMode.PIN:
            raise ValidationError(PIN_VALIDATION_MESSAGE)
        raise ValidationError(PASSWORD_VALIDATION_MESSAGE)


def check_registration(
    username: str,
    login_secret: str,
    master_secret: str,
    mode: MasterSecretMode,
    confirmation: Optional[str] = None,
) -> None:
    """Refuse a registration form that the server would reject.

    Args:
        username: Requested username (3..50 characters).
        login_secret: Login password, strong and 8..128 characters.
        master_secret: Master password or PIN, per ``mode``.
        mode: Master secret variant of this build.
        confirmation: Master secret confirmation, when the form has one.

    Raises:
        ValidationError: On the first failing rule.
    """
    _require(username, "Username is required")
    if not validate_username(username):
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LENGTH} "
            f"and {USERNAME_MAX_LENGTH} characters"
        )
    _require(login_secret, "Login password is required")
    _check_length(login_secret, "Login password")
    if not is_strong_secret(login_secret):
        raise ValidationError(PASSWORD_VALIDATION_MESSAGE)
    _require(master_secret, "Master secret is required")
    _check_master(master_secret, mode)
    if master_secret == login_secret:
        raise ValidationError("Master secret must differ from the login password")
    if confirmation is not None and master_secret != confirmation:
        raise ValidationError("Master passwords do not match")


def check_login(username: str, login_secret: str) -> None:
    _require(username, "Username is required")
    _require(login_secret, "Login password is required")


def check_new_entry(
    app_name: str,
    app_username: str,
    secret: str,
    master_secret: str,
    mode: MasterSecretMode,
) -> None:
    """Refuse an add-entry form with missing fields or a malformed master secret."""
    _require(app_name, "App name is required")
    _require(app_username, "App username is required")
    _require(secret, "Password is required")
    _require(master_secret, "Master secret is required")
    _check_master(master_secret, mode)


def check_master_attempt(attempt: str, mode: MasterSecretMode) -> None:
    """Refuse a reveal attempt that cannot possibly be a valid master secret.

    In password mode only emptiness is checked locally; the server decides.
    """
    _require(attempt, "Master secret is required")
    if mode is MasterSecretMode.PIN and not validate_pin(attempt):
        raise ValidationError(PIN_VALIDATION_MESSAGE)
