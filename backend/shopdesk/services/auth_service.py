# Overview: Service-layer operations for accounts, passwords and sign-in.

"""
Authentication Service

Accounts are keyed by email (stored as Profile.username). Passwords are
bcrypt hashed; the cost factor comes from BCRYPT_ROUNDS (12 in production).

ROLE ON SIGNUP:
- the very first account becomes admin so the shop can be set up
- every later account starts as cashier until an admin changes it
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Profile, UserRole
from ..models.auth import ROLE_ADMIN, ROLE_CASHIER
from shopdesk.time_utils import utcnow


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Password too weak to store."""
    pass


class AccountError(Exception):
    """Raised when an account cannot be created."""
    pass


MIN_PASSWORD_LENGTH = 8

# (pattern, what is missing)
PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^A-Za-z0-9\s]"), "a special character"),
)


def validate_password_strength(password: str) -> None:
    """
    At least 8 characters with an uppercase letter, a lowercase letter, a
    digit and a special character. Raises PasswordValidationError naming the
    first rule that fails.
    """
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    for pattern, requirement in PASSWORD_RULES:
        if not pattern.search(password):
            raise PasswordValidationError(f"Password must contain {requirement}")


def hash_password(password: str) -> str:
    """Validate strength, then bcrypt hash with the configured cost factor."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email) -> str:
    return (email or "").strip().lower() if isinstance(email, str) else ""


def get_user_role(user_id: str) -> str | None:
    row = db.session.query(UserRole.role).filter_by(user_id=user_id).first()
    return row[0] if row else None


def register_user(email: str, password: str, role: str | None = None) -> Profile:
    """
    Create an account.

    Args:
        email: Login email, unique case-insensitively
        password: Must pass validate_password_strength
        role: Explicit role (CLI use); defaults to admin for the first
            account and cashier afterwards

    Raises:
        AccountError: Malformed or already registered email
        PasswordValidationError: Weak password
    """
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise AccountError("A valid email is required")

    if db.session.query(Profile.id).filter_by(username=email).first():
        raise AccountError("An account with this email already exists")

    password_hash = hash_password(password)

    if role is None:
        role = ROLE_CASHIER if db.session.query(Profile.id).first() else ROLE_ADMIN

    user = Profile(username=email, password_hash=password_hash, is_active=True)
    db.session.add(user)
    db.session.flush()
    db.session.add(UserRole(user_id=user.id, role=role))
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> Profile | None:
    """
    Return the active profile for these credentials, or None.

    Updates last_login_at on success.
    """
    email = normalize_email(email)
    if not email or not isinstance(password, str):
        return None

    user = db.session.query(Profile).filter(
        Profile.username == email,
        Profile.is_active.is_(True),
    ).first()
    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
