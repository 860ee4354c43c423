"""
Crypto utilities — bcrypt hashing of actor secrets.

Actors store only ``password_hash``.  Verification is an exact,
case-sensitive comparison of the supplied secret against that hash.
"""

import bcrypt

DEFAULT_ROUNDS = 12


def hash_password(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a plain-text secret with bcrypt (12 rounds unless configured)."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str | None, password_hash: str) -> bool:
    """Verify a plain-text secret against its bcrypt hash."""
    if not password_hash or plain_password is None:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Stored value is not a bcrypt hash (corrupted record).
        return False
