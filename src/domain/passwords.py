"""Password hashing with bcrypt."""

import bcrypt

# bcrypt only considers the first 72 bytes of input
_MAX_PASSWORD_BYTES = 72

# Compared against when no account matches so sign-in always pays for a bcrypt check.
_DUMMY_BCRYPT_HASH = bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(10)).decode()


def _pwd_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash password using bcrypt with the given cost factor."""
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str | None) -> bool:
    """Constant-time check of ``password`` against a stored hash."""
    stored = password_hash or _DUMMY_BCRYPT_HASH
    try:
        matched = bcrypt.checkpw(_pwd_bytes(password), stored.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
    return matched and password_hash is not None
