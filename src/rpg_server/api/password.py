"""Password hashing helpers (bcrypt)."""

from functools import lru_cache

import bcrypt


def hash_password(password: str) -> str:
    """Return a bcrypt hash for ``password`` as a UTF-8 string."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored bcrypt hash.

    Malformed hashes are treated as a mismatch rather than an error so a
    corrupt row cannot take down the login endpoint.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """A real bcrypt hash at the default cost, checked when a login email is unknown."""
    return hash_password("unknown-account-placeholder")  # nosec B106
