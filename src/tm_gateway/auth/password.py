"""bcrypt hashing for user passwords."""

import bcrypt

_ENCODING = "utf-8"


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(_ENCODING), bcrypt.gensalt()).decode(_ENCODING)


def verify_password(plain: str, hashed: str) -> bool:
    """False on mismatch, and also when the stored hash is not a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode(_ENCODING), hashed.encode(_ENCODING))
    except ValueError:
        return False
