import bcrypt

from feedback_portal.core import config

# bcrypt only looks at the first 72 bytes.
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: int | None = None) -> str:
    password_bytes = password.encode('utf-8')[:_BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds or config.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not plain_password or not password_hash:
        return False
    password_bytes = plain_password.encode('utf-8')[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash.
        return False
