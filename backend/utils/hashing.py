# backend/utils/hashing.py
import hashlib
import hmac

import bcrypt

# bcrypt only looks at the first 72 bytes of a secret
_BCRYPT_MAX_BYTES = 72


def _encode(secret: str) -> bytes:
    return secret.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a valid bcrypt hash
        return False


# bcrypt hashes carry a "$2a$" / "$2b$" / "$2y$" prefix
def is_bcrypt_hash(value: str) -> bool:
    return value.startswith("$2")


def verify_shared_secret(supplied: str, stored: str) -> bool:
    """Compare a supplied secret against a stored one in constant time.

    Stored bcrypt hashes are checked with bcrypt. Plain stored secrets are
    hashed on both sides first so the comparison always runs over two
    equal-length digests, whatever the input lengths.
    """
    if is_bcrypt_hash(stored):
        return verify_password(supplied, stored)
    supplied_digest = hashlib.sha256(supplied.encode("utf-8")).digest()
    stored_digest = hashlib.sha256(stored.encode("utf-8")).digest()
    return hmac.compare_digest(supplied_digest, stored_digest)
