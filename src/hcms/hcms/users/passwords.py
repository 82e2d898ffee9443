"""Password hashing.

New hashes are produced by werkzeug. Verification also accepts the two formats
already present in existing data: bcrypt hashes written by the previous API
server and unsalted SHA-256 hex digests written by the old admin screens.
Those legacy hashes are reported by `needs_rehash()` so they can be upgraded
after a successful login.
"""

from __future__ import annotations

import hashlib
import hmac
import re

import bcrypt
from werkzeug.security import check_password_hash, generate_password_hash

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
_SHA256_HEX_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, stored_hash: str | None) -> bool:
    if not password or not stored_hash:
        return False

    if stored_hash.startswith(_BCRYPT_PREFIXES):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
        except ValueError:
            return False

    if _SHA256_HEX_RE.match(stored_hash):
        digest = hashlib.sha256(password.encode("utf-8")).hexdigest()
        return hmac.compare_digest(digest, stored_hash.lower())

    try:
        return check_password_hash(stored_hash, password)
    except (ValueError, TypeError):
        # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
        return False


def needs_rehash(stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    return stored_hash.startswith(_BCRYPT_PREFIXES) or bool(_SHA256_HEX_RE.match(stored_hash))
