import hashlib
import hmac
import re
import secrets

from typing import Optional


_PBKDF2_ITERATIONS = 310_000
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

KEY_MASK = "••••••••"


def hash_password(password: str) -> str:
    """ PBKDF2-SHA256 hash in the form "<salt hex>$<digest hex>" """
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"

def verify_password(password: str, stored: str) -> bool:
    try:
        salt_hex, digest_hex = stored.split("$", 1)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return hmac.compare_digest(digest.hex(), digest_hex)

def new_access_token() -> str:
    return secrets.token_urlsafe(32)

def mask_key(key: Optional[str]) -> str:
    """ Display form of an API key: fixed-width mask plus the last 4 characters """
    return KEY_MASK + (key or "")[-4:]

def is_uuid(value: Optional[str]) -> bool:
    return bool(value) and bool(_UUID_RE.match(str(value)))
