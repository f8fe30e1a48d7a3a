"""Password hashing helpers (pbkdf2_hmac)."""

import hashlib
import secrets

ITERATIONS = 100_000


def hash_password(password: str, salt: str | None = None, iterations: int = ITERATIONS) -> tuple[str, str]:
    salt = salt or secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return dk.hex(), salt


def verify_password(password: str, stored_hash: str, salt: str, iterations: int = ITERATIONS) -> bool:
    dk, _ = hash_password(password, salt=salt, iterations=iterations)
    return secrets.compare_digest(dk, stored_hash)
