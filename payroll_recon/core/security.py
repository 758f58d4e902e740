from __future__ import annotations

import bcrypt

from payroll_recon.core.errors import InputError

# bcrypt only looks at the first 72 bytes; longer input is rejected, not truncated
MAX_PASSWORD_BYTES = 72


def _normalize_password(password: str) -> bytes:
    """
    Make initial passwords resilient to copy-paste issues:
    - Leading/trailing whitespace/newlines
    """
    if password is None:
        return b""
    return password.strip().encode("utf-8")


def hash_password(password: str) -> str:
    raw = _normalize_password(password)
    if not raw:
        raise InputError("Password must not be empty")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise InputError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    raw = _normalize_password(password)
    if not raw or not password_hash or len(raw) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(raw, password_hash.encode("ascii"))
