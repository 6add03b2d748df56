"""
Identity hashing: account id -> pseudonymous handle.

The handle is SHA-256(account_id + deployment_salt) in hex. Every table joins
on it, so the salt must stay fixed for the deployment's lifetime.
"""
from __future__ import annotations

import hashlib
import uuid
from typing import Optional

from wellness_core.core.config import Settings, check_salt
from wellness_core.core.errors import ValidationError

HASH_LENGTH = 64
_LOG_PREFIX_LENGTH = 12


class IdentityHasher:
    """Deterministic one-way transform keyed by the deployment secret."""

    def __init__(self, secret: str):
        self._secret = check_salt(secret)

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityHasher":
        return cls(settings.ZKWV_SALT)

    def hash(self, account_id: str) -> str:
        if not isinstance(account_id, str) or not account_id.strip():
            raise ValidationError("account_id", "must be a non-empty string")
        digest = hashlib.sha256()
        digest.update((account_id + self._secret).encode("utf-8"))
        return digest.hexdigest()

    def __repr__(self) -> str:
        return "IdentityHasher(secret=***)"


def hash_session(session_id: Optional[str] = None) -> str:
    """Hash a session id for grouping; random when the caller has none."""
    raw = session_id if session_id else f"session_{uuid.uuid4().hex}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def hash_prefix(identity_hash: str) -> str:
    """Log-safe short form of a handle."""
    return identity_hash[:_LOG_PREFIX_LENGTH]
