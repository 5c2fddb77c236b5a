from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken


class TokenSealer:
    """Seal small JSON payloads into tamper-proof, time-stamped tokens.

    The Fernet key is derived from the application secret, so rotating
    ``APP_SECRET_KEY`` invalidates every outstanding token.
    """

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("APP_SECRET_KEY is required to seal session tokens.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def seal(self, payload: dict[str, Any]) -> str:
        raw = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        return self._fernet.encrypt(raw.encode("utf-8")).decode("ascii")

    def unseal(self, token: str, max_age_sec: Optional[int] = None) -> Optional[dict[str, Any]]:
        """Return the sealed payload, or None if the token is forged, stale or garbled."""

        try:
            raw = self._fernet.decrypt(token.encode("utf-8"), ttl=max_age_sec)
        except (InvalidToken, UnicodeEncodeError):
            return None
        try:
            payload = json.loads(raw)
        except ValueError:
            return None
        return payload if isinstance(payload, dict) else None
