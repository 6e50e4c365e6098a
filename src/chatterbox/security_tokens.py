import hashlib
import hmac
import secrets
from typing import Optional

DEFAULT_ACTION = "chatterbox_generate"


class SecurityTokens:
    def __init__(self, secret: Optional[bytes] = None) -> None:
        self._secret = secret or secrets.token_bytes(32)

    def issue(self, session_id: str, action: str = DEFAULT_ACTION) -> str:
        if not session_id:
            raise ValueError("session_id is required to issue a token.")
        message = f"{session_id}|{action}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()[:20]

    def verify(self, session_id: str, token: Optional[str], action: str = DEFAULT_ACTION) -> bool:
        if not session_id or not token:
            return False
        expected = self.issue(session_id, action).encode("utf-8")
        return hmac.compare_digest(expected, str(token).encode("utf-8"))
