from __future__ import annotations

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.exceptions import AuthenticationError

_ACCESS_SALT = "seva-sarthi-access-token"


class AccessTokenSigner:
    """Signed, time-limited bearer tokens carrying a user id."""

    def __init__(self, secret_key: str, *, max_age_seconds: int = 8 * 3600):
        if not secret_key:
            raise ValueError("secret_key is required to sign access tokens")
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_ACCESS_SALT)
        self._max_age = int(max_age_seconds)

    def issue(self, user_id: str) -> str:
        return self._serializer.dumps({"sub": user_id})

    def verify(self, token: str) -> str:
        try:
            payload = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired:
            raise AuthenticationError("Token expired")
        except BadSignature:
            raise AuthenticationError("Invalid token or unauthorized")

        user_id = payload.get("sub") if isinstance(payload, dict) else None
        if not user_id:
            raise AuthenticationError("Invalid token or unauthorized")
        return str(user_id)
