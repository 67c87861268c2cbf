"""Credential hashing (bcrypt) and bearer tokens (JWT)."""
from datetime import timedelta
import bcrypt
import jwt
from app.config import Settings
from app.utils import utc_now


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def verify_password(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(_pwd_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def get_password_hash(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class TokenIssuer:
    """Signs and verifies session tokens with the configured JWT secret."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def sign(self, claims: dict, secret: str | None = None, expires_minutes: int | None = None) -> str:
        """Sign claims; `secret` overrides the service secret (per-downstream-service tokens)."""
        minutes = expires_minutes or self.settings.jwt_access_token_expire_minutes
        now = utc_now()
        payload = {**claims, "iat": now, "exp": now + timedelta(minutes=minutes)}
        # PyJWT expects "sub" to be a string
        if "sub" in payload:
            payload["sub"] = str(payload["sub"])
        raw = jwt.encode(
            payload,
            secret or self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
        )
        return raw if isinstance(raw, str) else raw.decode("utf-8")

    def verify(self, token: str) -> dict | None:
        payload, _ = self.decode_with_error(token)
        return payload

    def decode_with_error(self, token: str) -> tuple[dict | None, str | None]:
        """Decode JWT; returns (payload, error_message)."""
        if not token or not isinstance(token, str):
            return None, "empty token"
        token = token.strip()
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
            )
            return payload, None
        except jwt.ExpiredSignatureError as e:
            return None, str(e)
        except jwt.PyJWTError as e:
            return None, str(e)
