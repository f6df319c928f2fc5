"""Password hashing and signed bearer tokens."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from backend.config import Settings, get_settings


class TokenError(Exception):
    """Base for token verification failures."""


class TokenExpired(TokenError):
    pass


class TokenMalformed(TokenError):
    pass


def _make_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


pwd_context = _make_context(get_settings().bcrypt_rounds)


def verify_password(plain_password: str, password_hash: str) -> bool:
    # passlib compares digests in constant time.
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


class TokenService:
    """Issues and verifies HS256-signed JWTs carrying a user id in ``sub``."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 60 * 24 * 7):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(settings.secret_key, settings.jwt_algorithm, settings.jwt_expires_minutes)

    def issue(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expires_minutes))
        to_encode = {"sub": str(user_id), "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Return the user id embedded in ``token``.

        Raises TokenExpired past the ``exp`` claim and TokenMalformed for
        a bad signature or a token missing its subject.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired("Token expired") from exc
        except JWTError as exc:
            raise TokenMalformed("Invalid token") from exc
        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            raise TokenMalformed("Token has no subject")
        return user_id


def get_token_service() -> TokenService:
    return TokenService.from_settings(get_settings())
