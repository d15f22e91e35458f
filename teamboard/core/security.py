# teamboard/core/security.py

from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import ExpiredSignatureError, JWTError, jwt

from fastapi.security import OAuth2PasswordBearer

from teamboard.core.exceptions import AuthError
from teamboard.core.settings import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


class TokenIssuer:
    """
    Issues and verifies stateless bearer tokens (JWT).

    There is no revocation list and no refresh flow: a token is valid
    until its `exp` claim passes.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_days: int = 30):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_delta = timedelta(days=expire_days)

    @classmethod
    def from_settings(cls, app_settings=settings) -> "TokenIssuer":
        return cls(
            secret_key=app_settings.SECRET_KEY,
            algorithm=app_settings.JWT_ALGORITHM,
            expire_days=app_settings.ACCESS_TOKEN_EXPIRE_DAYS,
        )

    def issue(self, user_id: int, expires_delta: timedelta | None = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self.expire_delta)
        to_encode = {"sub": str(user_id), "iat": now, "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """
        Returns the user id carried by the token.
        Raises AuthError with reason malformed / invalid-signature / expired.
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            raise AuthError("Malformed token", reason=AuthError.MALFORMED)

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthError("Token has expired", reason=AuthError.EXPIRED)
        except JWTError:
            raise AuthError("Invalid token signature", reason=AuthError.INVALID_SIGNATURE)

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError):
            raise AuthError("Malformed token", reason=AuthError.MALFORMED)


# Bearer extraction; a missing header is reported by get_current_user, not here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)
