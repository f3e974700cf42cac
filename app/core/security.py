import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

# pbkdf2_sha256 has no input length cap and no native backend to install
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"
ACCESS = "access"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def throwaway_password() -> str:
    """Random password for accounts created implicitly at guest checkout."""
    return "guest-" + secrets.token_urlsafe(12)


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes)
    claims = {"sub": user_id, "type": ACCESS, "exp": datetime.now(timezone.utc) + ttl}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGO)


def decode_access_token(token: str) -> dict:
    """Return the claims of a valid access token; raise JWTError otherwise."""
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
    if claims.get("type") != ACCESS or not claims.get("sub"):
        raise JWTError("not an access token")
    return claims
