"""Password hashing, JWT tokens and opaque codes."""
import secrets
import uuid
from datetime import timedelta
from jose import JWTError, jwt
import bcrypt
from app.core.config import settings
from app.core.time import utc_now

# No 0/O or 1/I so codes survive being read aloud or retyped
INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def create_access_token(data: dict, session_id: str | None = None) -> str:
    """Create a signed JWT for `data["sub"]`, optionally bound to a login session."""
    to_encode = data.copy()
    to_encode["exp"] = utc_now() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    if session_id:
        to_encode["sid"] = session_id
    if settings.JWT_ISSUER:
        to_encode["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode a JWT, returning None when the signature or claims are invalid."""
    options = {
        "verify_aud": bool(settings.JWT_AUDIENCE),
        "verify_iss": bool(settings.JWT_ISSUER),
    }
    decode_kwargs = {
        "token": token,
        "key": settings.SECRET_KEY,
        "algorithms": [settings.ALGORITHM],
        "options": options,
    }
    if settings.JWT_AUDIENCE:
        decode_kwargs["audience"] = settings.JWT_AUDIENCE
    if settings.JWT_ISSUER:
        decode_kwargs["issuer"] = settings.JWT_ISSUER
    try:
        return jwt.decode(**decode_kwargs)
    except JWTError:
        return None


def new_session_id() -> str:
    return uuid.uuid4().hex


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
