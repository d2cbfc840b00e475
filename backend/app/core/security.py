from datetime import datetime, timedelta
from typing import Dict, Any
from jose import JWTError, jwt
import bcrypt
import hashlib
import hmac
import secrets

from app.core.config import settings
from app.core.exceptions import InvalidTokenError

# Token purposes carried in the "type" claim
EMAIL_VERIFICATION_TOKEN = "email_verification"
PASSWORD_RESET_TOKEN = "password_reset"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    if not hashed_password:
        return False
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def create_purpose_token(data: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    """Create a short-lived JWT bound to a single purpose"""
    to_encode = data.copy()
    expire = datetime.utcnow() + expires_delta
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_email_verification_token(nim: str, email: str) -> str:
    return create_purpose_token(
        {"sub": nim, "email": email},
        EMAIL_VERIFICATION_TOKEN,
        timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
    )


def create_password_reset_token(email: str, reset_id: int) -> str:
    return create_purpose_token(
        {"sub": email, "rid": reset_id},
        PASSWORD_RESET_TOKEN,
        timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
    )


def decode_token(token: str, expected_type: str) -> Dict[str, Any]:
    """
    Decode a purpose token.

    Raises InvalidTokenError when the signature, expiry or "type" claim
    does not check out.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise InvalidTokenError()

    if payload.get("type") != expected_type:
        raise InvalidTokenError()

    return payload


def generate_access_token() -> str:
    """Generate an opaque bearer token (returned to the client once)"""
    return secrets.token_urlsafe(settings.ACCESS_TOKEN_BYTES)


def hash_access_token(token: str) -> str:
    """Digest stored in personal_access_tokens.token_hash"""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def access_token_matches(token: str, token_hash: str) -> bool:
    # Using constant-time comparison to prevent timing attacks
    return hmac.compare_digest(hash_access_token(token), token_hash)


def generate_otp() -> str:
    """Four digit one-time code, 1000-9999, from a CSPRNG"""
    return str(1000 + secrets.randbelow(9000))


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)
