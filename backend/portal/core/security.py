import binascii
import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode
from passlib.context import CryptContext

from portal.core.config import Settings, settings
from portal.core.errors import ValidationFailed


logger = logging.getLogger(__name__)


password_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    try:
        return password_context.hash(password)
    except ValueError:
        # bcrypt refuses NUL bytes
        raise ValidationFailed("Invalid password")


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    # Guest accounts carry an empty hash and can never match
    if not hashed_password:
        return False
    try:
        return password_context.verify(password, hashed_password)
    except (ValueError, TypeError):
        logger.warning("Unparseable password hash encountered during verification")
        return False


def _is_canonical(token: str) -> bool:
    # base64url tolerates stray trailing bits; a token must round-trip byte for byte
    parts = token.split(".")
    if len(parts) != 3:
        return False
    try:
        return all(base64url_encode(base64url_decode(part)).decode("ascii") == part for part in parts)
    except (binascii.Error, ValueError, UnicodeError):
        return False


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def digest_reset_token(token: str) -> str:
    """Reset tokens are stored as their sha256 so a leaked row cannot be replayed."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenCodec:
    """Signs and verifies session tokens carrying only a subject id and an expiry.

    Role information is never embedded: it is re-derived from the store on every request.
    """

    def __init__(self, config: Settings):
        self.secret = config.jwt_secret
        self.algorithm = config.jwt_algorithm
        self.lifetime = timedelta(days=config.token_expire_days)

    def issue(self, subject: Any, issued_at: Optional[datetime] = None) -> str:
        issued_at = issued_at or datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(subject),
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> Optional[str]:
        """Return the subject id, or None for any malformed, forged or expired token."""
        if not token or not _is_canonical(token):
            return None
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired session token")
            return None
        except jwt.PyJWTError as exc:
            logger.info("Rejected session token: %s", exc.__class__.__name__)
            return None
        return payload["sub"]
