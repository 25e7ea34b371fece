"""
Credential lifecycle: registration, login, guest sessions and password reset.

Failures that could reveal whether an account exists are raised as AuthFailure,
whose message is fixed. The specific reason is only logged.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.core.config import Settings
from portal.core.errors import AuthFailure, Conflict, ResetTokenInvalid, UpstreamError, ValidationFailed
from portal.core.identity import IdentityResolver
from portal.core.roles import RoleSet
from portal.core.security import (
    TokenCodec,
    digest_reset_token,
    generate_reset_token,
    hash_password,
    password_context,
    verify_password,
)
from portal.core.timeutils import utcnow
from portal.models.user import User
from portal.services.mailer import Mailer, MailerError, render_reset_email


logger = logging.getLogger(__name__)

GUEST_EMAIL_DOMAIN = "guest.local"
RESET_REQUESTED_MESSAGE = "If an account exists with this email, you will receive a password reset link."
RESET_COMPLETED_MESSAGE = "Password has been reset successfully"


@dataclass
class AuthResult:
    token: str
    user: User
    roles: Optional[RoleSet] = None


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def register(db: Session, codec: TokenCodec, email: str, password: str, name: Optional[str] = None) -> AuthResult:
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationFailed("Email and password required")
    if db.query(User).filter(User.email == normalized).first():
        raise Conflict("Email already registered")

    user = User(email=normalized, password_hash=hash_password(password), name=name or None)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        logger.info("Duplicate registration rejected by unique index for %s", normalized)
        raise Conflict("Email already registered")
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return AuthResult(token=codec.issue(user.id), user=user)


def authenticate_credentials(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user:
        # Spend comparable time so response latency does not reveal unknown emails
        password_context.dummy_verify()
        logger.info("Login failed: unknown email")
        raise AuthFailure("unknown-email")
    if not verify_password(password, user.password_hash):
        logger.info("Login failed: password mismatch for user %s", user.id)
        raise AuthFailure("password-mismatch")
    return user


def login(db: Session, codec: TokenCodec, email: str, password: str) -> AuthResult:
    user = authenticate_credentials(db, email, password)
    return AuthResult(token=codec.issue(user.id), user=user)


def privileged_login(
    db: Session, codec: TokenCodec, resolver: IdentityResolver, email: str, password: str
) -> AuthResult:
    """Login that also reports the caller's role flags; the token itself carries none."""
    user = authenticate_credentials(db, email, password)
    return AuthResult(token=codec.issue(user.id), user=user, roles=resolver.roles_for(db, user))


def start_guest_session(db: Session, codec: TokenCodec) -> AuthResult:
    user = User(
        email=f"guest_{uuid.uuid4().hex}@{GUEST_EMAIL_DOMAIN}",
        password_hash="",
        is_guest=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return AuthResult(token=codec.issue(user.id), user=user)


def request_password_reset(db: Session, mailer: Mailer, config: Settings, email: str) -> str:
    """Store a fresh reset token and mail it. Returns the same message whether or not the user exists."""
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user or user.is_guest:
        logger.info("Password reset requested for unknown email")
        return RESET_REQUESTED_MESSAGE

    token = generate_reset_token()
    user.reset_token_hash = digest_reset_token(token)
    user.reset_token_expiry = utcnow() + timedelta(minutes=config.reset_token_expire_minutes)
    db.commit()

    reset_link = f"{config.app_url.rstrip('/')}/reset-password?token={token}"
    try:
        mailer.send(
            to=user.email,
            subject="Reset Your Password",
            html=render_reset_email(reset_link, config.reset_token_expire_minutes),
        )
    except MailerError:
        logger.error("Failed to send reset email to user %s", user.id)
        raise UpstreamError("Failed to send reset email")

    logger.info("Password reset email sent to user %s", user.id)
    return RESET_REQUESTED_MESSAGE


def reset_password(db: Session, config: Settings, token: str, new_password: str) -> str:
    if len(new_password) < config.password_min_length:
        raise ValidationFailed(f"Password must be at least {config.password_min_length} characters")

    digest = digest_reset_token(token)
    now = utcnow()
    user = db.query(User).filter(User.reset_token_hash == digest).first()
    if not user:
        logger.info("Password reset with unknown token")
        raise ResetTokenInvalid("unknown-token")
    if user.reset_token_expiry is None or user.reset_token_expiry <= now:
        logger.info("Password reset with expired token for user %s", user.id)
        raise ResetTokenInvalid("expired-token")

    # Conditional update: the token is consumed in the same statement that sets the password
    updated = (
        db.query(User)
        .filter(User.id == user.id, User.reset_token_hash == digest, User.reset_token_expiry > now)
        .update(
            {
                User.password_hash: hash_password(new_password),
                User.reset_token_hash: None,
                User.reset_token_expiry: None,
            },
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        logger.info("Reset token for user %s was consumed concurrently", user.id)
        raise ResetTokenInvalid("consumed-token")
    db.commit()
    logger.info("Password reset completed for user %s", user.id)
    return RESET_COMPLETED_MESSAGE
