import logging
from typing import Optional

from sqlalchemy.orm import Session

from portal.core.errors import Forbidden, Unauthorized
from portal.core.identity import Identity, IdentityResolver
from portal.core.roles import Role
from portal.core.security import TokenCodec


logger = logging.getLogger(__name__)

ROLE_REQUIRED_MESSAGES = {
    Role.admin: "Admin access required",
    Role.employee: "Employee access required",
}


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authenticate(
    authorization: Optional[str],
    db: Session,
    codec: TokenCodec,
    resolver: IdentityResolver,
) -> Identity:
    """Turn an Authorization header into an Identity or raise Unauthorized.

    Missing header, bad token and a deleted subject are indistinguishable to the caller.
    """
    token = extract_bearer(authorization)
    if token is None:
        raise Unauthorized()
    subject = codec.verify(token)
    if subject is None:
        raise Unauthorized()
    identity = resolver.resolve(db, subject)
    if identity is None:
        raise Unauthorized()
    return identity


def require_role(identity: Identity, role: Role) -> Identity:
    if not identity.roles.has(role):
        logger.info("User %s denied %s access", identity.user_id, role.value)
        raise Forbidden(ROLE_REQUIRED_MESSAGES[role])
    return identity
