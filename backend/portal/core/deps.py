from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.database import get_db
from portal.core.errors import Forbidden
from portal.core.guard import authenticate, require_role
from portal.core.identity import Identity, IdentityResolver
from portal.core.roles import Role
from portal.core.security import TokenCodec
from portal.models.employee import Employee
from portal.services.mailer import Mailer, ResendMailer


def get_token_codec() -> TokenCodec:
    return TokenCodec(settings)


def get_identity_resolver() -> IdentityResolver:
    return IdentityResolver(settings)


def get_mailer() -> Mailer:
    return ResendMailer(settings)


def get_current_identity(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Identity:
    return authenticate(authorization, db, codec, resolver)


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    return require_role(identity, Role.admin)


def require_employee(identity: Identity = Depends(get_current_identity)) -> Identity:
    return require_role(identity, Role.employee)


def get_current_employee(identity: Identity = Depends(require_employee)) -> Employee:
    # The portal works on the staff record itself, a role marker alone is not enough
    if identity.employee is None:
        raise Forbidden("Employee profile not found")
    return identity.employee
