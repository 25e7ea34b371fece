from typing import Optional, Union

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.database import get_db
from portal.core.deps import get_identity_resolver, get_mailer, get_token_codec
from portal.core.errors import NotFound, Unauthorized, ValidationFailed
from portal.core.guard import extract_bearer
from portal.core.identity import IdentityResolver
from portal.core.schemas import ApiModel, SuccessOut
from portal.core.security import TokenCodec
from portal.services import auth_service
from portal.services.mailer import Mailer


router = APIRouter()


class AuthRequest(ApiModel):
    action: str
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class UserOut(ApiModel):
    id: int
    email: str
    name: Optional[str] = None


class GuestOut(ApiModel):
    id: int
    is_guest: bool = True


class TokenResponse(ApiModel):
    token: str
    user: Union[UserOut, GuestOut]


class AdminTokenResponse(TokenResponse):
    is_admin: bool


class EmployeeTokenResponse(TokenResponse):
    is_employee: bool


class ProfileOut(ApiModel):
    id: int
    email: str
    name: Optional[str] = None
    is_guest: bool = False


class ForgotPasswordRequest(ApiModel):
    email: Optional[str] = None


class ResetPasswordRequest(ApiModel):
    token: Optional[str] = None
    password: Optional[str] = None


def _dump(model: ApiModel, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(by_alias=True))


@router.get("/auth", response_model=ProfileOut)
def get_profile(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    resolver: IdentityResolver = Depends(get_identity_resolver),
):
    subject = codec.verify(extract_bearer(authorization))
    if subject is None:
        raise Unauthorized()
    identity = resolver.resolve(db, subject)
    if identity is None:
        raise NotFound("User not found")
    return ProfileOut.model_validate(identity.user)


@router.post("/auth")
def auth_action(
    data: AuthRequest,
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    resolver: IdentityResolver = Depends(get_identity_resolver),
):
    if data.action == "guest":
        result = auth_service.start_guest_session(db, codec)
        return _dump(TokenResponse(token=result.token, user=GuestOut(id=result.user.id)))

    email = auth_service.normalize_email(data.email)
    if not email or not data.password:
        raise ValidationFailed("Email and password required")

    if data.action == "register":
        result = auth_service.register(db, codec, email, data.password, data.name)
        return _dump(
            TokenResponse(token=result.token, user=UserOut.model_validate(result.user)),
            status.HTTP_201_CREATED,
        )

    if data.action == "login":
        result = auth_service.login(db, codec, email, data.password)
        return _dump(TokenResponse(token=result.token, user=UserOut.model_validate(result.user)))

    if data.action == "admin-login":
        result = auth_service.privileged_login(db, codec, resolver, email, data.password)
        return _dump(
            AdminTokenResponse(
                token=result.token,
                user=UserOut.model_validate(result.user),
                is_admin=result.roles.is_admin,
            )
        )

    if data.action == "employee-login":
        result = auth_service.privileged_login(db, codec, resolver, email, data.password)
        return _dump(
            EmployeeTokenResponse(
                token=result.token,
                user=UserOut.model_validate(result.user),
                is_employee=result.roles.is_employee,
            )
        )

    raise ValidationFailed("Invalid action")


@router.post("/forgot-password", response_model=SuccessOut)
def forgot_password(
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    email = auth_service.normalize_email(data.email)
    if not email:
        raise ValidationFailed("Email is required")
    message = auth_service.request_password_reset(db, mailer, settings, email)
    return SuccessOut(message=message)


@router.post("/reset-password", response_model=SuccessOut)
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    if not data.token or not data.password:
        raise ValidationFailed("Token and password are required")
    message = auth_service.reset_password(db, settings, data.token, data.password)
    return SuccessOut(message=message)
