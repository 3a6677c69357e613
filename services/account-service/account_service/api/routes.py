"""HTTP route definitions for the account service."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, File, Header, Request, Response, UploadFile, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic import ValidationError as PydanticValidationError

from schemas import AccountProfile, RegisteredAccount, SubscriptionTier

from ..domain.account import Account
from ..domain.contracts import Credentials, UploadedFile
from ..domain.errors import AccountError, AuthError, ValidationError
from ..domain.service import NO_FILE_UPLOADED, AccountService
from ..media.avatars import AvatarStore
from .errors import first_error_message, internal_errors, on_invalid_body


router = APIRouter()


class SignupRequest(BaseModel):
    """Payload accepted when registering an account."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(BaseModel):
    """Payload accepted when starting a session."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class SubscriptionUpdateRequest(BaseModel):
    """Payload accepted when changing the subscription tier."""

    model_config = ConfigDict(populate_by_name=True)

    subscription_tier: SubscriptionTier = Field(..., alias="subscriptionTier")


class SignupResponse(BaseModel):
    """Public profile of a freshly registered account."""

    user: RegisteredAccount


class LoginResponse(BaseModel):
    """Session token plus the public profile of the logged-in account."""

    token: str
    user: AccountProfile


class AvatarResponse(BaseModel):
    """Public reference of the stored avatar image."""

    model_config = ConfigDict(populate_by_name=True)

    avatar_reference: str = Field(..., alias="avatarReference")


def _profile(account: Account) -> AccountProfile:
    return AccountProfile(email=account.email, subscription_tier=account.subscription)


def _parse(model: type[BaseModel], payload: Any, error: type[AccountError]) -> Any:
    """Validate ``payload`` against ``model`` and report the first problem as ``error``."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise error(first_error_message(exc.errors())) from exc


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_avatar_store(request: Request) -> AvatarStore:
    """Resolve the `AvatarStore` stored on the FastAPI application state."""
    store: AvatarStore = request.app.state.avatar_store
    return store


def get_current_account(
    authorization: str | None = Header(default=None),
    service: AccountService = Depends(get_service),
) -> Account:
    """Authenticate the request from its ``Authorization: Bearer`` header."""
    with internal_errors():
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthError("Not authorized")
        return service.authenticate(token.strip())


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> SignupResponse:
    """Register a new account."""
    with internal_errors():
        request = _parse(SignupRequest, payload, ValidationError)
        account = service.signup(Credentials(email=request.email, password=request.password))
        return SignupResponse(
            user=RegisteredAccount(
                email=account.email,
                subscription_tier=account.subscription,
                avatar_reference=account.avatar_url,
            )
        )


@router.post("/login", response_model=LoginResponse)
@on_invalid_body(status.HTTP_401_UNAUTHORIZED)
def login(
    payload: Any = Body(default=None),
    service: AccountService = Depends(get_service),
) -> LoginResponse:
    """Exchange credentials for a session token."""
    with internal_errors():
        request = _parse(LoginRequest, payload, AuthError)
        token, account = service.login(Credentials(email=request.email, password=request.password))
        return LoginResponse(token=token, user=_profile(account))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_service),
) -> Response:
    """End the current session; the presented token stops working."""
    with internal_errors():
        service.logout(account)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current", response_model=AccountProfile)
def current(
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_service),
) -> AccountProfile:
    """Return the profile of the account owning the session token."""
    with internal_errors():
        return _profile(service.get_profile(account))


@router.patch("/", response_model=AccountProfile)
def update_subscription(
    payload: Any = Body(default=None),
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_service),
) -> AccountProfile:
    """Change the subscription tier of the current account."""
    with internal_errors():
        request = _parse(SubscriptionUpdateRequest, payload, ValidationError)
        updated = service.update_subscription(account, request.subscription_tier)
        return _profile(updated)


@router.patch("/avatars", response_model=AvatarResponse)
@on_invalid_body(status.HTTP_400_BAD_REQUEST, NO_FILE_UPLOADED)
def update_avatar(
    avatar: UploadFile | None = File(default=None),
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_service),
    store: AvatarStore = Depends(get_avatar_store),
) -> AvatarResponse:
    """Replace the avatar of the current account with an uploaded image."""
    with internal_errors():
        upload: UploadedFile | None = None
        if avatar is not None and avatar.filename:
            upload = store.spool(avatar.file, avatar.filename)
        reference = service.update_avatar(account, upload)
        return AvatarResponse(avatar_reference=reference)
