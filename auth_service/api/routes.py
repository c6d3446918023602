"""HTTP route definitions for the auth service."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ..domain.account import AccountStatus, AccountSummary, Profile, Role
from ..domain.contracts import AuthResult, IdentityContext, RegisterInput
from ..domain.service import AuthService
from ..security.authenticator import require_identity

router = APIRouter(prefix="/api/auth", tags=["auth"])


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


class UserSummaryResponse(CamelModel):
    """Serialised representation of an :class:`AccountSummary`."""

    user_id: str
    email: str
    first_name: str
    last_name: str
    roles: list[Role]
    status: AccountStatus

    @classmethod
    def from_domain(cls, summary: AccountSummary) -> "UserSummaryResponse":
        return cls(
            user_id=summary.account_id,
            email=summary.email,
            first_name=summary.first_name,
            last_name=summary.last_name,
            roles=summary.roles,
            status=summary.status,
        )


class AuthResponse(CamelModel):
    """Account summary plus the issued token pair."""

    user: UserSummaryResponse
    access_token: str
    refresh_token: str

    @classmethod
    def from_domain(cls, result: AuthResult) -> "AuthResponse":
        return cls(
            user=UserSummaryResponse.from_domain(result.user),
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        )


class AccessTokenResponse(CamelModel):
    access_token: str


class ProfileResponse(CamelModel):
    """Read-only profile projection; never carries credentials."""

    user_id: str
    email: str
    first_name: str
    last_name: str
    roles: list[Role]
    status: AccountStatus
    last_login_at: datetime | None
    created_at: datetime

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            user_id=profile.account_id,
            email=profile.email,
            first_name=profile.first_name,
            last_name=profile.last_name,
            roles=profile.roles,
            status=profile.status,
            last_login_at=profile.last_login_at,
            created_at=profile.created_at,
        )


class AcknowledgementResponse(BaseModel):
    success: bool = True
    message: str


class RegisterRequest(CamelModel):
    """Payload accepted when registering an account."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    roles: list[Role] | None = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelModel):
    """Request body for exchanging a refresh token for a new access token."""

    refresh_token: str = Field(..., min_length=1)


def get_service(request: Request) -> AuthService:
    """Resolve the `AuthService` stored on the FastAPI application state."""
    service: AuthService = request.app.state.auth_service
    return service


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: AuthService = Depends(get_service)) -> AuthResponse:
    """Register an account and open its first session."""
    result = service.register(
        RegisterInput(
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            roles=[Role(role) for role in payload.roles] if payload.roles else None,
        )
    )
    return AuthResponse.from_domain(result)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, service: AuthService = Depends(get_service)) -> AuthResponse:
    """Authenticate with email and password."""
    return AuthResponse.from_domain(service.login(payload.email, payload.password))


@router.post("/refresh-token", response_model=AccessTokenResponse)
def refresh_token(
    payload: RefreshTokenRequest,
    service: AuthService = Depends(get_service),
) -> AccessTokenResponse:
    """Mint a new access token from the caller's current refresh token."""
    return AccessTokenResponse(access_token=service.refresh_access_token(payload.refresh_token))


@router.post("/logout", response_model=AcknowledgementResponse)
def logout(
    identity: IdentityContext = Depends(require_identity),
    service: AuthService = Depends(get_service),
) -> AcknowledgementResponse:
    """End the caller's session by clearing its refresh token."""
    service.logout(identity.user_id)
    return AcknowledgementResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse)
def profile(
    identity: IdentityContext = Depends(require_identity),
    service: AuthService = Depends(get_service),
) -> ProfileResponse:
    """Return the caller's profile."""
    return ProfileResponse.from_domain(service.get_profile(identity.user_id))
