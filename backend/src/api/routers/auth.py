"""Registration, login and profile endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from core.exceptions import ValidationFailedError
from core.security import create_access_token
from models.user import User
from schemas.auth import AuthResponse, LoginRequest, ProfileUpdate, RegisterRequest, UserResponse
from schemas.envelope import Envelope
from services import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_payload(user: User) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(user.id, user.role),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=Envelope[AuthResponse], status_code=201)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[AuthResponse]:
    """Create an account and return a token for it."""
    try:
        user = await user_service.create_user(db, data)
    except user_service.DuplicateEmailError as e:
        raise ValidationFailedError(
            [{"msg": "User already exists", "field": "email"}],
            message="User already exists",
        ) from e
    return Envelope(message="User registered successfully", data=_auth_payload(user))


@router.post("/login", response_model=Envelope[AuthResponse])
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[AuthResponse]:
    """
    Exchange email and password for a token.

    Bad credentials are a 400, not a 401: a 401 means "your session is gone"
    to clients, which would be wrong on the login form.
    """
    user = await user_service.authenticate(db, data.email, data.password)
    if user is None:
        raise ValidationFailedError(
            [{"msg": "Invalid credentials", "field": None}],
            message="Invalid credentials",
        )
    return Envelope(message="Login successful", data=_auth_payload(user))


@router.get("/me", response_model=Envelope[UserResponse])
async def get_me(current_user: User = Depends(get_current_user)) -> Envelope[UserResponse]:
    """Return the authenticated user."""
    return Envelope(data=UserResponse.model_validate(current_user))


@router.put("/profile", response_model=Envelope[UserResponse])
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[UserResponse]:
    """Update the authenticated user's name, bio or avatar."""
    user = await user_service.update_profile(db, current_user, data)
    return Envelope(message="Profile updated successfully", data=UserResponse.model_validate(user))
