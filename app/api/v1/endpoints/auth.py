"""Authentication endpoints."""

from fastapi import APIRouter

from app.core.database import DbSession
from app.core.dependencies import CurrentSession
from app.schemas.auth import LoginRequest, TokenResponse, UserResponse
from app.schemas.common import MessageResponse
from app.services.auth import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: DbSession):
    """
    Check credentials, open a session and return its access token.
    """
    service = AuthService(db)
    return service.login(request)


@router.post("/logout", response_model=MessageResponse)
def logout(context: CurrentSession, db: DbSession):
    """
    End the current session. The token is refused afterwards.
    """
    service = AuthService(db)
    service.logout(context.session)
    return MessageResponse(message="Signed out successfully")


@router.get("/me", response_model=UserResponse)
def get_me(context: CurrentSession):
    """
    Get the signed-in user.
    """
    return UserResponse.model_validate(context.user)
