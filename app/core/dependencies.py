"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.core.security import verify_access_token
from app.models.user import User, UserSession
from app.services.auth import AuthService
from app.services.store import ResultStore


class SessionContext:
    """The signed-in user together with the session their token belongs to."""

    def __init__(self, user: User, session: UserSession):
        self.user = user
        self.session = session

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin


def get_current_session(
    db: Annotated[Session, Depends(get_db)],
    authorization: str = Header(..., description="Bearer token"),
) -> SessionContext:
    """Resolve the bearer token to a live session."""
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    token = authorization[7:]  # Remove "Bearer " prefix
    payload = verify_access_token(token)

    if not payload:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(payload.get("sub", ""))
    except ValueError:
        raise AuthenticationError("Invalid user ID in token")

    session = AuthService(db).get_live_session(payload["sid"], user_id)
    if not session:
        raise AuthenticationError("Session has ended, please sign in again")

    user = session.user
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return SessionContext(user=user, session=session)


def require_admin(
    context: Annotated[SessionContext, Depends(get_current_session)],
) -> SessionContext:
    """Dependency that requires the admin role."""
    if not context.is_admin:
        raise PermissionDeniedError("Admin access required")
    return context


def get_store(db: Annotated[Session, Depends(get_db)]) -> ResultStore:
    return ResultStore(db)


# Type aliases for dependency injection
CurrentSession = Annotated[SessionContext, Depends(get_current_session)]
AdminSession = Annotated[SessionContext, Depends(require_admin)]
Store = Annotated[ResultStore, Depends(get_store)]
