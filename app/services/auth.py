"""Authentication service."""

import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.security import (
    create_access_token,
    hash_password,
    session_expiry,
    verify_password,
)
from app.models.user import User, UserSession
from app.schemas.auth import LoginRequest, TokenResponse, UserCreate, UserResponse

logger = logging.getLogger(__name__)


def _canonical_email(value: str) -> str:
    return value.strip().lower()


class AuthService:
    """Authentication service.

    A sign-in creates a ``UserSession`` row and an access token bound to it;
    sign-out revokes the row, after which the token is refused.
    """

    def __init__(self, db: Session):
        self.db = db

    def login(self, request: LoginRequest) -> TokenResponse:
        """Authenticate user and return an access token."""
        result = self.db.execute(
            select(User).where(User.email == _canonical_email(request.email))
        )
        user = result.scalar_one_or_none()

        if not user or not verify_password(request.password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        now = datetime.now(timezone.utc)
        user.last_login_at = now

        session = UserSession(
            user_id=user.id,
            token_id=uuid4().hex,
            created_at=now,
            expires_at=session_expiry(),
        )
        self.db.add(session)
        self.db.flush()
        logger.info(f"[AUTH] User {user.id} signed in (session {session.id})")

        return TokenResponse(
            access_token=create_access_token(user.id, session.token_id, session.expires_at),
            token_type="bearer",
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def logout(self, session: UserSession) -> None:
        """Revoke the session; its token stops working immediately."""
        session.revoked_at = datetime.now(timezone.utc)
        self.db.flush()
        logger.info(f"[AUTH] User {session.user_id} signed out (session {session.id})")

    def get_live_session(self, token_id: str, user_id: int) -> UserSession | None:
        result = self.db.execute(
            select(UserSession).where(
                UserSession.token_id == token_id,
                UserSession.user_id == user_id,
            )
        )
        session = result.scalar_one_or_none()
        if not session or not session.is_live():
            return None
        return session

    def register_user(self, request: UserCreate) -> UserResponse:
        """Register a new user."""
        email = _canonical_email(request.email)
        existing = self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing:
            raise ValidationError("Email already registered")

        user = User(
            email=email,
            full_name=request.full_name,
            password_hash=hash_password(request.password),
            role=request.role,
            is_active=True,
        )
        self.db.add(user)
        self.db.flush()
        self.db.refresh(user)

        return UserResponse.model_validate(user)

    def purge_sessions(self, retention_days: int | None = None) -> int:
        """Delete sessions that expired or were revoked before the retention window."""
        if retention_days is None:
            retention_days = settings.SESSION_RETENTION_DAYS
        cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
        result = self.db.execute(
            delete(UserSession).where(
                or_(
                    UserSession.expires_at < cutoff,
                    UserSession.revoked_at < cutoff,
                )
            )
        )
        return result.rowcount or 0
