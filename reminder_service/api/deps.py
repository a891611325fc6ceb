"""API dependencies for dependency injection."""

from collections.abc import Generator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session

from reminder_service.clock import Clock, SystemClock
from reminder_service.config import get_settings
from reminder_service.db.session import get_session
from reminder_service.events.publisher import ReminderEventPublisher
from reminder_service.models.user import User
from reminder_service.realtime.notifier import Notifier
from reminder_service.services.reminders import ReminderService

settings = get_settings()
security = HTTPBearer()


def get_db_session() -> Generator[Session, None, None]:
    """Get database session dependency."""
    yield from get_session()


DBSession = Annotated[Session, Depends(get_db_session)]


def decode_user_id(token: str) -> UUID | None:
    """Return the user id carried in a bearer token, or None if invalid."""
    try:
        payload = jwt.decode(
            token,
            settings.BETTER_AUTH_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        subject = payload.get("sub")
        if subject is None:
            return None
        return UUID(str(subject))
    except (JWTError, ValueError):
        return None


def get_current_user(
    session: DBSession,
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_user_id(credentials.credentials)
    if user_id is None:
        raise credentials_exception

    user = session.get(User, user_id)
    if user is None:
        raise credentials_exception

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_notifier(request: Request) -> Notifier | None:
    """Real-time notifier installed on the app at startup."""
    return getattr(request.app.state, "notifier", None)


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or SystemClock()


def get_reminder_service(
    notifier: Annotated[Notifier | None, Depends(get_notifier)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ReminderService:
    """Reminder service publishing through the app's notifier."""
    return ReminderService(publisher=ReminderEventPublisher(notifier), clock=clock)


Reminders = Annotated[ReminderService, Depends(get_reminder_service)]
