from typing import AsyncIterator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .database import async_session
from .domain.notifications import ConfirmationNotifier
from .infrastructure.notifications import LoggingEmailNotifier
from .utils.auth import decode_access_token
from .utils.time import BusinessCalendar

ADMIN_ROLE = "admin"


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_calendar(settings: Settings = Depends(get_settings)) -> BusinessCalendar:
    return BusinessCalendar.from_name(
        settings.business_timezone,
        open_hour=settings.open_hour,
        close_hour=settings.close_hour,
    )


def get_notifier(
    settings: Settings = Depends(get_settings),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> ConfirmationNotifier:
    return LoggingEmailNotifier(site_name=settings.site_name, sender=settings.mail_from, calendar=calendar)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> str:
    if authorization is None:
        raise _unauthorized("Authorization header required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Bearer token required")
    try:
        subject, role = decode_access_token(
            token,
            secret=settings.auth_secret,
            algorithms=[settings.auth_algorithm],
        )
    except ValueError as exc:
        raise _unauthorized("invalid token") from exc
    if role != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin role required")
    return subject
