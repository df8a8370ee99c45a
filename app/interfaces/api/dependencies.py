"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from app.domain.ports import ConnectionRegistry, NotificationStore
from app.infrastructure.notifications import (
    NotificationDeliveryCoordinator,
    NotificationRuntime,
)
from app.infrastructure.security import recipient_id_from_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def resolve_recipient_id(token: str | None) -> int:
    """Return the user id for ``token`` or raise a 401 error."""

    try:
        return recipient_id_from_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    """Return the authenticated user id from the bearer token."""

    return resolve_recipient_id(token)


def get_notification_runtime(request: Request) -> NotificationRuntime:
    """Return the notification runtime built during application startup."""

    runtime = getattr(request.app.state, "notifications", None)
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service is not ready",
        )
    return runtime


def get_notification_store(
    runtime: NotificationRuntime = Depends(get_notification_runtime),
) -> NotificationStore:
    return runtime.store


def get_delivery_coordinator(
    runtime: NotificationRuntime = Depends(get_notification_runtime),
) -> NotificationDeliveryCoordinator:
    return runtime.coordinator


def get_connection_registry(
    runtime: NotificationRuntime = Depends(get_notification_runtime),
) -> ConnectionRegistry:
    return runtime.registry
