"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from app.application.use_cases.notifications import notify_new_follower
from app.domain.ports import ConnectionRegistry, NotificationStore, NotificationStoreError
from app.infrastructure.notifications import NotificationDeliveryCoordinator, NotificationRuntime
from app.infrastructure.security import recipient_id_from_token
from app.interfaces.api.dependencies import (
    get_connection_registry,
    get_current_user_id,
    get_delivery_coordinator,
    get_notification_store,
)
from app.interfaces.api.schemas import (
    ConnectionStatusRead,
    FollowNotificationTestRequest,
    NotificationRead,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008
INTERNAL_ERROR = 1011

router = APIRouter(prefix="/notifications", tags=["notifications"])
test_router = APIRouter(prefix="/notifications/test", tags=["notifications-test"])


def _store_unavailable(exc: NotificationStoreError) -> HTTPException:
    logger.error("Notification store failure: %s", exc, exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Notifications are temporarily unavailable",
    )


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: int = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
) -> list[NotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    try:
        notifications = store.list_for_recipient(user_id, limit=limit)
    except NotificationStoreError as exc:
        raise _store_unavailable(exc) from exc
    return [NotificationRead.from_entity(notification) for notification in notifications]


@router.get("/unread", response_model=list[NotificationRead])
def list_unread_notifications(
    user_id: int = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
) -> list[NotificationRead]:
    """Return unread notifications for the authenticated user, newest first."""

    try:
        notifications = store.list_unread(user_id)
    except NotificationStoreError as exc:
        raise _store_unavailable(exc) from exc
    return [NotificationRead.from_entity(notification) for notification in notifications]


@router.get("/unread/count", response_model=UnreadCountRead)
def count_unread_notifications(
    user_id: int = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
) -> UnreadCountRead:
    try:
        count = store.count_unread(user_id)
    except NotificationStoreError as exc:
        raise _store_unavailable(exc) from exc
    return UnreadCountRead(unread_count=count)


@router.patch("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: int,
    user_id: int = Depends(get_current_user_id),
    coordinator: NotificationDeliveryCoordinator = Depends(get_delivery_coordinator),
) -> Response:
    """Mark one of the user's notifications as read. Repeating the call is harmless."""

    await coordinator.mark_read(notification_id, recipient_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/websocket/status", response_model=ConnectionStatusRead)
def websocket_status(
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> ConnectionStatusRead:
    """Report how many users hold a live notification websocket."""

    return ConnectionStatusRead(connected_users=registry.connected_count())


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    try:
        recipient_id = recipient_id_from_token(websocket.query_params.get("token"))
    except ValueError:
        await websocket.close(code=POLICY_VIOLATION)
        return

    runtime: NotificationRuntime | None = getattr(websocket.app.state, "notifications", None)
    if runtime is None:  # pragma: no cover - lifespan always sets it
        await websocket.close(code=INTERNAL_ERROR)
        return

    handler = runtime.handler
    await websocket.accept()
    try:
        await handler.on_connect(recipient_id, websocket)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                continue
            await handler.on_message(recipient_id, websocket, raw)
    except WebSocketDisconnect:
        pass
    finally:
        handler.on_disconnect(recipient_id, websocket)


@test_router.post("/follow", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def send_test_follow_notification(
    body: FollowNotificationTestRequest,
    coordinator: NotificationDeliveryCoordinator = Depends(get_delivery_coordinator),
) -> NotificationRead:
    """Emit a fake follow notification (disabled in production)."""

    logger.info(
        "Test follow notification: %s (%s) -> %s",
        body.follower_nickname,
        body.follower_id,
        body.target_user_id,
    )
    try:
        notification = await notify_new_follower(
            coordinator,
            target_user_id=body.target_user_id,
            follower_id=body.follower_id,
            follower_nickname=body.follower_nickname,
        )
    except NotificationStoreError as exc:
        raise _store_unavailable(exc) from exc
    return NotificationRead.from_entity(notification)
