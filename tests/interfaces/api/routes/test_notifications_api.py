"""Integration tests for the notification REST and websocket endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from jose import jwt
from starlette.websockets import WebSocketDisconnect

from app.config import get_settings, reset_settings_cache
from app.infrastructure.database import Base, engine
from app.infrastructure.security import ALGORITHM
from main import create_app

RECIPIENT_ID = 1
FOLLOWER_ID = 2


def _token(user_id: int, *, expires_in: timedelta = timedelta(minutes=30)) -> str:
    claims = {"sub": str(user_id), "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, get_settings().secret_key, algorithm=ALGORITHM)


def _auth(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token(user_id)}"}


def _follow(client: TestClient, target: int = RECIPIENT_ID) -> dict:
    response = client.post(
        "/notifications/test/follow",
        json={"targetUserId": target, "followerId": FOLLOWER_ID, "followerNickname": "jeonga"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture()
def client():
    """Return a test client bound to a clean database."""

    Base.metadata.drop_all(bind=engine, checkfirst=True)
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine, checkfirst=True)


def test_follow_while_offline_then_connect_and_read(client: TestClient) -> None:
    """Offline follow is queued, flushed on connect and cleared by a read frame."""

    runtime = client.app.state.notifications
    created = _follow(client)
    notification_id = created["notificationId"]

    unread = client.get("/notifications/unread", headers=_auth(RECIPIENT_ID))
    assert unread.status_code == 200
    assert [item["notificationId"] for item in unread.json()] == [notification_id]
    assert unread.json()[0]["isRead"] is False
    assert runtime.queue.pending(RECIPIENT_ID) == 1

    with client.websocket_connect(f"/notifications/ws?token={_token(RECIPIENT_ID)}") as ws:
        pushed = ws.receive_json()
        assert pushed["notificationId"] == notification_id
        assert pushed["relatedUserNickname"] == "jeonga"
        assert runtime.queue.pending(RECIPIENT_ID) == 0

        ws.send_json({"type": "read_notification", "notificationId": notification_id})
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

    unread = client.get("/notifications/unread", headers=_auth(RECIPIENT_ID))
    assert unread.json() == []


def test_connected_user_receives_live_push(client: TestClient) -> None:
    runtime = client.app.state.notifications

    with client.websocket_connect(f"/notifications/ws?token={_token(RECIPIENT_ID)}") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}
        status = client.get("/notifications/websocket/status")
        assert status.json() == {"connectedUsers": 1}

        created = _follow(client)
        pushed = ws.receive_json()
        assert pushed["notificationId"] == created["notificationId"]
        assert pushed["type"] == "new_follower"
        assert runtime.queue.pending(RECIPIENT_ID) == 0

    assert client.get("/notifications/websocket/status").json() == {"connectedUsers": 0}


def test_malformed_frames_keep_connection_open(client: TestClient) -> None:
    with client.websocket_connect(f"/notifications/ws?token={_token(RECIPIENT_ID)}") as ws:
        ws.send_text("definitely not json")
        ws.send_bytes(b"\x00\x01")
        ws.send_json({"type": "unknown"})
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


@pytest.mark.parametrize("query", ["", "?token=invalid", "?userId=1"])
def test_websocket_without_valid_token_is_rejected(client: TestClient, query: str) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/notifications/ws{query}") as ws:
            ws.receive_json()

    assert client.get("/notifications/websocket/status").json() == {"connectedUsers": 0}


def test_mark_read_endpoint_is_idempotent(client: TestClient) -> None:
    created = _follow(client)
    url = f"/notifications/{created['notificationId']}/read"

    assert client.patch(url, headers=_auth(RECIPIENT_ID)).status_code == 204
    assert client.patch(url, headers=_auth(RECIPIENT_ID)).status_code == 204

    count = client.get("/notifications/unread/count", headers=_auth(RECIPIENT_ID))
    assert count.json() == {"unreadCount": 0}
    history = client.get("/notifications/", headers=_auth(RECIPIENT_ID))
    assert [item["isRead"] for item in history.json()] == [True]


def test_mark_read_of_someone_elses_notification_is_ignored(client: TestClient) -> None:
    created = _follow(client, target=RECIPIENT_ID)

    response = client.patch(
        f"/notifications/{created['notificationId']}/read", headers=_auth(99)
    )

    assert response.status_code == 204
    count = client.get("/notifications/unread/count", headers=_auth(RECIPIENT_ID))
    assert count.json() == {"unreadCount": 1}


def test_rest_endpoints_require_a_token(client: TestClient) -> None:
    assert client.get("/notifications/unread").status_code == 401
    assert (
        client.get("/notifications/unread", headers={"Authorization": "Bearer nope"}).status_code
        == 401
    )


def test_test_endpoint_is_hidden_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    reset_settings_cache()
    try:
        app = create_app()
        with TestClient(app) as production_client:
            response = production_client.post(
                "/notifications/test/follow",
                json={"targetUserId": 1, "followerId": 2},
            )
        assert response.status_code == 404
    finally:
        monkeypatch.undo()
        reset_settings_cache()
        Base.metadata.drop_all(bind=engine, checkfirst=True)


def test_websocket_with_expired_token_is_rejected(client: TestClient) -> None:
    expired = _token(RECIPIENT_ID, expires_in=timedelta(minutes=-5))

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/notifications/ws?token={expired}") as ws:
            ws.receive_json()
