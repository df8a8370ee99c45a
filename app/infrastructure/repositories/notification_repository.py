"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import Notification
from app.domain.ports import NotificationStore, NotificationStoreError
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
    now_in_app_timezone,
)

logger = logging.getLogger(__name__)


class NotificationRepository:
    """Provide query and write operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_user(
        self,
        user_id: int,
        *,
        limit: int | None = 50,
    ) -> Sequence[Notification]:
        query = (
            select(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in self.session.scalars(query)]

    def list_unread_for_user(self, user_id: int) -> Sequence[Notification]:
        query = (
            select(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .where(NotificationModel.is_read.is_(False))
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        return [self._to_entity(model) for model in self.session.scalars(query)]

    def count_unread_for_user(self, user_id: int) -> int:
        query = (
            select(func.count())
            .select_from(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .where(NotificationModel.is_read.is_(False))
        )
        return int(self.session.scalar(query) or 0)

    def create(self, notification: Notification) -> Notification:
        created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        model = NotificationModel(
            user_id=notification.recipient_id,
            notification_type=notification.notification_type,
            title=notification.title,
            message=notification.message,
            related_id=notification.related_id,
            is_read=notification.is_read,
            created_at=created_at,
            updated_at=created_at,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(self, notification_id: int, *, user_id: int | None = None) -> bool:
        """Set ``is_read`` on a notification; repeated calls leave it unchanged.

        Returns ``False`` when no notification matches ``notification_id`` (and
        ``user_id`` when given).
        """

        exists_query = select(NotificationModel.id).where(
            NotificationModel.id == notification_id
        )
        if user_id is not None:
            exists_query = exists_query.where(NotificationModel.user_id == user_id)
        if self.session.scalar(exists_query) is None:
            return False

        self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.id == notification_id)
            .where(NotificationModel.is_read.is_(False))
            .values(is_read=True, updated_at=now_in_app_naive_datetime())
        )
        self.session.commit()
        return True

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            recipient_id=model.user_id,
            notification_type=model.notification_type,
            title=model.title,
            message=model.message,
            related_id=model.related_id,
            created_at=ensure_app_timezone(model.created_at),
            is_read=bool(model.is_read),
        )


class SqlAlchemyNotificationStore(NotificationStore):
    """:class:`NotificationStore` opening one short-lived session per call."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def append(self, notification: Notification) -> Notification:
        try:
            with self._session_factory() as session:
                saved = NotificationRepository(session).create(notification)
        except SQLAlchemyError as exc:
            raise NotificationStoreError(
                f"Could not persist notification for recipient {notification.recipient_id}"
            ) from exc
        logger.debug("Stored notification %s for recipient %s", saved.id, saved.recipient_id)
        return saved

    def mark_read(self, notification_id: int, *, recipient_id: int | None = None) -> bool:
        try:
            with self._session_factory() as session:
                return NotificationRepository(session).mark_as_read(
                    notification_id, user_id=recipient_id
                )
        except SQLAlchemyError as exc:
            raise NotificationStoreError(
                f"Could not mark notification {notification_id} as read"
            ) from exc

    def list_unread(self, recipient_id: int) -> Sequence[Notification]:
        try:
            with self._session_factory() as session:
                return NotificationRepository(session).list_unread_for_user(recipient_id)
        except SQLAlchemyError as exc:
            raise NotificationStoreError(
                f"Could not list unread notifications for recipient {recipient_id}"
            ) from exc

    def list_for_recipient(
        self, recipient_id: int, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        try:
            with self._session_factory() as session:
                return NotificationRepository(session).list_for_user(recipient_id, limit=limit)
        except SQLAlchemyError as exc:
            raise NotificationStoreError(
                f"Could not list notifications for recipient {recipient_id}"
            ) from exc

    def count_unread(self, recipient_id: int) -> int:
        try:
            with self._session_factory() as session:
                return NotificationRepository(session).count_unread_for_user(recipient_id)
        except SQLAlchemyError as exc:
            raise NotificationStoreError(
                f"Could not count unread notifications for recipient {recipient_id}"
            ) from exc


__all__ = ["NotificationRepository", "SqlAlchemyNotificationStore"]
