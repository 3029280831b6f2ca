"""DatabaseNotificationSink — writes notification rows on a session of its own.

Runs after the ledger transaction has committed, so a failed insert can never
undo an accepted bid or offer; it is logged and dropped.
"""
import json
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.mk_common.id_generator import generate_id
from src.mk_notification.domain.events import NotificationEvent

logger = logging.getLogger(__name__)

_INSERT_NOTIFICATION_SQL = text("""
    INSERT INTO notifications (id, user_id, listing_id, type, message, metadata, is_read)
    VALUES (:id, :user_id, :listing_id, :type, :message, CAST(:metadata AS JSONB), FALSE)
""")


class DatabaseNotificationSink:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def emit(self, event: NotificationEvent) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        _INSERT_NOTIFICATION_SQL,
                        {
                            "id": generate_id(),
                            "user_id": event.recipient_user_id,
                            "listing_id": event.listing_id,
                            "type": event.type.value,
                            "message": event.message,
                            "metadata": json.dumps(event.payload, default=str),
                        },
                    )
        except SQLAlchemyError:
            logger.exception(
                "Notification %s for user=%s listing=%s not stored",
                event.type.value, event.recipient_user_id, event.listing_id,
            )
