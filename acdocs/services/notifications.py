"""
Notification Service
Expiration alerts over mocked email, WhatsApp and browser channels
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from acdocs.core.logging import get_logger
from acdocs.db.base import generate_id
from acdocs.models.document import Document, get_days_until_expiration
from acdocs.models.notification import Notification, NotificationStatus, NotificationType
from acdocs.models.user import User

logger = get_logger(__name__)

BrowserSender = Callable[[str, str, Dict[str, Any]], Awaitable[bool]]


async def log_browser_notification(title: str, body: str, data: Dict[str, Any]) -> bool:
    """Default browser channel: log only"""
    logger.info(f"[MOCK BROWSER] {title} - {body}")
    return True


class NotificationService:
    """
    Sends expiration alerts and keeps the history of what was sent

    Email and WhatsApp delivery are simulated; browser delivery is
    delegated to an injectable sender.
    """

    def __init__(self, browser_sender: Optional[BrowserSender] = None):
        self._browser_sender = browser_sender or log_browser_notification
        self._notifications: List[Notification] = []

    def _record(
        self,
        user: User,
        document: Document,
        channel: NotificationType,
        status: NotificationStatus,
        message: str,
        days_left: Optional[int],
    ) -> Notification:
        notification = Notification(
            id=f"notif-{generate_id()}",
            user_id=user.id,
            document_id=document.id,
            document_name=document.name,
            type=channel,
            status=status,
            message=message,
            sent_at=datetime.now(timezone.utc),
            expires_at=document.expires_at,
            days_until_expiration=days_left,
        )
        self._notifications.append(notification)
        return notification

    async def send_email(self, user: User, document: Document, days_left: int) -> Notification:
        message = f'Email sent to {user.email}: document "{document.name}" expires in {days_left} days'
        logger.info(f"[MOCK EMAIL] {message}")
        return self._record(user, document, NotificationType.EMAIL, NotificationStatus.SENT, message, days_left)

    async def send_whatsapp(self, user: User, document: Document, days_left: int) -> Notification:
        message = (
            f'WhatsApp sent to {user.phone or "no number registered"}: '
            f'document "{document.name}" expires in {days_left} days'
        )
        logger.info(f"[MOCK WHATSAPP] {message}")
        return self._record(user, document, NotificationType.WHATSAPP, NotificationStatus.SENT, message, days_left)

    async def send_browser(self, user: User, document: Document, days_left: int) -> Notification:
        if days_left == 0:
            title = "Document expires today!"
        else:
            title = f"Document expires in {days_left} {'day' if days_left == 1 else 'days'}"
        expires = document.expires_at.date().isoformat() if document.expires_at else "unknown"
        body = f"{document.name} - expires on {expires}"

        try:
            delivered = await self._browser_sender(
                title, body, {"document_id": document.id, "url": "/documents"}
            )
        except Exception as e:
            logger.error(f"Browser notification failed for document {document.id}: {e}")
            delivered = False

        status = NotificationStatus.SENT if delivered else NotificationStatus.FAILED
        return self._record(
            user, document, NotificationType.BROWSER, status, f"Browser notification: {title}", days_left
        )

    async def check_expiring_documents(
        self,
        user: User,
        documents: Sequence[Document],
        now: Optional[datetime] = None,
    ) -> List[Notification]:
        """
        Alert the user about documents expiring on one of their alert days

        Callers pass the user's accessible documents only.

        Args:
            user: Recipient; nothing is sent without notification preferences
            documents: Documents to check
            now: Reference instant, defaults to the current time

        Returns:
            Notifications produced by this run
        """
        prefs = user.notification_preferences
        if prefs is None:
            return []

        sent: List[Notification] = []
        for document in documents:
            days_left = get_days_until_expiration(document.expires_at, now)
            if days_left is None or days_left < 0:
                continue
            if days_left not in prefs.alert_days_before:
                continue

            if prefs.email:
                sent.append(await self.send_email(user, document, days_left))
            if prefs.whatsapp and user.phone:
                sent.append(await self.send_whatsapp(user, document, days_left))
            if prefs.browser:
                sent.append(await self.send_browser(user, document, days_left))

        if sent:
            logger.info(f"Sent {len(sent)} expiration alerts to user {user.id}")
        return sent

    def get_notifications(self, user_id: Optional[str] = None) -> List[Notification]:
        if user_id:
            return [n for n in self._notifications if n.user_id == user_id]
        return list(self._notifications)

    def clear_notifications(self) -> None:
        self._notifications.clear()

    async def send_test_notification(self, user: User, channel: NotificationType) -> Notification:
        """Send a fake seven-day alert over one channel"""
        now = datetime.now(timezone.utc)
        sample = Document(
            id="test-doc",
            name="Test document",
            file_name="test.pdf",
            file_size=100_000,
            mime_type="application/pdf",
            category_id="test-category",
            document_type_id="test-type",
            uploaded_by_id=user.id,
            expires_at=now + timedelta(days=7),
            created_at=now,
            updated_at=now,
        )
        channel = NotificationType(channel)
        if channel is NotificationType.EMAIL:
            return await self.send_email(user, sample, 7)
        if channel is NotificationType.WHATSAPP:
            return await self.send_whatsapp(user, sample, 7)
        return await self.send_browser(user, sample, 7)
