import logging
from collections import deque
from typing import List, Optional

from sos_guardian.config import NOTIFICATION_FEED_SIZE
from sos_guardian.schemas.alerts import Notification
from sos_guardian.schemas.enums import NotificationLevel

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class Notifier:
    """
    Fire-and-forget user feedback (the toast side-channel).
    Messages are logged and kept in a bounded feed; nothing here affects control flow.
    """

    def __init__(self, maxlen: int = NOTIFICATION_FEED_SIZE):
        self._feed = deque(maxlen=maxlen)

    def notify(self, level: NotificationLevel, message: str, description: Optional[str] = None) -> Notification:
        notification = Notification(level=level, message=message, description=description)
        self._feed.append(notification)
        suffix = f" ({description})" if description else ""
        logger.log(_LOG_LEVELS[level], "%s%s", message, suffix)
        return notification

    def success(self, message: str, description: Optional[str] = None) -> Notification:
        return self.notify(NotificationLevel.SUCCESS, message, description)

    def warning(self, message: str, description: Optional[str] = None) -> Notification:
        return self.notify(NotificationLevel.WARNING, message, description)

    def error(self, message: str, description: Optional[str] = None) -> Notification:
        return self.notify(NotificationLevel.ERROR, message, description)

    def recent(self, limit: Optional[int] = None) -> List[Notification]:
        items = list(self._feed)
        if limit is not None:
            items = items[-limit:] if limit > 0 else []
        return items

    def clear(self):
        self._feed.clear()
