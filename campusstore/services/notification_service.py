import logging
import os

from campusstore.errors import NotFound
from campusstore.extensions import store
from campusstore.models import DeliveryResult, Notification
from campusstore.storage.codec import decode_notification_log, encode_notification_log
from campusstore.storage.repository import atomic_write, read_text
from campusstore.utils.timeutils import local_now

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Per-recipient inbox log: a watermark line followed by unread entries.

    Flushing compacts the log. Read entries are dropped rather than archived, so
    after ``mark_read_and_flush`` only the watermark remembers them.
    """

    @staticmethod
    def _lock(recipient_id):
        return store.locks.lock_for(('inbox', int(recipient_id)))

    @staticmethod
    def _read_log(recipient_id):
        path = store.notification_log(recipient_id)
        text = read_text(path)
        if text is None:
            return None
        return decode_notification_log(recipient_id, text, path)

    @staticmethod
    def has_log(recipient_id):
        return os.path.exists(store.notification_log(recipient_id))

    @staticmethod
    def append(recipient_id, message, priority, timestamp=None, create=True):
        """
        Append one unread item to the recipient's log.
        With ``create=False`` a recipient without a log raises NotFound.
        """
        if timestamp is None:
            timestamp = local_now(store.config.TIMEZONE)

        with NotificationService._lock(recipient_id):
            log = NotificationService._read_log(recipient_id)
            if log is None:
                if not create:
                    raise NotFound('notification log', recipient_id)
                log = (0, [])
            watermark, unread = log

            last_id = max([watermark] + [n.notification_id for n in unread])
            notification = Notification(
                notification_id=last_id + 1,
                recipient_id=recipient_id,
                message=message,
                priority=priority,
                timestamp=timestamp,
            )
            unread.append(notification)
            atomic_write(store.notification_log(recipient_id), encode_notification_log(watermark, unread))

        logger.debug("Notification %d queued for user %s", notification.notification_id, recipient_id)
        return notification

    @staticmethod
    def deliver(recipient_id, message, priority, create=True):
        """Append and report the outcome instead of raising for a missing log."""
        try:
            n = NotificationService.append(recipient_id, message, priority, create=create)
        except NotFound:
            return DeliveryResult(recipient_id, False, reason='no notification log')
        return DeliveryResult(recipient_id, True, notification_id=n.notification_id)

    @staticmethod
    def load_unread(recipient_id):
        log = NotificationService._read_log(recipient_id)
        if log is None:
            return []
        return log[1]

    @staticmethod
    def watermark(recipient_id):
        log = NotificationService._read_log(recipient_id)
        return log[0] if log else 0

    @staticmethod
    def mark_read_and_flush(recipient_id, ids=None):
        """
        Acknowledge ``ids`` (every unread item when None) and rewrite the log with
        only the remaining unread entries. Returns the acknowledged notifications.
        """
        with NotificationService._lock(recipient_id):
            log = NotificationService._read_log(recipient_id)
            if log is None:
                return []
            watermark, unread = log

            wanted = None if ids is None else set(ids)
            read, kept = [], []
            for n in unread:
                if wanted is None or n.notification_id in wanted:
                    n.is_read = True
                    read.append(n)
                else:
                    kept.append(n)

            if read:
                watermark = max([watermark] + [n.notification_id for n in read])
            atomic_write(store.notification_log(recipient_id), encode_notification_log(watermark, kept))

        logger.debug("User %s acknowledged %d notification(s)", recipient_id, len(read))
        return read
