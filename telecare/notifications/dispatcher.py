import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from telecare.core import config
from telecare.database import SessionLocal
from telecare.models.notification import Notification
from telecare.notifications.sender import build_sender
from telecare.notifications.templates import render_notification


logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fire-and-forget notification delivery on a background thread pool.

    ``dispatch`` returns as soon as the job is queued. Rendering, sending and
    recording happen on a worker thread; any failure there is logged and
    dropped.
    """

    def __init__(self, sender=None, session_factory=SessionLocal, max_workers: int | None = None, enabled: bool | None = None):
        self.sender = sender or build_sender()
        self.session_factory = session_factory
        self.enabled = config.NOTIFICATIONS_ENABLED if enabled is None else enabled
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or config.NOTIFICATION_WORKERS,
            thread_name_prefix='telecare-notify',
        )

    def dispatch(self, recipient: str, template_name: str, variables: dict[str, Any], user_id: int | None = None) -> Future | None:
        if not self.enabled:
            logger.debug('Notifications disabled; skipping %s to %s', template_name, recipient)
            return None
        try:
            return self._executor.submit(self._deliver, recipient, template_name, dict(variables), user_id)
        except RuntimeError:
            logger.exception('Notification executor unavailable; dropping %s to %s', template_name, recipient)
            return None

    def _deliver(self, recipient: str, template_name: str, variables: dict[str, Any], user_id: int | None) -> None:
        try:
            subject, body = render_notification(template_name, variables)
            self.sender.send(recipient, subject, body)
            self._record(recipient, subject, template_name, body, user_id)
            logger.info('Dispatched %s notification to %s', template_name, recipient)
        except Exception:
            logger.exception('Failed to deliver %s notification to %s', template_name, recipient)

    def _record(self, recipient: str, subject: str, template_name: str, body: str, user_id: int | None) -> None:
        db = self.session_factory()
        try:
            db.add(
                Notification(
                    recipient=recipient,
                    subject=subject,
                    template_name=template_name,
                    message=body,
                    channel='EMAIL',
                    user_id=user_id,
                    created_at=datetime.now(timezone.utc).replace(tzinfo=None),
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_dispatcher: NotificationDispatcher | None = None
_dispatcher_lock = Lock()


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    with _dispatcher_lock:
        if _dispatcher is None:
            _dispatcher = NotificationDispatcher()
        return _dispatcher


def shutdown_dispatcher() -> None:
    global _dispatcher
    if _dispatcher is not None:
        _dispatcher.shutdown(wait=True)
        _dispatcher = None
