import logging
from typing import List

from taskmarket.core.constants import NOTIFICATIONS, USERS
from taskmarket.core.errors import MarketplaceError, NotFound, Unauthorized
from taskmarket.db.firebase_ops import parse_timestamp, utcnow
from taskmarket.models.schemas import Notification

logger = logging.getLogger(__name__)

NEW_TASK = "new_task"


def format_budget(budget: float) -> str:
    return f"{budget:,.0f}" if float(budget).is_integer() else f"{budget:,.2f}"


class NotificationService:
    """Per-recipient notification documents and the new-task fan-out."""

    def __init__(self, store):
        self.store = store

    def notify_new_task(self, task) -> int:
        """
        Write one `new_task` notification per freelancer known right now.
        Failures are logged and swallowed; returns how many were written.
        """
        try:
            users = self.store.list_all(USERS)
        except MarketplaceError as e:
            logger.error("Could not load freelancers to notify about task %s: %s", task.id, e)
            return 0

        sent = 0
        for user in users:
            if user.get("role") != "freelancer":
                continue
            data = {
                "user_id": user["id"],
                "type": NEW_TASK,
                "title": "New task available",
                "message": f'"{task.title}" was just posted with a budget of {format_budget(task.budget)}',
                "task_id": task.id,
                "read": False,
                "created_at": utcnow(),
            }
            try:
                self.store.create(NOTIFICATIONS, data)
                sent += 1
            except MarketplaceError as e:
                logger.error("Could not notify freelancer %s about task %s: %s", user["id"], task.id, e)
        logger.info("Notified %d freelancers about task %s", sent, task.id)
        return sent

    def list_for_user(self, user_id: str) -> List[Notification]:
        records = self.store.list_where(NOTIFICATIONS, "user_id", user_id)
        records.sort(key=lambda r: parse_timestamp(r["created_at"]), reverse=True)
        return [Notification(**r) for r in records]

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        record = self.store.get_by_id(NOTIFICATIONS, notification_id)
        if not record:
            raise NotFound("Notification not found")
        if record.get("user_id") != user_id:
            raise Unauthorized("Not authorized to update this notification")
        self.store.update(NOTIFICATIONS, notification_id, {"read": True})

    def mark_all_as_read(self, user_id: str) -> int:
        unread = [r for r in self.store.list_where(NOTIFICATIONS, "user_id", user_id) if not r.get("read")]
        for record in unread:
            self.store.update(NOTIFICATIONS, record["id"], {"read": True})
        return len(unread)

    def unread_count(self, user_id: str) -> int:
        return sum(1 for r in self.store.list_where(NOTIFICATIONS, "user_id", user_id) if not r.get("read"))
