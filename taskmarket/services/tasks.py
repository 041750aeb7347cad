import logging
import math
from typing import Any, Dict, List, Optional

from taskmarket.core.constants import (
    CATEGORIES,
    MIN_DESCRIPTION_LENGTH,
    MIN_TITLE_LENGTH,
    TASKS,
)
from taskmarket.core.errors import NotFound, ValidationFailed
from taskmarket.db.firebase_ops import parse_timestamp, utcnow
from taskmarket.models.schemas import Task, TaskCreate, TaskFilter
from taskmarket.services.notifications import NotificationService
from taskmarket.services.users import find_user

logger = logging.getLogger(__name__)


def validate_task_input(task_in: TaskCreate) -> Dict[str, Any]:
    """Caller-side checks from the task creation form. Returns trimmed fields."""
    title = task_in.title.strip()
    description = task_in.description.strip()
    location = task_in.location.strip()
    if len(title) < MIN_TITLE_LENGTH:
        raise ValidationFailed(f"Title must be at least {MIN_TITLE_LENGTH} characters")
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise ValidationFailed(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters")
    if task_in.category not in CATEGORIES:
        raise ValidationFailed("Please select a valid category")
    if not math.isfinite(task_in.budget) or task_in.budget <= 0:
        raise ValidationFailed("Please enter a valid budget")
    if not location:
        raise ValidationFailed("Please enter a location")
    return {
        "title": title,
        "description": description,
        "category": task_in.category,
        "budget": task_in.budget,
        "location": location,
    }


def matches_filter(record: Dict[str, Any], filters: TaskFilter) -> bool:
    if filters.business_owner_id and record.get("business_owner_id") != filters.business_owner_id:
        return False
    if filters.category and record.get("category") != filters.category:
        return False
    if filters.status and record.get("status") != filters.status:
        return False
    if filters.location and filters.location.lower() not in (record.get("location") or "").lower():
        return False
    return True


def search_tasks(tasks: List[Task], query: Optional[str]) -> List[Task]:
    """Free-text search over title, description, category and location."""
    if not query or not query.strip():
        return tasks
    needle = query.strip().lower()
    return [
        t for t in tasks
        if needle in t.title.lower()
        or needle in t.description.lower()
        or needle in t.category.lower()
        or needle in t.location.lower()
    ]


def sort_tasks(tasks: List[Task], sort: str = "newest") -> List[Task]:
    if sort == "oldest":
        return sorted(tasks, key=lambda t: parse_timestamp(t.created_at))
    if sort == "budget_high":
        return sorted(tasks, key=lambda t: t.budget, reverse=True)
    if sort == "budget_low":
        return sorted(tasks, key=lambda t: t.budget)
    return sorted(tasks, key=lambda t: parse_timestamp(t.created_at), reverse=True)


class TaskRepository:
    """
    Task persistence and read-time owner enrichment.

    Filters are applied in memory over the whole collection so that no
    composite index is needed in Firestore.
    """

    def __init__(self, store, notifications: Optional[NotificationService] = None):
        self.store = store
        self.notifications = notifications or NotificationService(store)

    def _enrich(self, record: Dict[str, Any]) -> Task:
        owner = find_user(self.store, record.get("business_owner_id"))
        return Task(**record, business_owner=owner)

    def create_task(self, title: str, description: str, category: str, budget: float,
                    location: str, business_owner_id: str) -> Task:
        now = utcnow()
        data = {
            "title": title,
            "description": description,
            "category": category,
            "budget": budget,
            "location": location,
            "business_owner_id": business_owner_id,
            "status": "open",
            "created_at": now,
            "updated_at": now,
        }
        task_id = self.store.create(TASKS, data)
        task = Task(**{**data, "id": task_id, "created_at": now.isoformat(), "updated_at": now.isoformat()})
        logger.info("Created task %s for owner %s", task_id, business_owner_id)

        # Task creation stands even if nobody could be notified
        self.notifications.notify_new_task(task)
        return task

    def list_tasks(self, filters: Optional[TaskFilter] = None) -> List[Task]:
        filters = filters or TaskFilter()
        records = self.store.list_all(TASKS, order_by="created_at", descending=True)
        return [self._enrich(r) for r in records if matches_filter(r, filters)]

    def get_task(self, task_id: str) -> Task:
        record = self.store.get_by_id(TASKS, task_id)
        if not record:
            raise NotFound("Task not found")
        return self._enrich(record)

    def update_task_status(self, task_id: str, status: str) -> Task:
        """Raw status overwrite. Transition rules live in services.lifecycle."""
        self.store.update(TASKS, task_id, {"status": status, "updated_at": utcnow()})
        return self.get_task(task_id)
