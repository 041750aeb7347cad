import logging
from typing import List, Optional

from pydantic import ValidationError

from taskmarket.core.constants import APPLICATIONS, TASKS
from taskmarket.core.errors import MarketplaceError, NotFound
from taskmarket.db.firebase_ops import parse_timestamp, utcnow
from taskmarket.models.schemas import Application, Task
from taskmarket.services.users import find_user

logger = logging.getLogger(__name__)


def newest_first(applications: List[Application]) -> List[Application]:
    return sorted(applications, key=lambda a: parse_timestamp(a.created_at), reverse=True)


class ApplicationRepository:
    """
    Application persistence. Listing scans the whole collection and filters
    in memory, attaching the related freelancer or task at read time.
    """

    def __init__(self, store):
        self.store = store

    def _find_task(self, task_id: Optional[str]) -> Optional[Task]:
        if not task_id:
            return None
        try:
            record = self.store.get_by_id(TASKS, task_id)
            return Task(**record) if record else None
        except (MarketplaceError, ValidationError) as e:
            logger.warning("Error fetching task %s: %s", task_id, e)
            return None

    def create_application(self, task_id: str, freelancer_id: str, proposal: str, proposed_price: float) -> Application:
        """Persist a pending application. Uniqueness is the caller's concern."""
        now = utcnow()
        data = {
            "task_id": task_id,
            "freelancer_id": freelancer_id,
            "proposal": proposal,
            "proposed_price": proposed_price,
            "status": "pending",
            "created_at": now,
        }
        application_id = self.store.create(APPLICATIONS, data)
        logger.info("Freelancer %s applied to task %s (%s)", freelancer_id, task_id, application_id)
        return Application(**{**data, "id": application_id, "created_at": now.isoformat()})

    def get_application(self, application_id: str) -> Application:
        record = self.store.get_by_id(APPLICATIONS, application_id)
        if not record:
            raise NotFound("Application not found")
        return Application(**record)

    def list_all(self) -> List[Application]:
        return newest_first([Application(**r) for r in self.store.list_all(APPLICATIONS)])

    def list_by_task(self, task_id: str) -> List[Application]:
        results = []
        for record in self.store.list_all(APPLICATIONS):
            if record.get("task_id") != task_id:
                continue
            freelancer = find_user(self.store, record.get("freelancer_id"))
            results.append(Application(**record, freelancer=freelancer))
        return newest_first(results)

    def list_by_freelancer(self, freelancer_id: str) -> List[Application]:
        results = []
        for record in self.store.list_all(APPLICATIONS):
            if record.get("freelancer_id") != freelancer_id:
                continue
            task = self._find_task(record.get("task_id"))
            results.append(Application(**record, task=task))
        return newest_first(results)

    def update_application_status(self, application_id: str, status: str) -> Application:
        """
        Raw status overwrite. Accepting here does not move the task; use
        services.lifecycle.accept_application for the combined update.
        """
        self.store.update(APPLICATIONS, application_id, {"status": status})
        return self.get_application(application_id)
