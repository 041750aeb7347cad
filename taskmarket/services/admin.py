from collections import Counter
from typing import List, Optional

from taskmarket.core.constants import APPLICATIONS, TASKS, USERS
from taskmarket.models.schemas import AdminStats, Application, Task, User


def compute_stats(store) -> AdminStats:
    """Dashboard counts, reduced in memory from full collection reads."""
    roles = Counter(r.get("role") for r in store.list_all(USERS))
    task_statuses = Counter(r.get("status") for r in store.list_all(TASKS))
    application_statuses = Counter(r.get("status") for r in store.list_all(APPLICATIONS))
    return AdminStats(
        total_users=sum(roles.values()),
        business_owners=roles["business_owner"],
        freelancers=roles["freelancer"],
        admins=roles["admin"],
        total_tasks=sum(task_statuses.values()),
        open_tasks=task_statuses["open"],
        in_progress_tasks=task_statuses["in_progress"],
        completed_tasks=task_statuses["completed"],
        cancelled_tasks=task_statuses["cancelled"],
        total_applications=sum(application_statuses.values()),
        pending_applications=application_statuses["pending"],
        accepted_applications=application_statuses["accepted"],
        rejected_applications=application_statuses["rejected"],
    )


def _contains(needle: str, *values: Optional[str]) -> bool:
    return any(needle in (v or "").lower() for v in values)


def search_users(users: List[User], q: Optional[str]) -> List[User]:
    if not q:
        return users
    needle = q.strip().lower()
    return [u for u in users if _contains(needle, u.full_name, u.email, u.role)]


def search_tasks(tasks: List[Task], q: Optional[str]) -> List[Task]:
    if not q:
        return tasks
    needle = q.strip().lower()
    return [t for t in tasks if _contains(needle, t.title, t.category, t.location, t.status)]


def search_applications(applications: List[Application], q: Optional[str]) -> List[Application]:
    if not q:
        return applications
    needle = q.strip().lower()
    return [a for a in applications if _contains(needle, a.proposal, a.status, a.task_id, a.freelancer_id)]
