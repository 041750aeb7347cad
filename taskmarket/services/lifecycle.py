"""
Task and application status rules.

Task:        open -> in_progress -> completed
             open -> cancelled, in_progress -> cancelled
Application: pending -> accepted | rejected

completed, cancelled, accepted and rejected are terminal. A task only
enters in_progress when one of its applications is accepted, and both
writes happen in a single store transaction.
"""
import logging
import math

from taskmarket.core.constants import (
    APPLICATION_STATUSES,
    APPLICATIONS,
    MIN_PROPOSAL_LENGTH,
    TASK_STATUSES,
    TASKS,
)
from taskmarket.core.errors import Conflict, NotFound, Unauthorized, ValidationFailed
from taskmarket.core.session import Session, require_role
from taskmarket.db.firebase_ops import utcnow
from taskmarket.models.schemas import Application, Task
from taskmarket.services.applications import ApplicationRepository
from taskmarket.services.tasks import TaskRepository

logger = logging.getLogger(__name__)

# Re-entering the current state is allowed and only refreshes updated_at
TASK_TRANSITIONS = {
    "open": {"open", "in_progress", "cancelled"},
    "in_progress": {"in_progress", "completed", "cancelled"},
    "completed": {"completed"},
    "cancelled": {"cancelled"},
}

APPLICATION_TRANSITIONS = {
    "pending": {"accepted", "rejected"},
    "accepted": set(),
    "rejected": set(),
}


def check_task_transition(current: str, new: str) -> None:
    if new not in TASK_STATUSES:
        raise ValidationFailed(f"Unknown task status '{new}'")
    if new not in TASK_TRANSITIONS.get(current, set()):
        raise Conflict(f"Task cannot move from {current} to {new}")


def check_application_transition(current: str, new: str) -> None:
    if new not in APPLICATION_STATUSES:
        raise ValidationFailed(f"Unknown application status '{new}'")
    if new not in APPLICATION_TRANSITIONS.get(current, set()):
        raise Conflict(f"Application is already {current}")


def _check_task_owner(session: Session, business_owner_id: str, action: str) -> None:
    if session.is_admin or session.user_id == business_owner_id:
        return
    raise Unauthorized(f"Not authorized to {action} for this task")


def change_task_status(store, session: Session, task_id: str, new_status: str) -> Task:
    """Explicit status change by the task owner (or an admin)."""
    tasks = TaskRepository(store)
    task = tasks.get_task(task_id)
    _check_task_owner(session, task.business_owner_id, "change the status")
    check_task_transition(task.status, new_status)
    if task.status == "open" and new_status == "in_progress":
        raise Conflict("A task moves to in_progress when one of its applications is accepted")

    logger.info("Task %s: %s -> %s by %s", task_id, task.status, new_status, session.user_id)
    return tasks.update_task_status(task_id, new_status)


def submit_application(store, session: Session, task_id: str, proposal: str, proposed_price: float) -> Application:
    require_role(session, "freelancer")
    proposal = proposal.strip()
    if len(proposal) < MIN_PROPOSAL_LENGTH:
        raise ValidationFailed(f"Proposal must be at least {MIN_PROPOSAL_LENGTH} characters")
    if not math.isfinite(proposed_price) or proposed_price <= 0:
        raise ValidationFailed("Please enter a valid price")

    task = TaskRepository(store).get_task(task_id)
    if task.business_owner_id == session.user_id:
        raise Unauthorized("You cannot apply to your own task")
    if task.status != "open":
        raise Conflict("Task is not open for applications")

    # Full scan; the store has no uniqueness constraint to lean on
    for record in store.list_all(APPLICATIONS):
        if record.get("task_id") == task_id and record.get("freelancer_id") == session.user_id:
            raise Conflict("You've already applied to this task")

    return ApplicationRepository(store).create_application(task_id, session.user_id, proposal, proposed_price)


def accept_application(store, session: Session, application_id: str) -> Application:
    """
    Accept a pending application and move its task to in_progress in one
    transaction. At most one application per task can be accepted.
    """

    def _accept(view):
        application = view.get(APPLICATIONS, application_id)
        if not application:
            raise NotFound("Application not found")
        task = view.get(TASKS, application["task_id"])
        if not task:
            raise NotFound("Task not found")
        _check_task_owner(session, task["business_owner_id"], "accept applications")

        check_application_transition(application["status"], "accepted")
        if task["status"] not in ("open", "in_progress"):
            raise Conflict(f"Task is already {task['status']}")
        for other in view.list_all(APPLICATIONS):
            if other["task_id"] == task["id"] and other["id"] != application_id and other.get("status") == "accepted":
                raise Conflict("Another application has already been accepted for this task")

        view.update(APPLICATIONS, application_id, {"status": "accepted"})
        view.update(TASKS, task["id"], {"status": "in_progress", "updated_at": utcnow()})
        return task["id"]

    task_id = store.run_in_transaction(_accept)
    logger.info("Application %s accepted, task %s in progress", application_id, task_id)
    application = ApplicationRepository(store).get_application(application_id)
    return application.model_copy(update={"task": TaskRepository(store).get_task(task_id)})


def reject_application(store, session: Session, application_id: str) -> Application:
    """Reject a pending application. The task's status is never touched."""

    def _reject(view):
        application = view.get(APPLICATIONS, application_id)
        if not application:
            raise NotFound("Application not found")
        task = view.get(TASKS, application["task_id"])
        if not task:
            raise NotFound("Task not found")
        _check_task_owner(session, task["business_owner_id"], "reject applications")
        check_application_transition(application["status"], "rejected")
        view.update(APPLICATIONS, application_id, {"status": "rejected"})

    store.run_in_transaction(_reject)
    logger.info("Application %s rejected", application_id)
    return ApplicationRepository(store).get_application(application_id)
