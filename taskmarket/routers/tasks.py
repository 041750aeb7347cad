from typing import List, Optional

from fastapi import APIRouter, Depends, status

from taskmarket.core.errors import Unauthorized
from taskmarket.core.session import Session, require_role
from taskmarket.db.firebase_ops import FirestoreStore, get_store
from taskmarket.models.schemas import (
    Application,
    ApplicationCreate,
    SortOption,
    Task,
    TaskCreate,
    TaskFilter,
    TaskStatus,
    TaskStatusUpdate,
)
from taskmarket.routers.deps import get_session
from taskmarket.services import lifecycle
from taskmarket.services.applications import ApplicationRepository
from taskmarket.services.tasks import TaskRepository, search_tasks, sort_tasks, validate_task_input

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    require_role(session, "business_owner")
    fields = validate_task_input(task_in)
    return TaskRepository(store).create_task(business_owner_id=session.user_id, **fields)


@router.get("", response_model=List[Task])
def list_tasks(
    category: Optional[str] = None,
    location: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    business_owner_id: Optional[str] = None,
    search: Optional[str] = None,
    sort: SortOption = "newest",
    store: FirestoreStore = Depends(get_store),
):
    filters = TaskFilter(category=category, location=location, status=status, business_owner_id=business_owner_id)
    tasks = TaskRepository(store).list_tasks(filters)
    return sort_tasks(search_tasks(tasks, search), sort)


@router.get("/{task_id}", response_model=Task)
def get_task(task_id: str, store: FirestoreStore = Depends(get_store)):
    return TaskRepository(store).get_task(task_id)


@router.patch("/{task_id}/status", response_model=Task)
def update_task_status(
    task_id: str,
    update: TaskStatusUpdate,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return lifecycle.change_task_status(store, session, task_id, update.status)


@router.post("/{task_id}/applications", response_model=Application, status_code=status.HTTP_201_CREATED)
def apply_to_task(
    task_id: str,
    application_in: ApplicationCreate,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return lifecycle.submit_application(
        store, session, task_id, application_in.proposal, application_in.proposed_price
    )


@router.get("/{task_id}/applications", response_model=List[Application])
def list_task_applications(
    task_id: str,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    task = TaskRepository(store).get_task(task_id)
    # Only the owner of the task (or an admin) sees who applied
    if task.business_owner_id != session.user_id and not session.is_admin:
        raise Unauthorized("Not authorized to view applications for this task")
    return ApplicationRepository(store).list_by_task(task_id)
