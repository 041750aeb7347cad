from typing import List, Optional

from fastapi import APIRouter, Depends

from taskmarket.core.session import Session, require_role
from taskmarket.db.firebase_ops import FirestoreStore, get_store
from taskmarket.models.schemas import AdminStats, Application, Task, User
from taskmarket.routers.deps import get_session
from taskmarket.services import admin
from taskmarket.services.applications import ApplicationRepository
from taskmarket.services.tasks import TaskRepository
from taskmarket.services.users import list_users

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_admin_session(session: Session = Depends(get_session)) -> Session:
    require_role(session, "admin")
    return session


@router.get("/stats", response_model=AdminStats)
def stats(session: Session = Depends(get_admin_session), store: FirestoreStore = Depends(get_store)):
    return admin.compute_stats(store)


@router.get("/users", response_model=List[User])
def all_users(
    q: Optional[str] = None,
    session: Session = Depends(get_admin_session),
    store: FirestoreStore = Depends(get_store),
):
    return admin.search_users(list_users(store), q)


@router.get("/tasks", response_model=List[Task])
def all_tasks(
    q: Optional[str] = None,
    session: Session = Depends(get_admin_session),
    store: FirestoreStore = Depends(get_store),
):
    return admin.search_tasks(TaskRepository(store).list_tasks(), q)


@router.get("/applications", response_model=List[Application])
def all_applications(
    q: Optional[str] = None,
    session: Session = Depends(get_admin_session),
    store: FirestoreStore = Depends(get_store),
):
    return admin.search_applications(ApplicationRepository(store).list_all(), q)
