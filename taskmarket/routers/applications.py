from typing import List

from fastapi import APIRouter, Depends

from taskmarket.core.session import Session, require_role
from taskmarket.db.firebase_ops import FirestoreStore, get_store
from taskmarket.models.schemas import Application
from taskmarket.routers.deps import get_session
from taskmarket.services import lifecycle
from taskmarket.services.applications import ApplicationRepository

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("/mine", response_model=List[Application])
def list_my_applications(
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    require_role(session, "freelancer")
    return ApplicationRepository(store).list_by_freelancer(session.user_id)


@router.post("/{application_id}/accept", response_model=Application)
def accept_application(
    application_id: str,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return lifecycle.accept_application(store, session, application_id)


@router.post("/{application_id}/reject", response_model=Application)
def reject_application(
    application_id: str,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return lifecycle.reject_application(store, session, application_id)
