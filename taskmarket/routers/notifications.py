from typing import List

from fastapi import APIRouter, Depends

from taskmarket.core.session import Session
from taskmarket.db.firebase_ops import FirestoreStore, get_store
from taskmarket.models.schemas import Notification, UnreadCount
from taskmarket.routers.deps import get_session
from taskmarket.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[Notification])
def list_notifications(
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return NotificationService(store).list_for_user(session.user_id)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return UnreadCount(unread=NotificationService(store).unread_count(session.user_id))


@router.post("/read-all")
def mark_all_as_read(
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    updated = NotificationService(store).mark_all_as_read(session.user_id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.post("/{notification_id}/read")
def mark_as_read(
    notification_id: str,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    NotificationService(store).mark_as_read(session.user_id, notification_id)
    return {"message": "Notification marked as read"}
