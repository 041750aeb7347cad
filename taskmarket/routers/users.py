from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from taskmarket.core.constants import MAX_REEL_SIZE
from taskmarket.core.errors import MarketplaceError
from taskmarket.core.session import Session, require_role
from taskmarket.db.firebase_ops import FirestoreStore, get_store
from taskmarket.models.schemas import ProfileUpdate, User
from taskmarket.routers.deps import get_reel_storage, get_session
from taskmarket.services import users as user_service
from taskmarket.services.storage import ReelStorage, validate_reel

router = APIRouter(prefix="/users", tags=["Users"])


@router.put("/me", response_model=User)
def update_my_profile(
    changes: ProfileUpdate,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return user_service.update_profile(store, session.user, changes)


@router.post("/me/reels/{slot}", response_model=User)
async def upload_reel(
    slot: int,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
    reels: ReelStorage = Depends(get_reel_storage),
):
    require_role(session, "freelancer")
    # Read one byte past the limit so oversize files are caught without loading more
    data = await file.read(MAX_REEL_SIZE + 1)
    validate_reel(len(data), file.content_type, slot)

    url = await run_in_threadpool(reels.upload, data, file.filename or "reel", file.content_type, session.user_id, slot)
    previous = (session.user.sample_reels or [])[slot:slot + 1]
    try:
        updated = await run_in_threadpool(user_service.set_reel, store, session.user, slot, url)
    except MarketplaceError:
        # The profile still points at the old reel; drop the orphaned upload
        await run_in_threadpool(reels.delete, url)
        raise
    if previous and previous[0]:
        await run_in_threadpool(reels.delete, previous[0])
    return updated


@router.get("/{user_id}", response_model=User)
def get_user_profile(
    user_id: str,
    session: Session = Depends(get_session),
    store: FirestoreStore = Depends(get_store),
):
    return user_service.get_user(store, user_id)
