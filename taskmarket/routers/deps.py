from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from taskmarket.core.config import get_settings
from taskmarket.core.errors import Unauthenticated
from taskmarket.core.session import Session
from taskmarket.db.firebase_ops import FirestoreStore, get_store
from taskmarket.services.identity import IdentityProvider
from taskmarket.services.storage import ReelStorage

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_identity_provider(store: FirestoreStore = Depends(get_store)) -> IdentityProvider:
    return IdentityProvider(store, get_settings())


def get_reel_storage() -> ReelStorage:
    return ReelStorage()


def get_session(
    token: Optional[str] = Depends(oauth2_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Session:
    """Resolve the bearer token into this request's Session."""
    if not token:
        raise Unauthenticated("Not authenticated")
    user = identity.current_user(token)
    if not user:
        raise Unauthenticated("Could not validate credentials")
    return Session(user=user, token=token)
