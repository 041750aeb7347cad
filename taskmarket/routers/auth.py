from fastapi import APIRouter, Depends, status

from taskmarket.core.session import Session
from taskmarket.models.schemas import LoginRequest, PasswordResetRequest, Token, User, UserCreate
from taskmarket.routers.deps import get_identity_provider, get_session
from taskmarket.services.identity import IdentityProvider

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=User, status_code=status.HTTP_201_CREATED)
def signup(user_in: UserCreate, identity: IdentityProvider = Depends(get_identity_provider)):
    return identity.sign_up(
        email=user_in.email,
        password=user_in.password,
        full_name=user_in.full_name,
        role=user_in.role,
        instagram_id=user_in.instagram_id,
    )


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, identity: IdentityProvider = Depends(get_identity_provider)):
    return await identity.sign_in(credentials.email, credentials.password)


@router.post("/logout")
def logout(
    session: Session = Depends(get_session),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    identity.sign_out(session.user_id)
    return {"message": "Signed out"}


@router.post("/reset-password")
async def reset_password(request: PasswordResetRequest, identity: IdentityProvider = Depends(get_identity_provider)):
    await identity.reset_password(request.email)
    return {"message": "Password reset email sent"}


@router.get("/me", response_model=User)
def read_users_me(session: Session = Depends(get_session)):
    return session.user
