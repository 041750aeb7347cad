import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from taskmarket.core.constants import (
    MIN_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    REQUIRED_REELS,
    USERS,
)
from taskmarket.core.errors import MarketplaceError, NotFound, Unauthorized, ValidationFailed
from taskmarket.models.schemas import ProfileUpdate, User

logger = logging.getLogger(__name__)

INSTAGRAM_ID_PATTERN = re.compile(r"^[A-Za-z0-9._]+$")


def to_user(record: Dict[str, Any]) -> User:
    return User(**record)


def find_user(store, user_id: Optional[str]) -> Optional[User]:
    """
    Enrichment lookup. A missing or unreadable user yields None
    instead of failing the surrounding fetch.
    """
    if not user_id:
        return None
    try:
        record = store.get_by_id(USERS, user_id)
        return to_user(record) if record else None
    except (MarketplaceError, ValidationError) as e:
        logger.warning("Error fetching user %s: %s", user_id, e)
        return None


def get_user(store, user_id: str) -> User:
    record = store.get_by_id(USERS, user_id)
    if not record:
        raise NotFound("User not found")
    return to_user(record)


def list_users(store) -> List[User]:
    return [to_user(r) for r in store.list_all(USERS, order_by="created_at")]


def validate_instagram_id(instagram_id: Optional[str]) -> str:
    value = (instagram_id or "").strip()
    if not value:
        raise ValidationFailed("Please enter your Instagram ID")
    if not INSTAGRAM_ID_PATTERN.match(value):
        raise ValidationFailed("Instagram ID can only contain letters, numbers, dots, and underscores")
    return value


def validate_signup(full_name: str, password: str, role: str, instagram_id: Optional[str]) -> Dict[str, Any]:
    """Check sign-up fields and return the cleaned profile fields."""
    name = full_name.strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationFailed(f"Name must be at least {MIN_NAME_LENGTH} characters")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if role == "admin":
        raise Unauthorized("Admin accounts cannot be self-registered")

    fields = {"full_name": name, "role": role}
    if role == "freelancer":
        fields["instagram_id"] = validate_instagram_id(instagram_id)
    return fields


def update_profile(store, user: User, changes: ProfileUpdate) -> User:
    """Apply a profile edit by its own holder. Role, email and id never change here."""
    updates = changes.model_dump(exclude_unset=True)

    if "full_name" in updates:
        name = (updates["full_name"] or "").strip()
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationFailed(f"Name must be at least {MIN_NAME_LENGTH} characters")
        updates["full_name"] = name

    if user.role == "freelancer":
        if "instagram_id" in updates:
            updates["instagram_id"] = validate_instagram_id(updates["instagram_id"])
        if "sample_reels" in updates:
            reels = [r.strip() for r in (updates["sample_reels"] or []) if r and r.strip()]
            if len(reels) < REQUIRED_REELS:
                raise ValidationFailed(f"Please upload all {REQUIRED_REELS} sample reels to complete your profile")
            updates["sample_reels"] = reels[:REQUIRED_REELS]
    else:
        # Portfolio fields only apply to freelancers
        updates.pop("sample_reels", None)

    if updates:
        store.update(USERS, user.id, updates)
    return get_user(store, user.id)


def set_reel(store, user: User, slot: int, url: str) -> User:
    """Put an uploaded reel URL into one of the portfolio slots."""
    reels = list(user.sample_reels or [])
    while len(reels) < REQUIRED_REELS:
        reels.append("")
    reels[slot] = url
    store.update(USERS, user.id, {"sample_reels": reels})
    return get_user(store, user.id)
