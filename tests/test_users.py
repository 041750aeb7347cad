import pytest

from taskmarket.core.errors import NotFound, Unauthorized, ValidationFailed
from taskmarket.models.schemas import ProfileUpdate
from taskmarket.services import users as user_service

REELS = ["https://cdn.example.com/1.mp4", "https://cdn.example.com/2.mp4", "https://cdn.example.com/3.mp4"]


def test_freelancer_profile_completeness(store):
    user = store.add_user("f1", role="freelancer", instagram_id="asha.edits")
    assert user.profile_complete is False
    user = store.add_user("f2", role="freelancer", instagram_id="asha.edits", sample_reels=REELS)
    assert user.profile_complete is True
    assert store.add_user("owner", role="business_owner").profile_complete is True

def test_update_profile_saves_reels(store):
    user = store.add_user("f1", role="freelancer", instagram_id="asha.edits")
    updated = user_service.update_profile(store, user, ProfileUpdate(sample_reels=REELS + [""], bio="Editor"))
    assert updated.sample_reels == REELS
    assert updated.bio == "Editor"
    assert updated.profile_complete is True

def test_freelancer_needs_three_reels(store):
    user = store.add_user("f1", role="freelancer", instagram_id="asha.edits")
    with pytest.raises(ValidationFailed):
        user_service.update_profile(store, user, ProfileUpdate(sample_reels=REELS[:2] + ["  "]))

def test_instagram_id_format(store):
    user = store.add_user("f1", role="freelancer", instagram_id="asha.edits")
    with pytest.raises(ValidationFailed):
        user_service.update_profile(store, user, ProfileUpdate(instagram_id="asha edits!"))

def test_business_owner_has_no_reels(store):
    user = store.add_user("owner", role="business_owner")
    updated = user_service.update_profile(store, user, ProfileUpdate(sample_reels=REELS, phone="+91 99999"))
    assert updated.sample_reels is None
    assert updated.phone == "+91 99999"

def test_name_too_short(store):
    user = store.add_user("owner", role="business_owner")
    with pytest.raises(ValidationFailed):
        user_service.update_profile(store, user, ProfileUpdate(full_name=" A "))

def test_set_reel_fills_slot(store):
    user = store.add_user("f1", role="freelancer")
    updated = user_service.set_reel(store, user, 1, REELS[1])
    assert updated.sample_reels == ["", REELS[1], ""]

def test_get_missing_user(store):
    with pytest.raises(NotFound):
        user_service.get_user(store, "missing")

@pytest.mark.parametrize("full_name,password,role,instagram_id", [
    ("A", "secret1", "business_owner", None),
    ("Asha", "short", "business_owner", None),
    ("Asha", "secret1", "freelancer", None),
    ("Asha", "secret1", "freelancer", "bad id"),
])
def test_validate_signup_rejects(full_name, password, role, instagram_id):
    with pytest.raises(ValidationFailed):
        user_service.validate_signup(full_name, password, role, instagram_id)

def test_admin_cannot_self_register():
    with pytest.raises(Unauthorized):
        user_service.validate_signup("Root", "secret1", "admin", None)

def test_validate_signup_cleans_fields():
    fields = user_service.validate_signup("  Asha  ", "secret1", "freelancer", " asha.edits ")
    assert fields == {"full_name": "Asha", "role": "freelancer", "instagram_id": "asha.edits"}
