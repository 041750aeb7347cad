import pytest

from taskmarket.core.errors import NotFound, ValidationFailed
from taskmarket.models.schemas import TaskCreate, TaskFilter
from taskmarket.services.tasks import TaskRepository, search_tasks, sort_tasks, validate_task_input


def create(store, **overrides):
    fields = dict(
        title="Shoot a launch reel",
        description="Need a 30 second launch reel for our new cafe.",
        category="Reel Creation",
        budget=5000,
        location="Pune",
        business_owner_id="owner",
    )
    fields.update(overrides)
    return TaskRepository(store).create_task(**fields)


def test_create_task_starts_open(store):
    store.add_user("owner", role="business_owner")
    task = create(store)
    assert task.status == "open"
    assert task.created_at == task.updated_at
    saved = store.raw("tasks", task.id)
    assert saved["status"] == "open"
    assert saved["created_at"] == saved["updated_at"]

def test_create_task_notifies_every_current_freelancer(store):
    store.add_user("owner", role="business_owner")
    store.add_user("f1", role="freelancer")
    store.add_user("f2", role="freelancer")
    store.add_user("admin", role="admin")

    task = create(store)

    notifications = list(store.collections["notifications"].values())
    assert sorted(n["user_id"] for n in notifications) == ["f1", "f2"]
    for n in notifications:
        assert n["type"] == "new_task"
        assert n["task_id"] == task.id
        assert n["read"] is False
        assert "Shoot a launch reel" in n["message"]
        assert "5,000" in n["message"]

def test_freelancer_joining_later_gets_nothing(store):
    store.add_user("f1", role="freelancer")
    create(store)
    store.add_user("f2", role="freelancer")
    recipients = [n["user_id"] for n in store.collections["notifications"].values()]
    assert recipients == ["f1"]

def test_notification_failure_does_not_fail_creation(store):
    store.add_user("f1", role="freelancer")
    store.failing_creates.add("notifications")
    task = create(store)
    assert task.id in store.collections["tasks"]
    assert not store.collections["notifications"]

def test_list_tasks_filters_and_orders_newest_first(store):
    store.add_user("owner", role="business_owner")
    # Inserted out of order on purpose
    store.add_task("old", "owner", created=1)
    store.add_task("new", "owner", created=30)
    store.add_task("mid", "owner", created=10)
    store.add_task("closed", "owner", status="completed", created=40)
    store.add_task("photo", "owner", category="Photography", created=50)

    tasks = TaskRepository(store).list_tasks(TaskFilter(status="open", category="Video Editing"))
    assert [t.id for t in tasks] == ["new", "mid", "old"]

def test_list_tasks_location_is_case_insensitive_substring(store):
    store.add_task("t1", "owner", location="South Mumbai")
    store.add_task("t2", "owner", location="Delhi")
    tasks = TaskRepository(store).list_tasks(TaskFilter(location="mUMBAI"))
    assert [t.id for t in tasks] == ["t1"]

def test_list_tasks_by_owner(store):
    store.add_task("t1", "owner")
    store.add_task("t2", "someone-else")
    tasks = TaskRepository(store).list_tasks(TaskFilter(business_owner_id="owner"))
    assert [t.id for t in tasks] == ["t1"]

def test_owner_enrichment(store):
    store.add_user("owner", role="business_owner", full_name="Cafe Owner")
    store.add_task("t1", "owner")
    store.add_task("t2", "ghost", created=5)
    tasks = {t.id: t for t in TaskRepository(store).list_tasks()}
    assert tasks["t1"].business_owner.full_name == "Cafe Owner"
    assert tasks["t2"].business_owner is None

def test_owner_lookup_failure_degrades_to_none(store):
    store.add_task("t1", "owner")
    store.failing_reads.add("users")
    task = TaskRepository(store).get_task("t1")
    assert task.business_owner is None

def test_get_missing_task(store):
    with pytest.raises(NotFound):
        TaskRepository(store).get_task("missing")

def test_update_task_status_overwrites_and_returns_enriched(store):
    store.add_user("owner", role="business_owner")
    store.add_task("t1", "owner")
    task = TaskRepository(store).update_task_status("t1", "cancelled")
    assert task.status == "cancelled"
    assert task.updated_at != task.created_at
    assert task.business_owner.id == "owner"

def test_update_status_of_missing_task(store):
    with pytest.raises(NotFound):
        TaskRepository(store).update_task_status("missing", "cancelled")

def test_timestamps_are_iso_strings(store):
    store.add_task("t1", "owner")
    task = TaskRepository(store).get_task("t1")
    assert task.created_at == "2020-01-01T12:00:00+00:00"


# --- Caller-side validation and browsing helpers ---

def valid_input(**overrides):
    fields = dict(
        title="Shoot a launch reel",
        description="Need a 30 second launch reel for our new cafe.",
        category="Reel Creation",
        budget=5000,
        location="  Pune ",
    )
    fields.update(overrides)
    return TaskCreate(**fields)

def test_validate_task_input_trims():
    assert validate_task_input(valid_input())["location"] == "Pune"

@pytest.mark.parametrize("overrides", [
    {"title": "Reel"},
    {"description": "Too short"},
    {"category": "Plumbing"},
    {"budget": 0},
    {"budget": -10},
    {"budget": float("nan")},
    {"budget": float("inf")},
    {"location": "   "},
])
def test_validate_task_input_rejects(overrides):
    with pytest.raises(ValidationFailed):
        validate_task_input(valid_input(**overrides))

def test_search_and_sort(store):
    store.add_task("cheap", "owner", budget=100, created=1, title="Logo animation")
    store.add_task("pricey", "owner", budget=9000, created=2)
    store.add_task("mid", "owner", budget=500, created=3, description="Photograph our menu for the website")
    tasks = TaskRepository(store).list_tasks()

    assert [t.id for t in sort_tasks(tasks, "budget_high")] == ["pricey", "mid", "cheap"]
    assert [t.id for t in sort_tasks(tasks, "budget_low")] == ["cheap", "mid", "pricey"]
    assert [t.id for t in sort_tasks(tasks, "oldest")] == ["cheap", "pricey", "mid"]
    assert [t.id for t in sort_tasks(tasks, "newest")] == ["mid", "pricey", "cheap"]
    assert [t.id for t in search_tasks(tasks, "MENU")] == ["mid"]
    assert [t.id for t in search_tasks(tasks, "logo")] == ["cheap"]
    assert len(search_tasks(tasks, "  ")) == 3
