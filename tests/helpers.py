"""Shared test doubles: an in-memory stand-in for FirestoreStore and record builders."""
import itertools
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from taskmarket.core.errors import MarketplaceError, NotFound
from taskmarket.core.session import Session
from taskmarket.db.firebase_ops import normalize_record
from taskmarket.models.schemas import User

BASE_TIME = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


class _InMemoryTransaction:
    """Buffers writes until the callback returns, like a Firestore transaction."""

    def __init__(self, store: "InMemoryStore"):
        self._store = store
        self._writes = []

    def get(self, collection_name: str, document_id: str):
        return self._store.get_by_id(collection_name, document_id)

    def list_all(self, collection_name: str):
        return self._store.list_all(collection_name)

    def update(self, collection_name: str, document_id: str, updates: Dict[str, Any]):
        self._writes.append((collection_name, document_id, updates))

    def commit(self):
        for collection_name, document_id, updates in self._writes:
            self._store.update(collection_name, document_id, updates)


class InMemoryStore:
    def __init__(self):
        self.collections = defaultdict(dict)
        self._ids = itertools.count(1)
        self.failing_creates = set()
        self.failing_reads = set()

    def create(self, collection_name: str, data: Dict[str, Any], document_id: Optional[str] = None) -> str:
        if collection_name in self.failing_creates:
            raise MarketplaceError(f"Could not save to {collection_name}")
        document_id = document_id or f"{collection_name}-{next(self._ids)}"
        self.collections[collection_name][document_id] = dict(data)
        return document_id

    def get_by_id(self, collection_name: str, document_id: str):
        if collection_name in self.failing_reads:
            raise MarketplaceError(f"Could not read from {collection_name}")
        data = self.collections[collection_name].get(document_id)
        return normalize_record(document_id, data) if data is not None else None

    def list_all(self, collection_name: str, order_by: Optional[str] = None, descending: bool = True) -> List[Dict[str, Any]]:
        if collection_name in self.failing_reads:
            raise MarketplaceError(f"Could not read from {collection_name}")
        items = list(self.collections[collection_name].items())
        if order_by:
            items.sort(key=lambda item: item[1][order_by], reverse=descending)
        return [normalize_record(doc_id, data) for doc_id, data in items]

    def list_where(self, collection_name: str, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.list_all(collection_name) if r.get(field) == value]

    def update(self, collection_name: str, document_id: str, updates: Dict[str, Any]) -> None:
        if document_id not in self.collections[collection_name]:
            raise NotFound(f"{collection_name} document {document_id} not found")
        self.collections[collection_name][document_id].update(updates)

    def run_in_transaction(self, fn):
        transaction = _InMemoryTransaction(self)
        result = fn(transaction)
        transaction.commit()
        return result

    # Seeding helpers

    def add_user(self, user_id: str, role: str = "freelancer", created: int = 0, **fields) -> User:
        data = {
            "email": f"{user_id}@example.com",
            "full_name": f"User {user_id}",
            "role": role,
            "created_at": at(created),
            **fields,
        }
        self.create("users", data, document_id=user_id)
        return User(**normalize_record(user_id, data))

    def add_task(self, task_id: str, owner_id: str, status: str = "open", created: int = 0, **fields) -> str:
        data = {
            "title": "Edit my product reel",
            "description": "Cut a 30 second reel from raw footage.",
            "category": "Video Editing",
            "budget": 5000.0,
            "location": "Mumbai",
            "business_owner_id": owner_id,
            "status": status,
            "created_at": at(created),
            "updated_at": at(created),
            **fields,
        }
        return self.create("tasks", data, document_id=task_id)

    def add_application(self, application_id: str, task_id: str, freelancer_id: str,
                        status: str = "pending", created: int = 0, **fields) -> str:
        data = {
            "task_id": task_id,
            "freelancer_id": freelancer_id,
            "proposal": "I have edited over a hundred reels for brands.",
            "proposed_price": 4000.0,
            "status": status,
            "created_at": at(created),
            **fields,
        }
        return self.create("applications", data, document_id=application_id)

    def raw(self, collection_name: str, document_id: str) -> Dict[str, Any]:
        return self.collections[collection_name][document_id]


def session_for(user: User) -> Session:
    return Session(user=user, token="fake-token")
