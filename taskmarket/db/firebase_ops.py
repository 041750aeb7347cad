import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions
from google.cloud.firestore_v1.base_query import FieldFilter

from taskmarket.core.config import Settings, get_settings
from taskmarket.core.errors import MarketplaceError, NotConfigured, NotFound

logger = logging.getLogger(__name__)

# Stand-in for an absent created_at; sorts as the oldest record
MISSING_TIMESTAMP = datetime(1970, 1, 1, tzinfo=timezone.utc).isoformat()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Any) -> Any:
    """Store-native timestamps come back as datetime subclasses."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_record(document_id: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Flatten a snapshot into a plain dict with `id` and ISO-8601 timestamps."""
    record = {key: to_iso(value) for key, value in (data or {}).items()}
    record["id"] = document_id
    # Records written with a pending server timestamp can be read back without one
    if not record.get("created_at"):
        record["created_at"] = MISSING_TIMESTAMP
    return record


class FirebaseManager:
    """
    Firebase app holder. One app per process; initialization failures
    leave the clients unset so callers can report NotConfigured.
    """
    _instance = None
    _db = None
    _initialized = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(FirebaseManager, cls).__new__(cls)
        return cls._instance

    def __init__(self, settings: Optional[Settings] = None):
        if not self._initialized:
            self.initialize_firebase(settings or get_settings())

    def initialize_firebase(self, settings: Settings):
        """Initialize Firebase Admin SDK"""
        type(self)._initialized = True
        try:
            app = firebase_admin.get_app()
            type(self)._db = firestore.client(app)
            logger.info("Using existing Firebase app")
            return
        except ValueError:
            pass  # App doesn't exist, so we need to initialize it

        options = {}
        if settings.project_id:
            options["projectId"] = settings.project_id
        if settings.storage_bucket:
            options["storageBucket"] = settings.storage_bucket

        try:
            if settings.credentials_path:
                cred = credentials.Certificate(settings.credentials_path)
                logger.info("Initializing Firebase with service account key from %s", settings.credentials_path)
            else:
                cred = credentials.ApplicationDefault()
                logger.info("Initializing Firebase with application default credentials")
            firebase_admin.initialize_app(cred, options or None)
            type(self)._db = firestore.client()
            logger.info("Firebase Firestore client initialized")
        except (ValueError, IOError, google_auth_exceptions.GoogleAuthError, google_exceptions.GoogleAPIError) as e:
            logger.warning(
                "Could not initialize Firebase: %s. Set FIREBASE_CREDENTIALS_PATH or place "
                "service-account-key.json in the project root.", e
            )

    def get_db(self):
        """Get Firestore database client"""
        if self._db is None:
            raise NotConfigured("Firebase not initialized")
        return self._db

    @classmethod
    def reset(cls):
        cls._instance = None
        cls._db = None
        cls._initialized = False


class _TransactionView:
    """Reads and writes bound to one Firestore transaction. All reads must happen before writes."""

    def __init__(self, db, transaction):
        self._db = db
        self._transaction = transaction

    def get(self, collection_name: str, document_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self._db.collection(collection_name).document(document_id).get(transaction=self._transaction)
        if not snapshot.exists:
            return None
        return normalize_record(snapshot.id, snapshot.to_dict())

    def list_all(self, collection_name: str) -> List[Dict[str, Any]]:
        snapshots = self._db.collection(collection_name).stream(transaction=self._transaction)
        return [normalize_record(s.id, s.to_dict()) for s in snapshots]

    def update(self, collection_name: str, document_id: str, updates: Dict[str, Any]) -> None:
        doc_ref = self._db.collection(collection_name).document(document_id)
        self._transaction.update(doc_ref, updates)


class FirestoreStore:
    """
    Entity store over Cloud Firestore collections. Records are returned as
    plain dicts carrying their document `id`; timestamps are ISO-8601 strings.
    """

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = FirebaseManager().get_db()
        return self._db

    def create(self, collection_name: str, data: Dict[str, Any], document_id: Optional[str] = None) -> str:
        """Persist a new document and return its id (auto-generated unless given)."""
        try:
            if document_id:
                self.db.collection(collection_name).document(document_id).set(data)
                return document_id
            # add() returns a tuple (update_time, DocumentReference)
            _, doc_ref = self.db.collection(collection_name).add(data)
            return doc_ref.id
        except google_exceptions.GoogleAPIError as e:
            logger.error("Error saving to Firestore collection '%s': %s", collection_name, e)
            raise MarketplaceError(f"Could not save to {collection_name}") from e

    def get_by_id(self, collection_name: str, document_id: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self.db.collection(collection_name).document(document_id).get()
        except google_exceptions.GoogleAPIError as e:
            logger.error("Error getting document '%s' from '%s': %s", document_id, collection_name, e)
            raise MarketplaceError(f"Could not read from {collection_name}") from e
        if not doc.exists:
            return None
        return normalize_record(doc.id, doc.to_dict())

    def list_all(self, collection_name: str, order_by: Optional[str] = None, descending: bool = True) -> List[Dict[str, Any]]:
        """Fetch a whole collection, optionally ordered by one field."""
        try:
            query = self.db.collection(collection_name)
            if order_by:
                direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                query = query.order_by(order_by, direction=direction)
            return [normalize_record(doc.id, doc.to_dict()) for doc in query.stream()]
        except google_exceptions.GoogleAPIError as e:
            logger.error("Error listing Firestore collection '%s': %s", collection_name, e)
            raise MarketplaceError(f"Could not read from {collection_name}") from e

    def list_where(self, collection_name: str, field: str, value: Any) -> List[Dict[str, Any]]:
        """Single-field equality query; needs no composite index."""
        try:
            query = self.db.collection(collection_name).where(filter=FieldFilter(field, "==", value))
            return [normalize_record(doc.id, doc.to_dict()) for doc in query.stream()]
        except google_exceptions.GoogleAPIError as e:
            logger.error("Error querying Firestore collection '%s' on '%s': %s", collection_name, field, e)
            raise MarketplaceError(f"Could not read from {collection_name}") from e

    def update(self, collection_name: str, document_id: str, updates: Dict[str, Any]) -> None:
        """Update specific fields in an existing document."""
        try:
            self.db.collection(collection_name).document(document_id).update(updates)
        except google_exceptions.NotFound as e:
            raise NotFound(f"{collection_name} document {document_id} not found") from e
        except google_exceptions.GoogleAPIError as e:
            logger.error("Error updating document '%s' in '%s': %s", document_id, collection_name, e)
            raise MarketplaceError(f"Could not update {collection_name}") from e

    def run_in_transaction(self, fn: Callable[[_TransactionView], Any]) -> Any:
        """Run fn against a transaction view; Firestore retries it on contention."""
        db = self.db
        transaction = db.transaction()

        @firestore.transactional
        def _run(txn):
            return fn(_TransactionView(db, txn))

        try:
            return _run(transaction)
        except google_exceptions.GoogleAPIError as e:
            logger.error("Firestore transaction failed: %s", e)
            raise MarketplaceError("Could not complete the update") from e


def get_firestore_client():
    return FirebaseManager().get_db()


def get_store() -> FirestoreStore:
    return FirestoreStore()
