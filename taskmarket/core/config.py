import json
import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel

# Paths relative to the project root
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
FIREBASE_CONFIG_PATH = os.path.join(PROJECT_ROOT, "Firebase.json")
SERVICE_ACCOUNT_PATH = os.path.join(PROJECT_ROOT, "service-account-key.json")


class Settings(BaseModel):
    project_id: Optional[str] = None
    web_api_key: Optional[str] = None
    storage_bucket: Optional[str] = None
    credentials_path: Optional[str] = None
    log_level: str = "INFO"
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    identity_timeout_seconds: float = 10.0


def _load_firebase_json(path: str) -> dict:
    """Read the client-side Firebase.json config if present."""
    if not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        return json.load(f)


def load_settings(environ: Optional[dict] = None, firebase_config_path: str = FIREBASE_CONFIG_PATH) -> Settings:
    """
    Build Settings from the environment, falling back to Firebase.json
    for values the environment leaves unset.
    """
    env = os.environ if environ is None else environ
    file_config = _load_firebase_json(firebase_config_path)

    credentials_path = env.get("FIREBASE_CREDENTIALS_PATH")
    if not credentials_path and os.path.exists(SERVICE_ACCOUNT_PATH):
        credentials_path = SERVICE_ACCOUNT_PATH

    values = {
        "project_id": env.get("FIREBASE_PROJECT_ID") or file_config.get("projectId"),
        "web_api_key": env.get("FIREBASE_WEB_API_KEY") or file_config.get("apiKey"),
        "storage_bucket": env.get("FIREBASE_STORAGE_BUCKET") or file_config.get("storageBucket"),
        "credentials_path": credentials_path,
    }
    if env.get("TASKMARKET_LOG_LEVEL"):
        values["log_level"] = env["TASKMARKET_LOG_LEVEL"].upper()
    if env.get("IDENTITY_TOOLKIT_URL"):
        values["identity_toolkit_url"] = env["IDENTITY_TOOLKIT_URL"].rstrip("/")
    if env.get("IDENTITY_TIMEOUT_SECONDS"):
        values["identity_timeout_seconds"] = float(env["IDENTITY_TIMEOUT_SECONDS"])
    return Settings(**values)


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
