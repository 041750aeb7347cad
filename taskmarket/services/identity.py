import logging
from typing import Any, Dict, Optional

import httpx
from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions

from taskmarket.core.config import Settings
from taskmarket.core.constants import USERS
from taskmarket.core.errors import (
    Conflict,
    MarketplaceError,
    NotConfigured,
    NotFound,
    Unauthenticated,
    ValidationFailed,
)
from taskmarket.db.firebase_ops import FirebaseManager, utcnow
from taskmarket.models.schemas import Token, User
from taskmarket.services.users import to_user, validate_signup

logger = logging.getLogger(__name__)

# Identity Toolkit error codes that mean "wrong email or password"
BAD_CREDENTIALS = {"EMAIL_NOT_FOUND", "INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS", "USER_DISABLED"}


class IdentityProvider:
    """
    Firebase Authentication. Account management and token checks go through
    the Admin SDK; password sign-in and reset emails use the Identity Toolkit
    REST API, which the Admin SDK does not expose.
    """

    def __init__(self, store, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.store = store
        self.settings = settings
        self._transport = transport

    def _require_app(self) -> None:
        # Raises NotConfigured when the Firebase app never came up
        FirebaseManager().get_db()

    async def _call_toolkit(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.settings.web_api_key:
            raise NotConfigured("Firebase web API key is not configured")
        url = f"{self.settings.identity_toolkit_url}/accounts:{endpoint}"
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.identity_timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post(url, params={"key": self.settings.web_api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Identity Toolkit request to %s failed: %s", endpoint, e)
            raise NotConfigured("Network error. Please check your internet connection") from e

        try:
            body = response.json()
        except ValueError as e:
            # Proxies and gateways answer with HTML error pages
            logger.warning("Identity Toolkit %s returned %s with a non-JSON body", endpoint, response.status_code)
            if response.status_code >= 500:
                raise NotConfigured("Authentication service is unavailable. Please try again later") from e
            raise MarketplaceError(f"Authentication failed (HTTP {response.status_code})") from e

        if response.status_code != 200:
            error = body.get("error") if isinstance(body, dict) else None
            code = error.get("message", "UNKNOWN") if isinstance(error, dict) else "UNKNOWN"
            # Codes can carry a suffix, e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : ..."
            code = code.split(" ")[0]
            logger.warning("Identity Toolkit %s rejected: %s", endpoint, code)
            if code in BAD_CREDENTIALS:
                raise Unauthenticated("Invalid email or password")
            raise MarketplaceError(f"Authentication failed ({code})")
        return body

    def sign_up(self, email: str, password: str, full_name: str, role: str,
                instagram_id: Optional[str] = None) -> User:
        """Create the auth account and its users document keyed by the auth uid."""
        fields = validate_signup(full_name, password, role, instagram_id)
        self._require_app()
        try:
            record = auth.create_user(email=email, password=password, display_name=fields["full_name"])
        except auth.EmailAlreadyExistsError as e:
            raise Conflict("This email is already registered") from e
        except ValueError as e:
            raise ValidationFailed(str(e)) from e
        except firebase_exceptions.FirebaseError as e:
            logger.warning("Could not create auth account for %s: %s", email, e)
            raise MarketplaceError("Could not create account") from e

        now = utcnow()
        profile = {
            "email": email,
            "phone": "",
            "location": "",
            "bio": "",
            "created_at": now,
            **fields,
        }
        self.store.create(USERS, profile, document_id=record.uid)
        logger.info("Registered %s account %s", fields["role"], record.uid)
        return to_user({**profile, "id": record.uid, "created_at": now.isoformat()})

    async def sign_in(self, email: str, password: str) -> Token:
        body = await self._call_toolkit(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return Token(
            id_token=body["idToken"],
            refresh_token=body.get("refreshToken"),
            expires_in=int(body.get("expiresIn", 0)) or None,
            user_id=body["localId"],
        )

    def sign_out(self, user_id: str) -> None:
        """Revoke refresh tokens; outstanding id tokens fail the revocation check."""
        self._require_app()
        try:
            auth.revoke_refresh_tokens(user_id)
        except auth.UserNotFoundError as e:
            raise NotFound("User not found") from e
        except firebase_exceptions.FirebaseError as e:
            logger.warning("Could not revoke tokens for %s: %s", user_id, e)
            raise MarketplaceError("Could not sign out") from e

    async def reset_password(self, email: str) -> None:
        try:
            await self._call_toolkit("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
        except Unauthenticated as e:
            raise NotFound("No account found with this email") from e

    def current_user(self, token: str) -> Optional[User]:
        """Resolve a bearer id token to its users document, or None."""
        self._require_app()
        try:
            decoded = auth.verify_id_token(token, check_revoked=True)
        except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as e:
            logger.info("Rejected id token: %s", e)
            return None
        except auth.CertificateFetchError as e:
            raise NotConfigured("Could not verify credentials right now") from e

        record = self.store.get_by_id(USERS, decoded["uid"])
        return to_user(record) if record else None
