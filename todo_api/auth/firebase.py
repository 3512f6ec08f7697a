# todo_api/auth/firebase.py
"""
Firebase ID token verification.

The verifier is built once at startup from the service credentials and kept on
``app.state``. Responsibilities:
- Lazy JWKS fetching (no network calls on construction)
- In-memory signing-key caching with configurable TTL
- Clear typed exceptions for verification failures
- Firebase-specific claim checks (aud, iss, sub, auth_time)
"""
from __future__ import annotations

import json
import logging
import ssl
import threading
import time
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.request import urlopen

import certifi
from jose import JWTError, jwk, jwt

from todo_api.auth.identity import VerifiedIdentity
from todo_api.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FirebaseVerificationError(Exception):
    """Base exception for Firebase ID token verification failures."""

    pass


class FirebaseJWKSFetchError(FirebaseVerificationError):
    """Raised when Google's signing keys cannot be fetched."""

    pass


class FirebaseTokenExpiredError(FirebaseVerificationError):
    """Raised when the token has expired."""

    pass


class FirebaseInvalidSignatureError(FirebaseVerificationError):
    """Raised when the token signature is invalid."""

    pass


class FirebaseClaimsError(FirebaseVerificationError):
    """Raised when aud/iss/sub/auth_time/email do not satisfy Firebase rules."""

    pass


class FirebaseInvalidTokenError(FirebaseVerificationError):
    """Raised for malformed tokens and unknown signing keys."""

    pass


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FirebaseCredentials:
    project_id: str
    client_email: str
    private_key: str

    @classmethod
    def from_settings(cls, settings: Any) -> FirebaseCredentials:
        """Raises ConfigurationError if any credential is missing."""
        missing = [
            name
            for name, value in (
                ("FIREBASE_PROJECT_ID", settings.FIREBASE_PROJECT_ID),
                ("FIREBASE_CLIENT_EMAIL", settings.FIREBASE_CLIENT_EMAIL),
                ("FIREBASE_PRIVATE_KEY", (settings.FIREBASE_PRIVATE_KEY or "").strip()),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing Firebase credentials: {', '.join(missing)}")
        return cls(
            project_id=settings.FIREBASE_PROJECT_ID,
            client_email=settings.FIREBASE_CLIENT_EMAIL,
            private_key=settings.FIREBASE_PRIVATE_KEY,
        )

    def __repr__(self) -> str:
        return f"FirebaseCredentials(project_id={self.project_id!r}, client_email={self.client_email!r})"


# ---------------------------------------------------------------------------
# JWKS Cache
# ---------------------------------------------------------------------------


class _JWKSCache:
    """
    Thread-safe in-memory cache for Google's securetoken signing keys.

    Populated lazily on first verification. An unknown ``kid`` forces one
    refresh (Google rotates keys), at most once per ``min_refresh_seconds``.
    """

    def __init__(self, jwks_url: str, ttl_seconds: int, min_refresh_seconds: int = 60) -> None:
        self._jwks_url = jwks_url
        self._ttl = ttl_seconds
        self._min_refresh = min_refresh_seconds
        self._lock = threading.Lock()
        self._keys: dict[str, Any] | None = None
        self._fetched_at: float = 0.0

    def get_signing_key(self, kid: str) -> Any:
        with self._lock:
            now = time.time()
            if self._keys is None or (now - self._fetched_at) > self._ttl:
                self._refresh_keys()

            if kid not in self._keys and (now - self._fetched_at) >= self._min_refresh:
                self._refresh_keys()

            if kid not in self._keys:
                raise FirebaseInvalidTokenError(f"Signing key not found for kid: {kid}")

            return self._keys[kid]

    def _refresh_keys(self) -> None:
        try:
            logger.info("Fetching Firebase signing keys from %s", self._jwks_url)
            context = ssl.create_default_context(cafile=certifi.where())
            with urlopen(self._jwks_url, timeout=10, context=context) as resp:
                data = json.loads(resp.read().decode("utf-8"))
        except Exception as e:
            logger.error("Failed to fetch Firebase JWKS: %s", e)
            raise FirebaseJWKSFetchError(f"Failed to fetch JWKS: {e}") from e

        keys_list = data.get("keys", [])
        if not keys_list:
            raise FirebaseJWKSFetchError("JWKS response contains no keys")

        keys: dict[str, Any] = {}
        for key_data in keys_list:
            kid = key_data.get("kid")
            if kid:
                try:
                    keys[kid] = jwk.construct(key_data, algorithm="RS256")
                except Exception as e:
                    logger.warning("Failed to construct key for kid=%s: %s", kid, e)

        self._keys = keys
        self._fetched_at = time.time()
        logger.info("Cached %d Firebase signing keys", len(self._keys))

    def clear(self) -> None:
        with self._lock:
            self._keys = None
            self._fetched_at = 0.0


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


class IdentityVerifier(Protocol):
    def verify(self, assertion: str) -> VerifiedIdentity: ...


class FirebaseIdentityVerifier:
    """Verifies Firebase Authentication ID tokens for a single project."""

    def __init__(
        self,
        credentials: FirebaseCredentials,
        *,
        jwks_url: str = FIREBASE_JWKS_URL,
        jwks_cache_seconds: int = 3600,
        jwks_min_refresh_seconds: int = 60,
    ) -> None:
        self.credentials = credentials
        self._jwks_cache = _JWKSCache(jwks_url, jwks_cache_seconds, jwks_min_refresh_seconds)

    @property
    def project_id(self) -> str:
        return self.credentials.project_id

    @property
    def issuer(self) -> str:
        return f"{FIREBASE_ISSUER_PREFIX}{self.project_id}"

    def clear_cache(self) -> None:
        self._jwks_cache.clear()

    def verify(self, assertion: str) -> VerifiedIdentity:
        """
        Verify a Firebase ID token and return the identity it asserts.

        Validates:
        - Header: RS256 with a known ``kid``
        - Signature via Google's JWKS
        - exp / iat / nbf
        - aud == project id, iss == securetoken issuer for the project
        - non-empty sub, auth_time not in the future, email present

        Raises:
            FirebaseTokenExpiredError: Token has expired
            FirebaseInvalidSignatureError: Signature verification failed
            FirebaseClaimsError: Firebase claim rules not met
            FirebaseJWKSFetchError: Signing keys unavailable
            FirebaseInvalidTokenError: Malformed token or unknown key
        """
        if not assertion or not assertion.strip():
            raise FirebaseInvalidTokenError("Empty token")

        try:
            header = jwt.get_unverified_header(assertion)
        except JWTError as e:
            raise FirebaseInvalidTokenError(f"Invalid token header: {e}") from e

        if header.get("alg") != "RS256":
            raise FirebaseInvalidTokenError(f"Unexpected token algorithm: {header.get('alg')}")

        kid = header.get("kid")
        if not kid:
            raise FirebaseInvalidTokenError("Token header missing 'kid' claim")

        signing_key = self._jwks_cache.get_signing_key(kid)

        try:
            claims = jwt.decode(
                assertion,
                signing_key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
            )
        except jwt.ExpiredSignatureError as e:
            raise FirebaseTokenExpiredError("Token has expired") from e
        except jwt.JWTClaimsError as e:
            raise FirebaseClaimsError(f"Claims validation failed: {e}") from e
        except JWTError as e:
            raise FirebaseInvalidSignatureError(f"Signature verification failed: {e}") from e

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject.strip():
            raise FirebaseClaimsError("Token has an empty 'sub' claim")
        if len(subject) > 128:
            raise FirebaseClaimsError("Token 'sub' claim exceeds 128 characters")

        auth_time = claims.get("auth_time")
        if not isinstance(auth_time, (int, float)) or auth_time > time.time():
            raise FirebaseClaimsError("Token 'auth_time' is missing or in the future")

        email = (claims.get("email") or "").strip().lower()
        if not email:
            raise FirebaseClaimsError("Token has no email claim")

        name = claims.get("name")
        return VerifiedIdentity(
            subject=subject,
            email=email,
            name=name.strip() if isinstance(name, str) and name.strip() else None,
        )
