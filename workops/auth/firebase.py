"""Firebase identity provider for WorkOps.

Wraps the two provider capabilities the auth layer consumes:

- ID token verification (signature, audience and expiry are checked by
  google-auth against Google's published Firebase certificates)
- Custom token minting, so a client that logged in with email/password can
  exchange the token for a provider-native ID token

Credentials come from a single service-account field set, read either from
`FIREBASE_*` environment variables or from a local service-account JSON file.
The provider is built once at application startup (see `workops.api.app`) and
handed to request handlers through a FastAPI dependency.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from google.auth import crypt
from google.auth import exceptions as google_exceptions
from google.auth import jwt as google_jwt
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from workops.auth.errors import FirebaseConfigError, TokenVerificationError, VerificationFailure

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_PATH = "serviceAccountKey.json"
IDENTITY_TOKEN_TIMEOUT_SEC = float(os.getenv("IDENTITY_TOKEN_TIMEOUT_SEC", "10"))

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"
CUSTOM_TOKEN_AUDIENCE = (
    "https://identitytoolkit.googleapis.com/google.identity.identitytoolkit.v1.IdentityToolkit"
)
CUSTOM_TOKEN_LIFETIME_SEC = 60 * 60
MAX_UID_LENGTH = 128

# Service-account field -> environment variable
_ENV_FIELDS = {
    "project_id": "FIREBASE_PROJECT_ID",
    "client_email": "FIREBASE_CLIENT_EMAIL",
    "private_key": "FIREBASE_PRIVATE_KEY",
    "private_key_id": "FIREBASE_PRIVATE_KEY_ID",
    "client_id": "FIREBASE_CLIENT_ID",
    "auth_uri": "FIREBASE_AUTH_URI",
    "token_uri": "FIREBASE_TOKEN_URI",
    "auth_provider_x509_cert_url": "FIREBASE_AUTH_PROVIDER_CERT_URL",
    "client_x509_cert_url": "FIREBASE_CLIENT_CERT_URL",
}
REQUIRED_FIELDS = ("project_id", "client_email", "private_key")


class FirebaseCredentials(BaseModel):
    """Service-account fields needed to talk to Firebase Auth."""

    project_id: str
    client_email: str
    private_key: str = Field(..., repr=False)
    private_key_id: Optional[str] = None
    client_id: Optional[str] = None
    auth_uri: Optional[str] = None
    token_uri: Optional[str] = None
    auth_provider_x509_cert_url: Optional[str] = None
    client_x509_cert_url: Optional[str] = None


class VerifiedIdentity(BaseModel):
    """Identity decoded from a verified Firebase ID token."""

    uid: str = Field(..., description="Firebase UID (token 'sub' claim)")
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    claims: Dict[str, Any] = Field(default_factory=dict, description="All decoded token claims")


def load_firebase_credentials(
    environ: Optional[Mapping[str, str]] = None,
    credentials_path: Optional[str] = None,
) -> FirebaseCredentials:
    """Load service-account credentials from the environment or a JSON file.

    Environment variables win whenever any `FIREBASE_*` field variable is set;
    the file is only consulted when none are.

    Raises:
        FirebaseConfigError: If required fields are missing or the file is
            absent or unreadable.
    """
    environ = os.environ if environ is None else environ

    values = {field: environ[var] for field, var in _ENV_FIELDS.items() if environ.get(var)}
    if values:
        source = "environment variables"
    else:
        path = Path(credentials_path or environ.get("FIREBASE_CREDENTIALS_PATH") or DEFAULT_CREDENTIALS_PATH)
        if not path.exists():
            raise FirebaseConfigError(
                "Firebase credentials are not configured. Set "
                + ", ".join(_ENV_FIELDS[f] for f in REQUIRED_FIELDS)
                + f" or provide a service account file at {path}."
            )
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise FirebaseConfigError(f"Could not read Firebase service account file {path}: {e}") from e
        if not isinstance(data, dict):
            raise FirebaseConfigError(f"Firebase service account file {path} is not a JSON object.")
        values = {field: data[field] for field in _ENV_FIELDS if data.get(field)}
        source = str(path)

    missing = [field for field in REQUIRED_FIELDS if not values.get(field)]
    if missing:
        raise FirebaseConfigError(
            f"Firebase credentials from {source} are missing: "
            + ", ".join(_ENV_FIELDS[f] if source == "environment variables" else f for f in missing)
        )

    # Keys pasted into env vars usually carry escaped newlines.
    values["private_key"] = values["private_key"].replace("\\n", "\n")
    logger.info(f"Firebase credentials loaded from {source} (project {values['project_id']})")
    return FirebaseCredentials(**values)


class _TimeoutRequest(google_requests.Request):
    """google-auth transport that applies a fixed timeout to every call."""

    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def __call__(self, url, method="GET", body=None, headers=None, timeout=None, **kwargs):
        return super().__call__(
            url, method=method, body=body, headers=headers, timeout=timeout or self.timeout, **kwargs
        )


def _classify(error: Exception) -> VerificationFailure:
    # google-auth checks the signature before the expiry, so an expiry error
    # means the token was otherwise genuine.
    if "Token expired" in str(error):
        return VerificationFailure.EXPIRED
    return VerificationFailure.INVALID


class FirebaseIdentityProvider:
    """Verifies Firebase ID tokens and mints Firebase custom tokens."""

    def __init__(self, credentials: FirebaseCredentials, timeout: float = IDENTITY_TOKEN_TIMEOUT_SEC):
        self.project_id = credentials.project_id
        self.client_email = credentials.client_email
        self.issuer = FIREBASE_ISSUER_PREFIX + credentials.project_id
        self.timeout = timeout
        try:
            self._signer = crypt.RSASigner.from_service_account_info(credentials.model_dump(exclude_none=True))
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            raise FirebaseConfigError(f"Firebase private key could not be loaded: {type(e).__name__}") from e

    @classmethod
    def from_environment(cls) -> "FirebaseIdentityProvider":
        """Build a provider from `FIREBASE_*` env vars or the service account file."""
        return cls(load_firebase_credentials())

    def verify_id_token(self, token: str) -> VerifiedIdentity:
        """Verify a Firebase ID token.

        Every call fetches the current signing certificates; nothing is cached
        between requests.

        Raises:
            TokenVerificationError: With kind EXPIRED, INVALID or MISSING.
        """
        if not token:
            raise TokenVerificationError(VerificationFailure.MISSING)

        try:
            claims = id_token.verify_firebase_token(
                token,
                _TimeoutRequest(self.timeout),
                audience=self.project_id,
            )
        except google_exceptions.TransportError as e:
            logger.warning(f"Identity provider call failed: {type(e).__name__}")
            raise TokenVerificationError(VerificationFailure.INVALID, "identity provider unavailable") from e
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            raise TokenVerificationError(_classify(e), str(e)) from e

        if not claims:
            raise TokenVerificationError(VerificationFailure.INVALID, "empty token payload")
        if claims.get("iss") != self.issuer:
            raise TokenVerificationError(VerificationFailure.INVALID, "unexpected token issuer")

        uid = claims.get("sub")
        if not isinstance(uid, str) or not uid or len(uid) > MAX_UID_LENGTH:
            raise TokenVerificationError(VerificationFailure.INVALID, "invalid token subject")

        return VerifiedIdentity(
            uid=uid,
            email=claims.get("email"),
            name=claims.get("name"),
            picture=claims.get("picture"),
            claims=claims,
        )

    def create_custom_token(self, uid: str) -> str:
        """Mint a custom token the client can exchange for a Firebase ID token."""
        if not uid or len(uid) > MAX_UID_LENGTH:
            raise ValueError("uid must be a non-empty string of at most 128 characters")

        now = int(time.time())
        payload = {
            "iss": self.client_email,
            "sub": self.client_email,
            "aud": CUSTOM_TOKEN_AUDIENCE,
            "uid": uid,
            "iat": now,
            "exp": now + CUSTOM_TOKEN_LIFETIME_SEC,
        }
        return google_jwt.encode(self._signer, payload).decode("utf-8")
