"""
Identity providers.

The portal never stores passwords itself when running against Firebase: it
talks to the Identity Toolkit REST API and only keeps the returned uid. The
local provider keeps werkzeug password hashes in a `credentials` collection
so the portal can run without a Firebase project.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import requests
from pymongo.errors import DuplicateKeyError
from werkzeug.security import check_password_hash, generate_password_hash

from database import CREDENTIALS
from errors import ProviderAuthError
from models import utc_now

log = logging.getLogger(__name__)


@dataclass
class Identity:
    uid: str
    email: str
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None


class IdentityProvider:
    def create_identity(self, email, password):
        raise NotImplementedError

    def verify(self, email, password):
        raise NotImplementedError

    def update_display_name(self, identity, display_name):
        pass

    def delete_identity(self, identity):
        raise NotImplementedError

    def sign_out(self, identity):
        pass

    def send_password_reset(self, email):
        raise NotImplementedError


# Identity Toolkit error message -> provider code
FIREBASE_CODES = {
    "EMAIL_EXISTS": "email-already-in-use",
    "INVALID_LOGIN_CREDENTIALS": "invalid-credential",
    "INVALID_PASSWORD": "invalid-credential",
    "EMAIL_NOT_FOUND": "invalid-credential",
    "USER_NOT_FOUND": "invalid-credential",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "too-many-requests",
    "USER_DISABLED": "user-disabled",
    "WEAK_PASSWORD": "weak-password",
    "INVALID_EMAIL": "invalid-email",
    "MISSING_EMAIL": "invalid-email",
}


def firebase_code(message):
    # messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    key = (message or "").split(":", 1)[0].strip()
    return FIREBASE_CODES.get(key, "unknown")


class FirebaseIdentityProvider(IdentityProvider):
    def __init__(self, api_key, base_url="https://identitytoolkit.googleapis.com/v1",
                 timeout=10, session=None):
        if not api_key:
            raise ValueError("FIREBASE_API_KEY is not set")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, endpoint, payload):
        url = f"{self.base_url}/accounts:{endpoint}"
        try:
            resp = self.session.post(
                url, params={"key": self.api_key}, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            log.warning("Identity provider unreachable (%s): %s", endpoint, e)
            raise ProviderAuthError("network-request-failed", str(e)) from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code == 200:
            return data

        message = (data.get("error") or {}).get("message", "")
        code = firebase_code(message)
        log.warning("Identity provider rejected %s: %s", endpoint, message or resp.status_code)
        raise ProviderAuthError(code, message)

    def _identity(self, data, email):
        return Identity(
            uid=data["localId"],
            email=data.get("email", email),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    def create_identity(self, email, password):
        data = self._post("signUp", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self._identity(data, email)

    def verify(self, email, password):
        data = self._post("signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self._identity(data, email)

    def update_display_name(self, identity, display_name):
        self._post("update", {
            "idToken": identity.id_token,
            "displayName": display_name,
            "returnSecureToken": False,
        })

    def delete_identity(self, identity):
        self._post("delete", {"idToken": identity.id_token})

    def sign_out(self, identity):
        # Firebase sessions are bearer tokens; dropping them is all there is.
        if identity is not None:
            identity.id_token = None
            identity.refresh_token = None

    def send_password_reset(self, email):
        self._post("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})


class LocalIdentityProvider(IdentityProvider):
    def __init__(self, collection, min_password_length=6):
        self.collection = collection
        self.min_password_length = min_password_length

    def create_identity(self, email, password):
        if len(password or "") < self.min_password_length:
            raise ProviderAuthError("weak-password")
        if self.collection.find_one({"email": email}):
            raise ProviderAuthError("email-already-in-use")

        uid = uuid.uuid4().hex
        try:
            self.collection.insert_one({
                "_id": uid,
                "email": email,
                "password_hash": generate_password_hash(password),
                "disabled": False,
                "createdAt": utc_now(),
            })
        except DuplicateKeyError as e:
            raise ProviderAuthError("email-already-in-use") from e
        return Identity(uid=uid, email=email, id_token=uuid.uuid4().hex)

    def verify(self, email, password):
        doc = self.collection.find_one({"email": email})
        if not doc or not check_password_hash(doc["password_hash"], password or ""):
            raise ProviderAuthError("invalid-credential")
        if doc.get("disabled"):
            raise ProviderAuthError("user-disabled")
        return Identity(uid=doc["_id"], email=email, id_token=uuid.uuid4().hex)

    def update_display_name(self, identity, display_name):
        self.collection.update_one({"_id": identity.uid}, {"$set": {"displayName": display_name}})

    def delete_identity(self, identity):
        self.collection.delete_one({"_id": identity.uid})

    def sign_out(self, identity):
        if identity is not None:
            identity.id_token = None

    def send_password_reset(self, email):
        result = self.collection.update_one(
            {"email": email}, {"$set": {"resetRequestedAt": utc_now()}}
        )
        if result.matched_count == 0:
            raise ProviderAuthError("invalid-credential")
        log.info("Password reset requested for local identity %s", email)


def build_identity_provider(config, db):
    backend = config.get("IDENTITY_BACKEND", "firebase")
    if backend == "local":
        return LocalIdentityProvider(db[CREDENTIALS])
    if backend == "firebase":
        return FirebaseIdentityProvider(
            config.get("FIREBASE_API_KEY"),
            base_url=config.get("FIREBASE_AUTH_URL"),
            timeout=config.get("PROVIDER_TIMEOUT", 10),
        )
    raise ValueError(f"Unknown IDENTITY_BACKEND: {backend}")
