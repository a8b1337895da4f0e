"""
Registration, login, logout, profile edits and password reset on top of an identity
provider and the `users` collection.
"""
import logging
import re

from pymongo.errors import PyMongoError

from errors import AuthenticationRequired, NotFoundError, ProviderAuthError, ValidationError
from models import STATUS_PENDING, USER_TYPE_USER, Account
from services.access import route_for

log = logging.getLogger(__name__)

MIN_AGE = 15
MAX_AGE = 30
MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DIGITS_RE = re.compile(r"^\d+$")

REQUIRED_PROFILE_FIELDS = {
    "firstName": "First name is required",
    "lastName": "Last name is required",
    "houseNumber": "House number is required",
    "street": "Street is required",
    "barangay": "Barangay is required",
    "cityMunicipality": "City/Municipality is required",
    "province": "Province is required",
}
OPTIONAL_PROFILE_FIELDS = ("middleInitial", "birthDate", "contactNumber")
# what a signed-in user may change on their own account
EDITABLE_PROFILE_FIELDS = (
    "firstName", "lastName", "middleInitial", "username", "age",
    "houseNumber", "street", "barangay", "cityMunicipality", "province",
)

FIX_FIELDS_MESSAGE = "Please fix the highlighted fields"
PASSWORD_TYPE_MESSAGE = "Password must be text"


def _text(value):
    return value.strip() if isinstance(value, str) else ""


def parse_age(value):
    """Return (age, error). Accepts ints and digit-only strings."""
    if isinstance(value, bool) or value is None or value == "":
        return None, "Age is required"
    if isinstance(value, int):
        age = value
    elif isinstance(value, str) and DIGITS_RE.match(value.strip()):
        age = int(value.strip())
    else:
        return None, "Age must be a number"
    if age < MIN_AGE:
        return age, f"Age must be at least {MIN_AGE} years old"
    if age > MAX_AGE:
        return age, f"Age must be {MAX_AGE} years old or younger"
    return age, None


def validate_profile(profile, errors):
    """Clean the profile fields, adding any problem to `errors` by field name."""
    profile = profile or {}
    cleaned = {}

    for name, message in REQUIRED_PROFILE_FIELDS.items():
        value = _text(profile.get(name))
        if not value:
            errors[name] = message
        cleaned[name] = value

    for name in OPTIONAL_PROFILE_FIELDS:
        value = _text(profile.get(name))
        if value:
            cleaned[name] = value
    if len(cleaned.get("middleInitial", "")) > 1:
        errors["middleInitial"] = "Middle initial should be 1 character"

    username = _text(profile.get("username"))
    if not username:
        errors["username"] = "Username is required"
    elif len(username) < MIN_USERNAME_LENGTH:
        errors["username"] = f"Username must be at least {MIN_USERNAME_LENGTH} characters"
    cleaned["username"] = username

    age, age_error = parse_age(profile.get("age"))
    if age_error:
        errors["age"] = age_error
    cleaned["age"] = age
    return cleaned


def validate_registration(email, password, profile, confirm_password=None):
    """Return the cleaned profile or raise ValidationError with every field error."""
    errors = {}

    email = _text(email).lower()
    if not email:
        errors["email"] = "Email is required"
    elif "@" not in email:
        errors["email"] = "Email must contain @"
    elif not EMAIL_RE.match(email):
        errors["email"] = "Please enter a valid email format"

    cleaned = validate_profile(profile, errors)

    if not password:
        errors["password"] = "Password is required"
    elif not isinstance(password, str):
        errors["password"] = PASSWORD_TYPE_MESSAGE
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if confirm_password is not None and confirm_password != password:
        errors["confirmPassword"] = "Passwords do not match"

    if errors:
        raise ValidationError(FIX_FIELDS_MESSAGE, errors)
    return email, cleaned


class AuthService:
    def __init__(self, identity, accounts):
        self.identity = identity
        self.accounts = accounts

    def register(self, context, email, password, profile, confirm_password=None):
        email, cleaned = validate_registration(email, password, profile, confirm_password)

        identity = self.identity.create_identity(email, password)
        display_name = f"{cleaned['firstName']} {cleaned['lastName']}"
        try:
            self.identity.update_display_name(identity, display_name)
        except ProviderAuthError as e:
            log.warning("Could not set display name for %s: %s", identity.uid, e)

        account = Account(
            id=identity.uid,
            email=email,
            userType=USER_TYPE_USER,
            status=STATUS_PENDING,
            surveyCompleted=False,
            **cleaned,
        )
        account.updatedAt = account.createdAt
        try:
            self.accounts.create(account)
        except PyMongoError:
            log.exception("Could not store account for %s, removing identity", identity.uid)
            self._discard_identity(identity)
            raise

        log.info("Registered account %s (%s), awaiting approval", account.id, email)
        context.sign_in(identity, account)
        return account

    def _discard_identity(self, identity):
        try:
            self.identity.delete_identity(identity)
        except ProviderAuthError as e:
            log.error("Orphaned identity %s left with provider: %s", identity.uid, e)

    def login(self, context, email, password):
        email = _text(email).lower()
        errors = {}
        if not email:
            errors["email"] = "Email is required"
        if not password:
            errors["password"] = "Password is required"
        elif not isinstance(password, str):
            errors["password"] = PASSWORD_TYPE_MESSAGE
        if errors:
            raise ValidationError("Please enter your email and password", errors)

        identity = self.identity.verify(email, password)
        account = self.accounts.get(identity.uid)
        if account is None:
            log.warning("Identity %s has no account document, signing out", identity.uid)
            self._sign_out_quietly(identity)
            raise NotFoundError("User data not found. Please contact support.")

        context.sign_in(identity, account)
        log.info("Login for %s routed to %s", account.id, route_for(account.status, account.userType))
        return account

    def logout(self, context):
        if context is None or not context.authenticated:
            return
        self._sign_out_quietly(context.identity)
        context.sign_out()

    def _sign_out_quietly(self, identity):
        try:
            self.identity.sign_out(identity)
        except ProviderAuthError as e:
            log.warning("Sign-out failed for %s: %s", identity.uid, e)

    def request_password_reset(self, email):
        """Always succeeds from the caller's point of view."""
        email = _text(email).lower()
        if not email:
            raise ValidationError("Email is required", {"email": "Email is required"})
        try:
            self.identity.send_password_reset(email)
            log.info("Password reset email requested")
        except ProviderAuthError as e:
            log.info("Password reset not sent: %s", e.code)

    def update_profile(self, context, profile):
        """
        Save the signed-in user's own profile edits.

        Only EDITABLE_PROFILE_FIELDS are written; email, status and userType
        in the input are ignored. Runs the same field checks as registration.
        """
        if not context.authenticated:
            raise AuthenticationRequired()
        errors = {}
        cleaned = validate_profile(profile, errors)
        if errors:
            raise ValidationError(FIX_FIELDS_MESSAGE, errors)

        changes = {name: cleaned.get(name, "") for name in EDITABLE_PROFILE_FIELDS}
        if not self.accounts.update(context.uid, changes):
            raise NotFoundError("User data not found. Please contact support.")
        log.info("Profile updated for account %s", context.uid)
        return self.refresh(context)

    def refresh(self, context):
        """Re-read the signed-in account, e.g. after an admin changed it."""
        if not context.authenticated:
            return None
        account = self.accounts.get(context.uid)
        context.update_account(account)
        return account
