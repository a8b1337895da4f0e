"""
Status-driven access control.

An account moves pending -> approved | rejected, and only an approved admin
can move it. Where a signed-in client should land is a pure function of the
stored status and user type.
"""
from errors import AccessDeniedError, ValidationError
from models import (
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    USER_TYPE_ADMIN,
)

VIEW_PENDING = "pending-approval"
VIEW_REJECTED = "rejected"
VIEW_ADMIN = "admin-dashboard"
VIEW_USER = "user-dashboard"

ACTIONS = {
    "approve": STATUS_APPROVED,
    "reject": STATUS_REJECTED,
}


def route_for(status, user_type):
    if status == STATUS_APPROVED:
        return VIEW_ADMIN if user_type == USER_TYPE_ADMIN else VIEW_USER
    if status == STATUS_REJECTED:
        return VIEW_REJECTED
    # anything else, including a missing status, waits for approval
    return VIEW_PENDING


def can_administer(account):
    return (
        account is not None
        and account.userType == USER_TYPE_ADMIN
        and account.status == STATUS_APPROVED
    )


def has_dashboard_access(account):
    return account is not None and account.status == STATUS_APPROVED


def require_admin(actor):
    if not can_administer(actor):
        raise AccessDeniedError()
    return actor


def next_status(actor, action):
    """Status an admin action leads to. Applying it twice gives the same result."""
    require_admin(actor)
    try:
        return ACTIONS[action]
    except KeyError:
        raise ValidationError(f"Unknown action: {action}") from None


def is_waiting(status):
    return status in (STATUS_PENDING, STATUS_REJECTED)
