from functools import wraps

from flask import current_app, g, request, session

from errors import AccessDeniedError, AuthenticationRequired, ValidationError
from services.access import has_dashboard_access, require_admin
from services.session import SessionContext


def portal():
    return current_app.extensions["portal"]


def current_context():
    """SessionContext of this browser session, or None when there is none yet."""
    ctx = g.get("portal_context")
    if ctx is None:
        ctx = portal().sessions.get(session.get("sid"))
    g.portal_context = ctx
    return ctx


def sign_in_context():
    """
    Context to sign in with. A new one stays out of the registry until
    keep_context() is called, so failed attempts leave nothing behind.
    """
    ctx = current_context()
    return ctx if ctx is not None else SessionContext()


def keep_context(ctx):
    portal().sessions.add(ctx)
    session["sid"] = ctx.sid
    g.portal_context = ctx


def signed_in_context():
    ctx = current_context()
    if ctx is None or not ctx.authenticated:
        raise AuthenticationRequired()

    # status may have been changed by an admin since login
    account = portal().auth.refresh(ctx)
    if account is None:
        portal().auth.logout(ctx)
        portal().sessions.discard(ctx.sid)
        session.clear()
        raise AuthenticationRequired("Your account is no longer available")
    return ctx


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        signed_in_context()
        return view(*args, **kwargs)

    return wrapped


def approved_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        ctx = signed_in_context()
        if not has_dashboard_access(ctx.account):
            raise AccessDeniedError("Your account has not been approved")
        return view(*args, **kwargs)

    return wrapped


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        ctx = signed_in_context()
        require_admin(ctx.account)
        return view(*args, **kwargs)

    return wrapped


def json_body():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Missing JSON body")
    return data
