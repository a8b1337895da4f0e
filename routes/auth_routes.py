import json
import logging
import queue

from flask import Blueprint, Response, jsonify, session, stream_with_context

from errors import ValidationError
from models import STATUS_APPROVED
from services.access import is_waiting, route_for
from routes.guards import (
    current_context,
    json_body,
    keep_context,
    login_required,
    portal,
    sign_in_context,
)

log = logging.getLogger(__name__)

auth_bp = Blueprint("auth_bp", __name__)

PROFILE_KEYS = (
    "firstName", "lastName", "middleInitial", "username", "age",
    "houseNumber", "street", "barangay", "cityMunicipality", "province",
    "birthDate", "contactNumber",
)
KEEPALIVE_SECONDS = 15


def account_payload(account, **extra):
    payload = {
        "success": True,
        "account": account.to_public(),
        "view": route_for(account.status, account.userType),
    }
    payload.update(extra)
    return payload


def status_event(account):
    if account is None:
        return {"status": None, "userType": None, "view": "login", "reauthenticate": True, "deleted": True}
    return {
        "status": account.status,
        "userType": account.userType,
        "view": route_for(account.status, account.userType),
        # approval never switches views by itself, a fresh login is required
        "reauthenticate": account.status == STATUS_APPROVED,
        "deleted": False,
    }


def status_events(ctx, watch, keepalive=KEEPALIVE_SECONDS):
    """
    Server-sent events for the waiting views.

    The watcher writes into the session context and the stream listens to the
    context, so both are torn down together when the client goes away.
    """
    updates = queue.Queue()
    unsubscribe = ctx.subscribe(updates.put)
    watcher = watch(ctx.uid, ctx.update_account)
    try:
        while True:
            try:
                account = updates.get(timeout=keepalive)
            except queue.Empty:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {json.dumps(status_event(account))}\n\n"
            if account is None:
                break
    finally:
        watcher.stop(timeout=1)
        unsubscribe()


# ----------------- REGISTER -----------------
@auth_bp.route("/auth/register", methods=["POST"])
def register():
    data = json_body()
    ctx = sign_in_context()
    if ctx.authenticated:
        portal().auth.logout(ctx)

    profile = {k: data.get(k) for k in PROFILE_KEYS if k in data}
    account = portal().auth.register(
        ctx,
        data.get("email"),
        data.get("password"),
        profile,
        confirm_password=data.get("confirmPassword"),
    )
    keep_context(ctx)
    return jsonify(account_payload(
        account, message="Registration successful. Your account is awaiting approval."
    )), 201


# ----------------- LOGIN -----------------
@auth_bp.route("/auth/login", methods=["POST"])
def login():
    data = json_body()
    ctx = sign_in_context()
    account = portal().auth.login(ctx, data.get("email"), data.get("password"))
    keep_context(ctx)
    return jsonify(account_payload(account, message="Login successful")), 200


# ----------------- LOGOUT -----------------
@auth_bp.route("/auth/logout", methods=["POST"])
def logout():
    ctx = current_context()
    if ctx is not None:
        portal().auth.logout(ctx)
        portal().sessions.discard(ctx.sid)
    session.clear()
    return jsonify({"success": True, "message": "Logged out"}), 200


# ----------------- PASSWORD RESET -----------------
@auth_bp.route("/auth/password-reset", methods=["POST"])
def password_reset():
    data = json_body()
    portal().auth.request_password_reset(data.get("email"))
    return jsonify({
        "success": True,
        "message": "If an account exists for this email, a password reset link has been sent.",
    }), 200


# ----------------- CURRENT ACCOUNT -----------------
@auth_bp.route("/auth/me", methods=["GET"])
@login_required
def me():
    return jsonify(account_payload(current_context().account)), 200


@auth_bp.route("/auth/me", methods=["PUT"])
@login_required
def update_me():
    data = json_body()
    account = portal().auth.update_profile(current_context(), data)
    return jsonify(account_payload(account, message="Profile updated successfully!")), 200


# ----------------- LIVE STATUS -----------------
@auth_bp.route("/auth/status/stream", methods=["GET"])
@login_required
def status_stream():
    ctx = current_context()
    if not is_waiting(ctx.account.status):
        raise ValidationError("Status updates are only available while awaiting approval")

    events = status_events(ctx, portal().watch_account)
    return Response(
        stream_with_context(events),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
