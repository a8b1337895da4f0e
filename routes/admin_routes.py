from flask import Blueprint, jsonify, request

from errors import ValidationError
from services.admin_service import (
    STATUS_FILTERS,
    VIEW_ACCOUNTS,
    account_counts,
    filter_accounts,
)
from routes.guards import admin_required, current_context, portal

admin_bp = Blueprint("admin_bp", __name__)


# ----------------- LIST accounts -----------------
@admin_bp.route("/admin/accounts", methods=["GET"])
@admin_required
def list_accounts():
    status = request.args.get("status", "all")
    query = request.args.get("q", "")
    view = request.args.get("view", VIEW_ACCOUNTS)
    if status not in STATUS_FILTERS:
        raise ValidationError("Validation failed", {
            "status": f"status must be one of {'/'.join(STATUS_FILTERS)}."
        })

    rows = portal().admin.list_accounts()
    filtered = filter_accounts(rows, status=status, query=query, view=view)
    return jsonify({
        "success": True,
        "accounts": [r.to_public() for r in filtered],
        "count": len(filtered),
        "counts": account_counts(rows),
    }), 200


# ----------------- account DETAIL -----------------
@admin_bp.route("/admin/accounts/<string:account_id>", methods=["GET"])
@admin_required
def get_account(account_id):
    row, survey = portal().admin.view_detail(current_context(), account_id)
    return jsonify({
        "success": True,
        "account": row.to_public(),
        "survey": survey.to_public() if survey else None,
    }), 200


# ----------------- APPROVE / REJECT -----------------
@admin_bp.route("/admin/accounts/<string:account_id>/approve", methods=["POST"])
@admin_required
def approve_account(account_id):
    account = portal().admin.approve(current_context().account, account_id)
    return jsonify({
        "success": True,
        "message": "Account approved",
        "account": account.to_public(),
    }), 200


@admin_bp.route("/admin/accounts/<string:account_id>/reject", methods=["POST"])
@admin_required
def reject_account(account_id):
    account = portal().admin.reject(current_context().account, account_id)
    return jsonify({
        "success": True,
        "message": "Account rejected",
        "account": account.to_public(),
    }), 200


# ----------------- DELETE -----------------
@admin_bp.route("/admin/accounts/<string:account_id>", methods=["DELETE"])
@admin_required
def delete_account(account_id):
    ctx = current_context()
    result = portal().admin.delete(ctx.account, ctx, account_id)
    return jsonify(result.to_public()), 200


# ----------------- DASHBOARD -----------------
@admin_bp.route("/admin/dashboard", methods=["GET"])
@admin_required
def dashboard():
    stats = portal().admin.dashboard()
    return jsonify(dict(stats, success=True)), 200
