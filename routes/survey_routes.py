from flask import Blueprint, jsonify

from models import REQUIRED_SURVEY_FIELDS, SURVEY_CHOICES, SURVEY_FIELDS
from routes.guards import approved_required, current_context, json_body, portal

survey_bp = Blueprint("survey_bp", __name__)


# ----------------- FORM OPTIONS -----------------
@survey_bp.route("/surveys/options", methods=["GET"])
def survey_options():
    return jsonify({
        "fields": list(SURVEY_FIELDS),
        "required": list(REQUIRED_SURVEY_FIELDS),
        "choices": {k: list(v) for k, v in SURVEY_CHOICES.items()},
    }), 200


# ----------------- GET own survey -----------------
@survey_bp.route("/surveys/me", methods=["GET"])
@approved_required
def get_my_survey():
    survey = portal().survey.get_for_user(current_context().uid)
    return jsonify({
        "success": True,
        "survey": survey.to_public() if survey else None,
    }), 200


# ----------------- SUBMIT / EDIT own survey -----------------
@survey_bp.route("/surveys/me", methods=["POST", "PUT"])
@approved_required
def submit_my_survey():
    data = json_body()
    survey, created = portal().survey.submit(current_context().uid, data)
    if created:
        return jsonify({
            "success": True,
            "message": "Survey submitted successfully.",
            "survey": survey.to_public(),
        }), 201
    return jsonify({
        "success": True,
        "message": "Survey updated",
        "survey": survey.to_public(),
    }), 200
