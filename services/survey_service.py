import logging

from errors import NotFoundError, ValidationError
from models import REQUIRED_SURVEY_FIELDS, SURVEY_CHOICES, SURVEY_FIELDS

log = logging.getLogger(__name__)

REQUIRED_MESSAGE = "Please fill in all required fields"
INVALID_CHOICE_MESSAGE = "Please choose one of the listed options"


def _text(value):
    if value is None:
        return ""
    return str(value).strip()


def clean_answers(answers):
    """Keep known fields only, as trimmed strings."""
    answers = answers or {}
    cleaned = {name: _text(answers.get(name)) for name in SURVEY_FIELDS}

    # follow-up questions only apply to one answer of the attendance question
    attended = cleaned["attendedKKAssembly"]
    if attended != "Yes":
        cleaned["timesAttendedKKAssembly"] = ""
    if attended != "No":
        cleaned["whyNotAttended"] = ""
    return cleaned


def validate_answers(answers):
    cleaned = clean_answers(answers)
    errors = {}
    for name, message in REQUIRED_SURVEY_FIELDS.items():
        if not cleaned[name]:
            errors[name] = message
    missing = bool(errors)
    for name, options in SURVEY_CHOICES.items():
        value = cleaned[name]
        if value and value not in options:
            errors.setdefault(name, f"Invalid value for {name}")
    if errors:
        raise ValidationError(REQUIRED_MESSAGE if missing else INVALID_CHOICE_MESSAGE, errors)
    return cleaned


class SurveyService:
    def __init__(self, accounts, surveys):
        self.accounts = accounts
        self.surveys = surveys

    def get_for_user(self, account_id):
        return self.surveys.first_for_user(account_id)

    def submit(self, account_id, answers):
        """Returns (survey, created)."""
        cleaned = validate_answers(answers)

        # userId is only a soft reference, check it here
        account = self.accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account not found")

        existing = self.surveys.first_for_user(account_id)
        if existing is not None:
            survey = self.surveys.replace_answers(existing.id, cleaned)
            if survey is not None:
                log.info("Survey %s updated for account %s", survey.id, account_id)
                return survey, False
            log.warning("Survey %s vanished before update, creating a new one", existing.id)

        survey = self.surveys.create(account_id, cleaned)
        if not account.surveyCompleted:
            self.accounts.update(account_id, {"surveyCompleted": True})
        log.info("Survey %s created for account %s", survey.id, account_id)
        return survey, True
