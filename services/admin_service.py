"""
Admin side of the portal: the account list with its search/filter, the
survey dashboard numbers and the approve / reject / delete actions.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pymongo.errors import PyMongoError

from errors import NotFoundError, PartialFailure
from models import (
    NOT_SPECIFIED,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUSES,
    as_utc,
    iso,
    utc_now,
)
from services.access import next_status, require_admin
from services.formatting import account_location, account_name

log = logging.getLogger(__name__)

STATUS_FILTERS = ("all",) + STATUSES
VIEW_DASHBOARD = "dashboard"
VIEW_ACCOUNTS = "accounts"
VIEW_YOUTH_DATA = "youthData"
VIEW_RECORDS = "records"
# these views only ever list approved accounts
APPROVED_ONLY_VIEWS = (VIEW_YOUTH_DATA, VIEW_RECORDS)

GROUPED_SURVEY_FIELDS = {
    "youthAgeGroups": "youthAgeGroup",
    "educationalBackgrounds": "educationalBackground",
    "workStatuses": "workStatus",
    "youthClassifications": "youthClassification",
}
HISTOGRAM_MONTHS = 6


@dataclass
class AccountRow:
    id: str
    name: str
    email: str
    location: str
    status: str
    userType: str
    createdAt: datetime
    age: int = 0
    firstName: str = ""
    lastName: str = ""
    middleInitial: str = ""
    username: str = ""
    houseNumber: str = ""
    street: str = ""
    barangay: str = ""
    cityMunicipality: str = ""
    province: str = ""

    @classmethod
    def from_account(cls, account):
        return cls(
            id=account.id,
            name=account_name(account),
            email=account.email or "No email",
            location=account_location(account),
            status=account.status,
            userType=account.userType,
            createdAt=account.createdAt,
            age=account.age or 0,
            firstName=account.firstName,
            lastName=account.lastName,
            middleInitial=account.middleInitial,
            username=account.username,
            houseNumber=account.houseNumber,
            street=account.street,
            barangay=account.barangay,
            cityMunicipality=account.cityMunicipality,
            province=account.province,
        )

    def searchable(self):
        return (
            self.name, self.email, self.location, self.username,
            self.barangay, self.cityMunicipality, self.province,
        )

    def to_public(self):
        out = dict(self.__dict__)
        out["createdAt"] = iso(self.createdAt)
        return out


@dataclass
class DeleteResult:
    account_id: str
    surveys_deleted: int = 0
    partial_failure: Optional[PartialFailure] = field(default=None)

    def to_public(self):
        out = {
            "success": True,
            "message": "Account deleted successfully",
            "accountId": self.account_id,
            "surveysDeleted": self.surveys_deleted,
        }
        if self.partial_failure is not None:
            out["warning"] = self.partial_failure.message
        return out


# ---------- pure helpers ----------

def sort_rows(rows):
    """Pending first, then newest first."""
    newest_first = sorted(rows, key=lambda r: as_utc(r.createdAt), reverse=True)
    return sorted(newest_first, key=lambda r: r.status != STATUS_PENDING)


def account_rows(accounts):
    rows = [AccountRow.from_account(a) for a in accounts if not a.is_admin]
    return sort_rows(rows)


def account_counts(rows):
    counts = {"total": len(rows), STATUS_PENDING: 0, STATUS_APPROVED: 0, STATUS_REJECTED: 0}
    for row in rows:
        if row.status in counts:
            counts[row.status] += 1
    return counts


def filter_accounts(rows, status="all", query="", view=VIEW_ACCOUNTS):
    result = list(rows)

    if view in APPROVED_ONLY_VIEWS:
        result = [r for r in result if r.status == STATUS_APPROVED]
    elif status and status != "all":
        result = [r for r in result if r.status == status]

    if query:
        needle = query.lower()
        result = [
            r for r in result
            if any(needle in (value or "").lower() for value in r.searchable())
        ]
    return result


def month_buckets(now, months=HISTOGRAM_MONTHS):
    """(year, month) keys from `months - 1` months ago up to now's month."""
    keys = []
    for back in range(months - 1, -1, -1):
        total = now.year * 12 + (now.month - 1) - back
        keys.append((total // 12, total % 12 + 1))
    return keys


def survey_stats(surveys, now=None):
    now = as_utc(now) or utc_now()
    grouped = {name: {} for name in GROUPED_SURVEY_FIELDS}
    keys = month_buckets(now)
    monthly = dict.fromkeys(keys, 0)

    total = 0
    for survey in surveys:
        total += 1
        for name, source in GROUPED_SURVEY_FIELDS.items():
            value = survey.get(source) or NOT_SPECIFIED
            grouped[name][value] = grouped[name].get(value, 0) + 1
        created = as_utc(survey.createdAt)
        key = (created.year, created.month)
        if key in monthly:
            monthly[key] += 1

    distribution = [
        {"month": datetime(year, month, 1).strftime("%b %Y"), "surveys": monthly[(year, month)]}
        for year, month in keys
    ]
    return dict(totalSurveys=total, monthlyDistribution=distribution, **grouped)


# ---------- service ----------

class AdminService:
    def __init__(self, accounts, surveys):
        self.accounts = accounts
        self.surveys = surveys

    def list_accounts(self):
        return account_rows(self.accounts.all())

    def dashboard(self, now=None):
        stats = survey_stats(self.surveys.all(), now=now)
        stats["accounts"] = account_counts(self.list_accounts())
        return stats

    def _require(self, account_id):
        account = self.accounts.get(account_id)
        # admin accounts are not managed from the admin views
        if account is None or account.is_admin:
            raise NotFoundError("Account not found")
        return account

    def set_status(self, actor, account_id, action):
        status = next_status(actor, action)
        self._require(account_id)
        self.accounts.set_status(account_id, status)
        log.info("Account %s %s by %s", account_id, status, actor.id)
        return self.accounts.get(account_id)

    def approve(self, actor, account_id):
        return self.set_status(actor, account_id, "approve")

    def reject(self, actor, account_id):
        return self.set_status(actor, account_id, "reject")

    def delete(self, actor, context, account_id):
        require_admin(actor)
        self._require(account_id)
        if not self.accounts.delete(account_id):
            raise NotFoundError("Account not found")
        context.survey_cache.pop(account_id, None)
        result = DeleteResult(account_id=account_id)

        try:
            result.surveys_deleted = self.surveys.delete_for_user(account_id)
            log.info("Deleted account %s and %d survey(s)", account_id, result.surveys_deleted)
        except PyMongoError as e:
            failure = PartialFailure("Account deleted, but its survey data could not be removed", cause=e)
            log.error("Error deleting surveys of account %s: %s", account_id, e)
            result.partial_failure = failure
        return result

    def view_detail(self, context, account_id):
        """Account row plus its survey, fetched once per session."""
        account = self._require(account_id)
        row = AccountRow.from_account(account)

        if account_id in context.survey_cache:
            return row, context.survey_cache[account_id]

        try:
            survey = self.surveys.first_for_user(account_id)
        except PyMongoError as e:
            log.error("Error fetching survey of account %s: %s", account_id, e)
            return row, None
        context.survey_cache[account_id] = survey
        return row, survey
