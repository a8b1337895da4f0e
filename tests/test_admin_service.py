from datetime import datetime, timedelta, timezone

import pytest
from pymongo.errors import PyMongoError

from conftest import make_account, make_answers
from errors import AccessDeniedError, NotFoundError
from models import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED, USER_TYPE_ADMIN, Survey
from services.admin_service import (
    VIEW_RECORDS,
    VIEW_YOUTH_DATA,
    AccountRow,
    AdminService,
    account_counts,
    filter_accounts,
    month_buckets,
    survey_stats,
)
from services.stores import SurveyStore

UTC = timezone.utc


@pytest.fixture
def service(accounts, surveys):
    return AdminService(accounts, surveys)


def row(**overrides):
    data = dict(
        id="u", name="Juan D. Cruz", email="juan@example.com",
        location="12 Rizal St, San Roque, Marikina, Metro Manila",
        status=STATUS_PENDING, userType="user", createdAt=datetime(2026, 1, 1, tzinfo=UTC),
        username="juanc", barangay="San Roque", cityMunicipality="Marikina", province="Metro Manila",
    )
    data.update(overrides)
    return AccountRow(**data)


# ---------- account list ----------

def test_list_hides_admins_and_sorts_pending_first(service, accounts, admin):
    base = datetime(2026, 5, 1, tzinfo=UTC)
    old_pending = make_account(accounts, status=STATUS_PENDING, createdAt=base)
    new_approved = make_account(accounts, status=STATUS_APPROVED, createdAt=base + timedelta(days=3))
    new_pending = make_account(accounts, status=STATUS_PENDING, createdAt=base + timedelta(days=2))
    old_rejected = make_account(accounts, status=STATUS_REJECTED, createdAt=base - timedelta(days=1))

    ids = [r.id for r in service.list_accounts()]

    assert admin.id not in ids
    assert ids == [new_pending.id, old_pending.id, new_approved.id, old_rejected.id]


def test_rows_carry_derived_name_and_location(service, accounts):
    make_account(accounts, firstName="Juan", middleInitial="D", lastName="Cruz",
                 houseNumber="", street="Rizal St", barangay="", cityMunicipality="Marikina", province="")
    (only,) = service.list_accounts()
    assert only.name == "Juan D. Cruz"
    assert only.location == "Rizal St, Marikina"


def test_account_counts():
    rows = [row(status=STATUS_PENDING), row(status=STATUS_APPROVED), row(status=STATUS_APPROVED)]
    assert account_counts(rows) == {"total": 3, "pending": 1, "approved": 2, "rejected": 0}


# ---------- search / filter ----------

def test_empty_query_and_all_status_returns_everything():
    rows = [row(id="a"), row(id="b", status=STATUS_REJECTED)]
    assert filter_accounts(rows, status="all", query="") == rows


def test_query_matches_case_insensitively_across_fields():
    rows = [
        row(id="name", name="Maria Santos", email="m@x.com", location="", username="", barangay="",
            cityMunicipality="", province=""),
        row(id="town", name="Pedro", email="p@x.com", location="", username="", barangay="",
            cityMunicipality="Antipolo", province=""),
        row(id="none", name="Jose", email="j@x.com", location="", username="", barangay="",
            cityMunicipality="", province=""),
    ]
    assert [r.id for r in filter_accounts(rows, query="SANTOS")] == ["name"]
    assert [r.id for r in filter_accounts(rows, query="antip")] == ["town"]
    assert filter_accounts(rows, query="zzz") == []


def test_filtered_results_are_a_subset_containing_the_query():
    rows = [
        row(id=str(i), name=name, email=f"{name.lower()}@x.com", status=status)
        for i, (name, status) in enumerate([
            ("Ana", STATUS_PENDING), ("Ben", STATUS_APPROVED), ("Carla", STATUS_REJECTED), ("Dan", STATUS_APPROVED),
        ])
    ]
    for query in ("a", "AN", "x.com", "marikina", "nope"):
        result = filter_accounts(rows, query=query)
        assert all(r in rows for r in result)
        for r in result:
            assert any(query.lower() in v.lower() for v in r.searchable())


def test_status_filter():
    rows = [row(id="p"), row(id="a", status=STATUS_APPROVED), row(id="r", status=STATUS_REJECTED)]
    assert [r.id for r in filter_accounts(rows, status=STATUS_REJECTED)] == ["r"]


@pytest.mark.parametrize("view", [VIEW_YOUTH_DATA, VIEW_RECORDS])
def test_youth_data_and_records_views_are_approved_only(view):
    rows = [row(id="p"), row(id="a", status=STATUS_APPROVED), row(id="r", status=STATUS_REJECTED)]
    assert [r.id for r in filter_accounts(rows, status="all", view=view)] == ["a"]
    # the status control does not widen these views
    assert [r.id for r in filter_accounts(rows, status=STATUS_PENDING, view=view)] == ["a"]


# ---------- status changes ----------

def test_approve_and_reject_are_idempotent(service, accounts, admin):
    account = make_account(accounts)

    service.approve(admin, account.id)
    assert service.approve(admin, account.id).status == STATUS_APPROVED
    assert accounts.get(account.id).status == STATUS_APPROVED

    service.reject(admin, account.id)
    service.reject(admin, account.id)
    assert accounts.get(account.id).status == STATUS_REJECTED
    assert accounts.get(account.id).updatedAt is not None


def test_status_change_requires_admin(service, accounts):
    actor = make_account(accounts, status=STATUS_APPROVED)
    target = make_account(accounts)
    with pytest.raises(AccessDeniedError):
        service.approve(actor, target.id)
    assert accounts.get(target.id).status == STATUS_PENDING


def test_pending_admin_cannot_approve(service, accounts):
    actor = make_account(accounts, userType=USER_TYPE_ADMIN, status=STATUS_PENDING)
    target = make_account(accounts)
    with pytest.raises(AccessDeniedError):
        service.approve(actor, target.id)


def test_approve_unknown_account(service, admin):
    with pytest.raises(NotFoundError):
        service.approve(admin, "missing")


# ---------- delete ----------

def test_delete_cascades_to_surveys(service, accounts, surveys, admin, context):
    account = make_account(accounts)
    other = make_account(accounts)
    surveys.create(account.id, make_answers())
    surveys.create(account.id, make_answers())
    surveys.create(other.id, make_answers())

    result = service.delete(admin, context, account.id)

    assert result.surveys_deleted == 2
    assert result.partial_failure is None
    assert accounts.get(account.id) is None
    assert surveys.for_user(account.id) == []
    assert len(surveys.for_user(other.id)) == 1


def test_delete_reports_success_when_survey_cleanup_fails(accounts, db, admin, context):
    class BrokenSurveys(SurveyStore):
        def delete_for_user(self, user_id):
            raise PyMongoError("connection reset")

    service = AdminService(accounts, BrokenSurveys(db["surveys"]))
    account = make_account(accounts)

    result = service.delete(admin, context, account.id)

    assert accounts.get(account.id) is None
    assert result.partial_failure is not None
    payload = result.to_public()
    assert payload["success"] is True
    assert "warning" in payload


def test_delete_unknown_account(service, admin, context):
    with pytest.raises(NotFoundError):
        service.delete(admin, context, "missing")


def test_delete_requires_admin(service, accounts, context):
    actor = make_account(accounts, status=STATUS_APPROVED)
    target = make_account(accounts)
    with pytest.raises(AccessDeniedError):
        service.delete(actor, context, target.id)
    assert accounts.get(target.id) is not None


# ---------- detail view ----------

def test_view_detail_fetches_survey_once_per_session(service, accounts, surveys, context):
    account = make_account(accounts)
    created = surveys.create(account.id, make_answers())

    _, survey = service.view_detail(context, account.id)
    assert survey.id == created.id

    surveys.delete_for_user(account.id)
    _, cached = service.view_detail(context, account.id)
    assert cached.id == created.id


def test_view_detail_caches_missing_survey(service, accounts, surveys, context):
    account = make_account(accounts)
    row_, survey = service.view_detail(context, account.id)
    assert survey is None
    assert context.survey_cache == {account.id: None}
    assert row_.id == account.id


# ---------- dashboard numbers ----------

def survey_at(created, **answers):
    return Survey(userId="u", answers=answers, createdAt=created)


def test_month_buckets_cross_year_boundary():
    assert month_buckets(datetime(2026, 2, 10, tzinfo=UTC)) == [
        (2025, 9), (2025, 10), (2025, 11), (2025, 12), (2026, 1), (2026, 2),
    ]


def test_monthly_histogram_over_eight_months():
    now = datetime(2026, 10, 19, 9, 30, tzinfo=UTC)
    surveys = []
    # March 2026 .. October 2026, with 1..8 submissions per month
    for offset, month in enumerate(range(3, 11)):
        for day in range(offset + 1):
            surveys.append(survey_at(datetime(2026, month, 1 + day, 12, tzinfo=UTC)))
    # edges of October
    surveys.append(survey_at(datetime(2026, 10, 31, 23, 59, tzinfo=UTC)))
    surveys.append(survey_at(datetime(2026, 9, 30, 23, 59, 59, tzinfo=UTC)))

    distribution = survey_stats(surveys, now=now)["monthlyDistribution"]

    assert [b["month"] for b in distribution] == [
        "May 2026", "Jun 2026", "Jul 2026", "Aug 2026", "Sep 2026", "Oct 2026",
    ]
    assert [b["surveys"] for b in distribution] == [3, 4, 5, 6, 8, 9]


def test_grouped_counts_use_not_specified_for_blanks():
    surveys = [
        survey_at(datetime(2026, 10, 1, tzinfo=UTC), youthAgeGroup="Core Youth (18-24 yrs.old)",
                  workStatus="Employed", educationalBackground="College Graduate",
                  youthClassification="Working Youth"),
        survey_at(datetime(2026, 10, 2, tzinfo=UTC), youthAgeGroup="Core Youth (18-24 yrs.old)"),
        survey_at(datetime(2026, 10, 3, tzinfo=UTC), youthAgeGroup="Child Youth (15-17 yrs.old)"),
    ]

    stats = survey_stats(surveys, now=datetime(2026, 10, 19, tzinfo=UTC))

    assert stats["totalSurveys"] == 3
    assert stats["youthAgeGroups"] == {"Core Youth (18-24 yrs.old)": 2, "Child Youth (15-17 yrs.old)": 1}
    assert stats["workStatuses"] == {"Employed": 1, "Not Specified": 2}
    assert stats["educationalBackgrounds"]["Not Specified"] == 2
    assert stats["youthClassifications"] == {"Working Youth": 1, "Not Specified": 2}


def test_dashboard_includes_account_counts(service, accounts, surveys, admin):
    account = make_account(accounts, status=STATUS_APPROVED)
    make_account(accounts)
    surveys.create(account.id, make_answers())

    stats = service.dashboard()

    assert stats["totalSurveys"] == 1
    assert stats["accounts"] == {"total": 2, "pending": 1, "approved": 1, "rejected": 0}
    assert stats["monthlyDistribution"][-1]["surveys"] == 1


@pytest.mark.parametrize("target", ["self", "other"])
def test_admin_accounts_are_out_of_reach(service, accounts, admin, context, target):
    other = make_account(accounts, userType=USER_TYPE_ADMIN, status=STATUS_APPROVED)
    account_id = admin.id if target == "self" else other.id

    with pytest.raises(NotFoundError):
        service.reject(admin, account_id)
    with pytest.raises(NotFoundError):
        service.delete(admin, context, account_id)
    with pytest.raises(NotFoundError):
        service.view_detail(context, account_id)

    assert accounts.get(account_id).status == STATUS_APPROVED


def test_rows_tolerate_string_timestamps(service, accounts, db):
    account = make_account(accounts)
    db["users"].update_one({"_id": account.id}, {"$set": {"createdAt": "2026-03-01T08:00:00Z", "updatedAt": "n/a"}})

    (only,) = service.list_accounts()
    assert only.createdAt == datetime(2026, 3, 1, 8, tzinfo=UTC)
    assert accounts.get(account.id).updatedAt is None
