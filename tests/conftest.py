"""
Youth Survey Portal - Test Configuration and Fixtures
"""
import os
import uuid

import mongomock
import pytest
from faker import Faker

os.environ["APP_ENV"] = "testing"

from app import create_app
from config import TestingConfig
from database import CREDENTIALS, SURVEYS, USERS, ensure_indexes
from models import (
    STATUS_APPROVED,
    STATUS_PENDING,
    USER_TYPE_ADMIN,
    USER_TYPE_USER,
    Account,
)
from services.identity import LocalIdentityProvider
from services.session import SessionContext
from services.stores import AccountStore, SurveyStore

fake = Faker()

ADMIN_PASSWORD = "adminpass123"


def make_profile(**overrides):
    profile = {
        "firstName": fake.first_name(),
        "lastName": fake.last_name(),
        "middleInitial": "D",
        "username": f"youth{fake.random_int(100, 999)}",
        "age": 20,
        "houseNumber": str(fake.random_int(1, 300)),
        "street": "Rizal St",
        "barangay": "San Roque",
        "cityMunicipality": "Marikina",
        "province": "Metro Manila",
    }
    profile.update(overrides)
    return profile


def make_answers(**overrides):
    answers = {
        "lastName": fake.last_name(),
        "firstName": fake.first_name(),
        "middleName": "",
        "suffix": "",
        "street": "Rizal St",
        "barangay": "San Roque",
        "province": "Metro Manila",
        "cityMunicipality": "Marikina",
        "sex": "Female",
        "age": "19",
        "birthday": "2007-03-14",
        "emailAddress": fake.email(),
        "contactNumber": "09171234567",
        "facebookAccount": "",
        "civilStatus": "Single",
        "youthClassification": "In School Youth",
        "youthAgeGroup": "Core Youth (18-24 yrs.old)",
        "educationalBackground": "College Level",
        "workStatus": "Unemployed",
        "gender": "Female",
        "registeredSKVoter": "Yes",
        "registeredNationalVoter": "No",
        "attendedKKAssembly": "Yes",
        "timesAttendedKKAssembly": "1-2 times",
        "whyNotAttended": "",
        "votedLastElection": "No",
        "preferredSports": "Volleyball",
    }
    answers.update(overrides)
    return answers


def make_account(accounts, **overrides):
    data = {
        "id": uuid.uuid4().hex,
        "email": fake.unique.email(),
        "firstName": fake.first_name(),
        "lastName": fake.last_name(),
        "username": f"youth{fake.random_int(100, 999)}",
        "age": 21,
        "houseNumber": "7",
        "street": "Mabini St",
        "barangay": "Poblacion",
        "cityMunicipality": "Taytay",
        "province": "Rizal",
        "userType": USER_TYPE_USER,
        "status": STATUS_PENDING,
    }
    data.update(overrides)
    return accounts.create(Account(**data))


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def db(mongo_client):
    database = mongo_client[TestingConfig.DB_NAME]
    ensure_indexes(database)
    return database


@pytest.fixture
def accounts(db):
    return AccountStore(db[USERS])


@pytest.fixture
def surveys(db):
    return SurveyStore(db[SURVEYS])


@pytest.fixture
def identity(db):
    return LocalIdentityProvider(db[CREDENTIALS])


@pytest.fixture
def context():
    return SessionContext()


@pytest.fixture
def admin(identity, accounts):
    """An approved admin with a real local identity."""
    created = identity.create_identity("admin@portal.test", ADMIN_PASSWORD)
    return accounts.create(Account(
        id=created.uid,
        email="admin@portal.test",
        firstName="Ana",
        lastName="Reyes",
        username="sk_admin",
        userType=USER_TYPE_ADMIN,
        status=STATUS_APPROVED,
    ))


@pytest.fixture
def app(mongo_client, db, identity):
    return create_app("testing", mongo_client=mongo_client, identity=identity)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app, admin):
    c = app.test_client()
    resp = c.post("/auth/login", json={"email": admin.email, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return c
