import logging

from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

log = logging.getLogger(__name__)

USERS = "users"
SURVEYS = "surveys"
CREDENTIALS = "credentials"


def connect(uri, db_name, client=None):
    """Return the portal database. A ready client (e.g. mongomock) may be passed in."""
    if client is None:
        client = MongoClient(uri, serverSelectionTimeoutMS=5000, uuidRepresentation="standard")
    return client[db_name]


def ping(db):
    try:
        db.client.admin.command("ping")
        log.info("MongoDB connection successful (%s)", db.name)
        return True
    except PyMongoError as e:
        log.error("MongoDB connection failed: %s", e)
        return False


def ensure_indexes(db):
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[SURVEYS].create_index([("userId", ASCENDING)])
    db[CREDENTIALS].create_index([("email", ASCENDING)], unique=True)
