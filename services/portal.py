from database import SURVEYS, USERS
from services.admin_service import AdminService
from services.auth_service import AuthService
from services.session import SessionRegistry
from services.stores import AccountStore, SurveyStore
from services.survey_service import SurveyService
from services.watcher import AccountWatcher


class Portal:
    """Everything a request handler needs, built once per app."""

    def __init__(self, db, identity, poll_interval=2.0):
        self.db = db
        self.identity = identity
        self.poll_interval = poll_interval

        self.accounts = AccountStore(db[USERS])
        self.surveys = SurveyStore(db[SURVEYS])
        self.sessions = SessionRegistry()

        self.auth = AuthService(identity, self.accounts)
        self.admin = AdminService(self.accounts, self.surveys)
        self.survey = SurveyService(self.accounts, self.surveys)

    def watch_account(self, account_id, callback):
        watcher = AccountWatcher(
            self.db[USERS], account_id, callback, poll_interval=self.poll_interval
        )
        return watcher.start()
