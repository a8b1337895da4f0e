"""
Per-session state, passed explicitly to whoever needs it.

A SessionContext holds the signed-in identity, the last known account
snapshot and small per-session caches. Views that care about changes
register a callback with subscribe() and call the returned function when
they go away.
"""
import logging
import threading
import uuid

log = logging.getLogger(__name__)


class SessionContext:
    def __init__(self, sid=None):
        self.sid = sid or uuid.uuid4().hex
        self.identity = None
        self.account = None
        # account id -> Survey or None, filled by the admin detail view
        self.survey_cache = {}
        self._listeners = []
        self._lock = threading.Lock()

    @property
    def authenticated(self):
        return self.identity is not None

    @property
    def uid(self):
        return self.identity.uid if self.identity else None

    def sign_in(self, identity, account):
        with self._lock:
            self.identity = identity
            self.account = account
            self.survey_cache.clear()
        self._notify()

    def sign_out(self):
        with self._lock:
            self.identity = None
            self.account = None
            self.survey_cache.clear()
        self._notify()

    def update_account(self, account):
        """Replace the local snapshot. Last write wins."""
        with self._lock:
            self.account = account
        self._notify()

    def subscribe(self, callback):
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def _notify(self):
        with self._lock:
            listeners = list(self._listeners)
            account = self.account
        for callback in listeners:
            try:
                callback(account)
            except Exception:
                log.exception("Session listener failed for session %s", self.sid)


class SessionRegistry:
    """In-process map of session id -> SessionContext."""

    def __init__(self):
        self._sessions = {}
        self._lock = threading.Lock()

    def add(self, ctx):
        with self._lock:
            self._sessions[ctx.sid] = ctx
        return ctx

    def get(self, sid):
        if not sid:
            return None
        with self._lock:
            return self._sessions.get(sid)

    def discard(self, sid):
        with self._lock:
            return self._sessions.pop(sid, None)

    def __len__(self):
        with self._lock:
            return len(self._sessions)
