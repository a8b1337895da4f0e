"""
Follow one account document and push every new snapshot to a callback.

Uses a MongoDB change stream when the server supports it and falls back to
polling the document otherwise (change streams need a replica set). The
callback receives an Account, or None once the document is gone.
"""
import logging
import threading

from pymongo.errors import OperationFailure, PyMongoError

from models import Account

log = logging.getLogger(__name__)

CHANGE_TYPES = ("insert", "update", "replace")
GONE_TYPES = ("delete", "invalidate", "drop")


def _snapshot_key(doc):
    if doc is None:
        return None
    return (doc.get("status"), doc.get("userType"), doc.get("updatedAt"))


class AccountWatcher:
    def __init__(self, collection, account_id, callback, poll_interval=2.0):
        self.collection = collection
        self.account_id = account_id
        self.callback = callback
        self.poll_interval = poll_interval
        self._stopped = threading.Event()
        self._thread = None
        self._last_key = None

    def start(self):
        doc = self.collection.find_one({"_id": self.account_id})
        self._deliver(doc)
        self._thread = threading.Thread(
            target=self._run, name=f"account-watch-{self.account_id}", daemon=True
        )
        self._thread.start()
        return self

    def stop(self, timeout=None):
        self._stopped.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def _deliver(self, doc):
        self._last_key = _snapshot_key(doc)
        self.callback(Account.from_document(doc) if doc else None)

    def _run(self):
        try:
            self._follow_changes()
            return
        except (OperationFailure, NotImplementedError) as e:
            log.info("Change streams unavailable (%s), polling account %s", e, self.account_id)
        except PyMongoError:
            log.exception("Change stream for account %s failed, polling instead", self.account_id)
        self._poll()

    def _follow_changes(self):
        pipeline = [{"$match": {"documentKey._id": self.account_id}}]
        with self.collection.watch(
            pipeline, full_document="updateLookup", max_await_time_ms=500
        ) as stream:
            while not self._stopped.is_set():
                change = stream.try_next()
                if change is None:
                    continue
                op = change.get("operationType")
                if op in CHANGE_TYPES and change.get("fullDocument"):
                    self._deliver(change["fullDocument"])
                elif op in GONE_TYPES:
                    self._deliver(None)
                    return

    def _poll(self):
        while not self._stopped.wait(self.poll_interval):
            try:
                doc = self.collection.find_one({"_id": self.account_id})
            except PyMongoError as e:
                log.warning("Polling account %s failed: %s", self.account_id, e)
                continue
            if _snapshot_key(doc) != self._last_key:
                self._deliver(doc)
            if doc is None:
                return
