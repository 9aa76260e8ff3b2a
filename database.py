"""
database.py - MongoDB connection handling.

One `MongoConnector` is created by the process entry point (see main.py) and
shared through `app.state.connector`. The first call to `connect()` opens the
connection; concurrent first callers wait on that same attempt instead of
opening their own.
"""

import threading
from concurrent.futures import Future
from typing import Callable, List, Optional

from fastapi import Request
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

import config
from errors import BadRequestError
from logger import get_logger

log = get_logger(__name__)

ClientFactory = Callable[..., MongoClient]


INDEXES = [
    ("users", [("email", ASCENDING)], {"unique": True}),
    ("categories", [("slug", ASCENDING)], {"unique": True}),
    ("contents", [("slug", ASCENDING)], {"unique": True}),
    ("contents", [("type", ASCENDING), ("status", ASCENDING)], {}),
    ("courses", [("slug", ASCENDING)], {"unique": True}),
]


def ensure_indexes(db: Database) -> List[str]:
    """Create the unique and listing indexes the document models rely on.

    A failed build (e.g. existing duplicate slugs) is logged and skipped so
    the connection stays usable. Returns the names of the indexes that failed.
    """
    failed = []
    for collection, keys, options in INDEXES:
        try:
            db[collection].create_index(keys, **options)
        except PyMongoError as e:
            name = "_".join(f"{field}_{direction}" for field, direction in keys)
            log.error(
                "Index build failed",
                extra={"props": {"collection": collection, "index": name, "error": str(e)}},
            )
            failed.append(f"{collection}.{name}")
    return failed


class MongoConnector:
    """Lazily opens one MongoDB connection and hands out the database handle.

    Args:
        uri: MongoDB connection string.
        db_name: database used when the URI does not name one.
        client_factory: callable building the client, `MongoClient` by default.
    """

    def __init__(
        self,
        uri: str,
        db_name: str,
        client_factory: ClientFactory = MongoClient,
        server_selection_timeout_ms: int = config.MONGO_SERVER_SELECTION_TIMEOUT_MS,
    ):
        self._uri = uri
        self._db_name = db_name
        self._client_factory = client_factory
        self._timeout_ms = server_selection_timeout_ms

        self._lock = threading.Lock()
        self._client: Optional[MongoClient] = None
        self._db: Optional[Database] = None
        self._pending: Optional[Future] = None

    @property
    def connected(self) -> bool:
        return self._db is not None

    def connect(self) -> Database:
        """Return the shared database handle, connecting on first use.

        If the attempt fails every caller waiting on it gets the error and the
        next call starts a fresh attempt.
        """
        if self._db is not None:
            return self._db

        with self._lock:
            if self._db is not None:
                return self._db
            owner = self._pending is None
            if owner:
                self._pending = Future()
            attempt = self._pending

        if not owner:
            return attempt.result()

        try:
            db = self._open()
        except BaseException as exc:
            with self._lock:
                self._pending = None
            attempt.set_exception(exc)
            raise

        with self._lock:
            self._db = db
            self._pending = None
        attempt.set_result(db)
        return db

    def _open(self) -> Database:
        log.info("Connecting to MongoDB", extra={"props": {"database": self._db_name}})
        client = self._client_factory(self._uri, serverSelectionTimeoutMS=self._timeout_ms, tz_aware=True)
        try:
            # MongoClient connects in the background; force a round trip so a
            # dead server fails this attempt instead of a later query
            client.server_info()
            db = client.get_default_database(default=self._db_name)
        except PyMongoError as e:
            log.error("MongoDB connection failed", extra={"props": {"error": str(e)}})
            client.close()
            raise
        ensure_indexes(db)
        self._client = client
        log.info("MongoDB connected", extra={"props": {"database": db.name}})
        return db

    def close(self) -> None:
        with self._lock:
            client, self._client, self._db = self._client, None, None
        if client is not None:
            client.close()
            log.info("MongoDB connection closed")


# ── FastAPI dependency ───────────────────────────────────────────────────────

def get_db(request: Request) -> Database:
    """Connect (if needed) and return the database for the current request."""
    connector: MongoConnector = request.app.state.connector
    try:
        return connector.connect()
    except PyMongoError as e:
        raise BadRequestError(str(e))
