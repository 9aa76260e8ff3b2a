"""
resources.py - Data access for the documents exposed over HTTP.

`Resource` is the five-operation interface the generic CRUD router is built
on. `MongoResource` implements it for one collection validated by one
pydantic schema; `UserResource` adds password hashing and keeps the hash out
of every read.
"""

import re
from typing import Dict, Iterable, List, Optional, Protocol, Type

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.database import Database

from credentials import hash_password
from logger import get_logger
from models.models import Asset, Category, Content, Course, User, UserNote, utcnow

log = get_logger(__name__)

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def is_valid_object_id(value) -> bool:
    """True for the 24-hex form of a MongoDB ObjectId, nothing else."""
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


class Resource(Protocol):
    """Storage operations the generic router needs from a document type."""

    name: str

    def find(self, db: Database, filter: dict) -> List[dict]: ...

    def find_by_id(self, db: Database, id: str) -> Optional[dict]: ...

    def create(self, db: Database, doc: dict) -> dict: ...

    def update_by_id(self, db: Database, id: str, patch: dict) -> Optional[dict]: ...

    def delete_by_id(self, db: Database, id: str) -> Optional[dict]: ...


class MongoResource:
    """CRUD over one MongoDB collection, validated by a pydantic schema.

    Args:
        collection: collection name.
        schema: pydantic model every written document must satisfy.
        timestamps: maintain `createdAt`/`updatedAt` on writes.
        hidden_fields: stored fields left out of reads.
    """

    def __init__(
        self,
        collection: str,
        schema: Type[BaseModel],
        timestamps: bool = True,
        hidden_fields: Iterable[str] = (),
    ):
        self.name = collection
        self.schema = schema
        self.timestamps = timestamps
        self.hidden_fields = tuple(hidden_fields)

    # ── Hooks ────────────────────────────────────────────────────────────────

    def _before_write(self, fields: dict, patched: Iterable[str]) -> dict:
        """Adjust validated fields right before they are stored."""
        return fields

    def _projection(self) -> Optional[Dict[str, int]]:
        if not self.hidden_fields:
            return None
        return {f: 0 for f in self.hidden_fields}

    def _strip_hidden(self, doc: dict) -> dict:
        return {k: v for k, v in doc.items() if k not in self.hidden_fields}

    # ── Operations ───────────────────────────────────────────────────────────

    def find(self, db: Database, filter: dict) -> List[dict]:
        return list(db[self.name].find(filter, self._projection()))

    def find_by_id(self, db: Database, id: str) -> Optional[dict]:
        return db[self.name].find_one({"_id": ObjectId(id)}, self._projection())

    def create(self, db: Database, doc: dict) -> dict:
        """Validate and insert a document, returning it as stored.

        Raises:
            pydantic.ValidationError: the document breaks the schema.
            pymongo.errors.PyMongoError: the insert failed (e.g. duplicate slug).
        """
        fields = self.schema.model_validate(doc).model_dump(by_alias=True)
        fields = self._before_write(fields, fields.keys())

        stored = {"_id": ObjectId(), **fields}
        if self.timestamps:
            now = utcnow()
            stored["createdAt"] = now
            stored["updatedAt"] = now

        db[self.name].insert_one(stored)
        log.debug("Document created", extra={"props": {"collection": self.name, "id": str(stored["_id"])}})
        return self._strip_hidden(stored)

    def update_by_id(self, db: Database, id: str, patch: dict) -> Optional[dict]:
        """Apply a partial update and return the document after the update.

        The patch is merged over the stored document and the result is
        validated against the schema; only the patched fields are written.
        Returns None when no document has this id.
        """
        oid = ObjectId(id)
        current = db[self.name].find_one({"_id": oid})
        if current is None:
            return None

        merged = self.schema.model_validate({**current, **patch})
        dumped = merged.model_dump(by_alias=True)
        patched = [k for k in patch if k in dumped]
        changes = self._before_write({k: dumped[k] for k in patched}, patched)
        if self.timestamps:
            changes["updatedAt"] = utcnow()

        if not changes:
            return self._strip_hidden(current)

        return db[self.name].find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            projection=self._projection(),
            return_document=ReturnDocument.AFTER,
        )

    def delete_by_id(self, db: Database, id: str) -> Optional[dict]:
        return db[self.name].find_one_and_delete({"_id": ObjectId(id)}, projection=self._projection())


class UserResource(MongoResource):
    """Users: passwords are hashed on write and hidden on read."""

    def __init__(self):
        super().__init__("users", User, timestamps=False, hidden_fields=("password",))

    def _before_write(self, fields: dict, patched: Iterable[str]) -> dict:
        if "password" in patched and fields.get("password"):
            fields["password"] = hash_password(fields["password"])
        return fields

    def find_by_email(self, db: Database, email: str, include_password: bool = False) -> Optional[dict]:
        """Look a user up by email, ignoring case."""
        query = {"email": {"$regex": f"^{re.escape(email.strip())}$", "$options": "i"}}
        projection = None if include_password else self._projection()
        return db[self.name].find_one(query, projection)


users = UserResource()

# URL segment -> resource, in the order the routes are mounted
RESOURCES: Dict[str, MongoResource] = {
    "assets": MongoResource("assets", Asset),
    "categories": MongoResource("categories", Category),
    "contents": MongoResource("contents", Content),
    "courses": MongoResource("courses", Course),
    "users": users,
    "user-notes": MongoResource("usernotes", UserNote),
}
