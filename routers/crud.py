"""
routers/crud.py - Generic list/get/create/update/delete endpoints.

`create_crud_router` turns any `Resource` into five routes:

    GET    /        list every document
    POST   /        create from the JSON body
    GET    /{id}    fetch one
    PUT    /{id}    partial update, returns the updated document
    DELETE /{id}    delete, returns the deleted document

Malformed ids are rejected with 400 before storage is touched.
"""

from bson.errors import BSONError
from fastapi import APIRouter, Body, Depends, status
from pydantic import ValidationError as SchemaValidationError
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import get_db
from errors import BadRequestError, NotFoundError, describe_schema_error
from logger import get_logger
from resources import Resource, is_valid_object_id
from responses import ok, serialize, serialize_many

log = get_logger(__name__)


def _storage_error(resource: Resource, action: str, exc: Exception) -> BadRequestError:
    if isinstance(exc, SchemaValidationError):
        return BadRequestError(describe_schema_error(exc))
    log.error(
        "Storage operation failed",
        extra={"props": {"collection": resource.name, "action": action, "error": str(exc)}},
    )
    return BadRequestError(str(exc))


def _check_id(id: str) -> None:
    if not is_valid_object_id(id):
        raise BadRequestError("Invalid id")


def create_crud_router(resource: Resource, tag: str) -> APIRouter:
    """Build the five CRUD routes for one resource."""
    router = APIRouter(tags=[tag])
    failures = (PyMongoError, BSONError, SchemaValidationError)

    @router.get("")
    def list_documents(db: Database = Depends(get_db)):
        try:
            docs = resource.find(db, {})
        except failures as e:
            raise _storage_error(resource, "list", e)
        return ok(serialize_many(docs))

    @router.get("/{id}")
    def get_document(id: str, db: Database = Depends(get_db)):
        _check_id(id)
        try:
            doc = resource.find_by_id(db, id)
        except failures as e:
            raise _storage_error(resource, "get", e)
        if doc is None:
            raise NotFoundError("Not found")
        return ok(serialize(doc))

    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_document(body: dict = Body(...), db: Database = Depends(get_db)):
        try:
            doc = resource.create(db, body)
        except failures as e:
            raise _storage_error(resource, "create", e)
        return ok(serialize(doc))

    @router.put("/{id}")
    def update_document(id: str, body: dict = Body(...), db: Database = Depends(get_db)):
        _check_id(id)
        try:
            doc = resource.update_by_id(db, id, body)
        except failures as e:
            raise _storage_error(resource, "update", e)
        if doc is None:
            raise NotFoundError("Not found")
        return ok(serialize(doc))

    @router.delete("/{id}")
    def delete_document(id: str, db: Database = Depends(get_db)):
        _check_id(id)
        try:
            doc = resource.delete_by_id(db, id)
        except failures as e:
            raise _storage_error(resource, "delete", e)
        if doc is None:
            raise NotFoundError("Not found")
        return ok(serialize(doc))

    return router
