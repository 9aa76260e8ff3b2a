"""
responses.py - The response envelope and boundary serialization.

Every endpoint answers with {"success": true, "data": ...} or
{"success": false, "error": "..."}; stored documents go through
`serialize` on their way out so secrets never reach a client.
"""

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId

# Fields that are stored but never leave the API
SECRET_FIELDS = ("password",)


def _to_json(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    return value


def serialize(doc: Optional[dict]) -> Optional[dict]:
    """Convert a stored document into JSON-ready data, minus secret fields."""
    if doc is None:
        return None
    return {k: _to_json(v) for k, v in doc.items() if k not in SECRET_FIELDS}


def serialize_many(docs) -> list[dict]:
    return [serialize(d) for d in docs]


def ok(data: Any) -> dict:
    return {"success": True, "data": data}


def fail(message: str) -> dict:
    return {"success": False, "error": message}
