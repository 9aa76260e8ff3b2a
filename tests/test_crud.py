"""Generic resource endpoint tests, exercised through the real resources."""

import mongomock
import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

import config
from database import MongoConnector, get_db
from errors import install_error_handlers
from main import create_app
from routers.crud import create_crud_router

RESOURCE_PATHS = ["assets", "categories", "contents", "courses", "users", "user-notes"]
MISSING_ID = str(ObjectId())


def _create(client, path, payload):
    response = client.post(f"/api/{path}", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCategories:

    def test_create_then_get(self, client):
        response = client.post("/api/categories", json={"name": "Design", "slug": "design"})

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        created = body["data"]
        assert created["name"] == "Design"
        assert created["slug"] == "design"
        assert created["parent"] is None
        assert ObjectId.is_valid(created["_id"])

        fetched = client.get(f"/api/categories/{created['_id']}").json()["data"]
        assert fetched["name"] == "Design"
        assert fetched["slug"] == "design"
        assert "createdAt" in fetched and "updatedAt" in fetched

    def test_timestamps_read_back_unchanged(self, client):
        created = _create(client, "categories", {"name": "Design", "slug": "design"})

        fetched = client.get(f"/api/categories/{created['_id']}").json()["data"]

        assert fetched["createdAt"] == created["createdAt"]
        assert fetched["updatedAt"] == created["updatedAt"]
        assert created["createdAt"].endswith("+00:00")

    def test_duplicate_slug(self, client):
        _create(client, "categories", {"name": "Design", "slug": "design"})

        response = client.post("/api/categories", json={"name": "Design", "slug": "design"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "duplicate key" in response.json()["error"].lower()

    def test_missing_required_field(self, client):
        response = client.post("/api/categories", json={"slug": "design"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Category validation failed: name: Field required"}

    def test_parent_reference(self, client):
        root = _create(client, "categories", {"name": "Engineering", "slug": "engineering"})

        child = _create(client, "categories", {"name": "Backend", "slug": "backend", "parent": root["_id"]})

        assert child["parent"] == root["_id"]

    def test_unknown_fields_are_dropped(self, client):
        created = _create(client, "categories", {"name": "Design", "slug": "design", "color": "red"})

        assert "color" not in created

    def test_list(self, client):
        _create(client, "categories", {"name": "Design", "slug": "design"})
        _create(client, "categories", {"name": "Frontend", "slug": "frontend"})

        response = client.get("/api/categories")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert sorted(c["slug"] for c in body["data"]) == ["design", "frontend"]

    def test_update_returns_updated_document(self, client):
        created = _create(client, "categories", {"name": "Design", "slug": "design"})

        response = client.put(f"/api/categories/{created['_id']}", json={"description": "UX and UI"})

        assert response.status_code == 200
        updated = response.json()["data"]
        assert updated["description"] == "UX and UI"
        assert updated["name"] == "Design"

    def test_delete_returns_deleted_document(self, client):
        created = _create(client, "categories", {"name": "Design", "slug": "design"})

        response = client.delete(f"/api/categories/{created['_id']}")

        assert response.status_code == 200
        assert response.json()["data"]["_id"] == created["_id"]
        assert client.get(f"/api/categories/{created['_id']}").status_code == 404

    def test_body_must_be_an_object(self, client):
        response = client.post("/api/categories", json=["not", "an", "object"])

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestContents:

    def test_lesson_with_exercises(self, client):
        course = _create(client, "courses", {"title": "LLM Fundamentals", "slug": "llm-fundamentals"})

        lesson = _create(client, "contents", {
            "title": "Prompt Engineering Basics",
            "slug": "prompt-engineering-basics",
            "type": "lesson",
            "course_id": course["_id"],
            "tags": ["#llm"],
            "exercises": [
                {"title": "Rewrite", "type": "code", "initial_code": "Summarize this."},
                {"title": "Flow", "type": "flow", "flow_config": {"steps": ["Detect", "Translate"]}},
            ],
        })

        assert lesson["course_id"] == course["_id"]
        assert lesson["status"] == "draft"
        assert lesson["views"] == 0
        assert [e["title"] for e in lesson["exercises"]] == ["Rewrite", "Flow"]
        assert all(ObjectId.is_valid(e["_id"]) for e in lesson["exercises"])
        assert lesson["exercises"][1]["flow_config"]["steps"] == ["Detect", "Translate"]

    def test_update_reruns_validators(self, client):
        post = _create(client, "contents", {"title": "Hello", "slug": "hello"})

        response = client.put(f"/api/contents/{post['_id']}", json={"status": "archived"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Content validation failed: status")

    def test_publish(self, client):
        post = _create(client, "contents", {"title": "Hello", "slug": "hello"})

        response = client.put(f"/api/contents/{post['_id']}", json={"status": "published"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "published"

    def test_invalid_exercise_kind(self, client):
        response = client.post("/api/contents", json={
            "title": "Hello",
            "slug": "hello",
            "exercises": [{"title": "Bad", "type": "essay"}],
        })

        assert response.status_code == 400


class TestCourses:

    def test_chapter_order_is_kept(self, client):
        first, second, third = (str(ObjectId()) for _ in range(3))

        course = _create(client, "courses", {
            "title": "RAG Systems",
            "slug": "rag-systems",
            "level": "intermediate",
            "chapters": [
                {"title": "01. Retrieval", "lessons": [third, first]},
                {"title": "02. Generation", "lessons": [second]},
            ],
        })

        fetched = client.get(f"/api/courses/{course['_id']}").json()["data"]
        assert fetched["price"] == 0
        assert fetched["is_published"] is False
        assert [c["title"] for c in fetched["chapters"]] == ["01. Retrieval", "02. Generation"]
        assert fetched["chapters"][0]["lessons"] == [third, first]

    def test_invalid_lesson_reference(self, client):
        response = client.post("/api/courses", json={
            "title": "RAG Systems",
            "slug": "rag-systems",
            "chapters": [{"title": "01", "lessons": ["nope"]}],
        })

        assert response.status_code == 400


class TestUsersResource:

    def test_password_is_hashed_and_never_returned(self, client, db):
        created = _create(client, "users", {"name": "Grace", "email": "Grace@Example.com", "password": "plain-text-pw"})

        assert "password" not in created
        assert created["email"] == "grace@example.com"
        stored = db.users.find_one({"_id": ObjectId(created["_id"])})
        assert stored["password"].startswith("$2")

        listed = client.get("/api/users").json()["data"]
        assert all("password" not in u for u in listed)

    def test_password_update_is_hashed(self, client, db):
        created = _create(client, "users", {"name": "Grace", "email": "grace@example.com", "password": "plain-text-pw"})

        response = client.put(f"/api/users/{created['_id']}", json={"password": "new-password"})

        assert response.status_code == 200
        assert "password" not in response.json()["data"]
        stored = db.users.find_one({"_id": ObjectId(created["_id"])})
        assert stored["password"].startswith("$2")
        assert stored["password"] != "new-password"

    def test_rename_keeps_password(self, client, db):
        created = _create(client, "users", {"name": "Grace", "email": "grace@example.com", "password": "plain-text-pw"})
        before = db.users.find_one({"_id": ObjectId(created["_id"])})["password"]

        response = client.put(f"/api/users/{created['_id']}", json={"name": "Grace Hopper"})

        assert response.json()["data"]["name"] == "Grace Hopper"
        assert db.users.find_one({"_id": ObjectId(created["_id"])})["password"] == before

    def test_name_too_long(self, client):
        response = client.post("/api/users", json={"name": "x" * 51, "email": "a@b.dev", "password": "longenough"})

        assert response.status_code == 400


class TestUserNotes:

    def test_requires_references(self, client):
        response = client.post("/api/user-notes", json={"content": "remember this"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("UserNote validation failed")

    def test_create_with_highlight(self, client):
        user_id, content_id = str(ObjectId()), str(ObjectId())

        note = _create(client, "user-notes", {
            "user_id": user_id,
            "content_id": content_id,
            "content": "remember this",
            "highlight_context": {"selected_text": "vector", "position_index": 42},
        })

        assert note["user_id"] == user_id
        assert note["is_public"] is False
        assert note["highlight_context"] == {"selected_text": "vector", "position_index": 42}


class TestAssets:

    def test_url_is_required(self, client):
        response = client.post("/api/assets", json={"name": "cover.png", "type": "image"})

        assert response.status_code == 400

    def test_create(self, client):
        asset = _create(client, "assets", {"name": "cover.png", "url": "https://cdn.example.com/cover.png", "type": "image", "size": 2048})

        assert asset["size"] == 2048
        assert asset["used_in_contents"] == []
        assert asset["uploaded_by"] is None


@pytest.mark.parametrize("path", RESOURCE_PATHS)
class TestIdentifiers:

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_malformed_id(self, client, path, method):
        kwargs = {"json": {"name": "x"}} if method == "put" else {}

        response = getattr(client, method)(f"/api/{path}/not-an-id", **kwargs)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid id"}

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_missing_document(self, client, path, method):
        kwargs = {"json": {"name": "x"}} if method == "put" else {}

        response = getattr(client, method)(f"/api/{path}/{MISSING_ID}", **kwargs)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not found"}

    def test_empty_list(self, client, path):
        response = client.get(f"/api/{path}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": []}


class RecordingResource:
    """Resource double that records calls and fails on demand."""

    name = "recording"

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def _call(self, op, *args):
        self.calls.append(op)
        if self.error is not None:
            raise self.error
        return None

    def find(self, db, filter):
        return self._call("find", filter) or []

    def find_by_id(self, db, id):
        return self._call("find_by_id", id)

    def create(self, db, doc):
        return self._call("create", doc)

    def update_by_id(self, db, id, patch):
        return self._call("update_by_id", id, patch)

    def delete_by_id(self, db, id):
        return self._call("delete_by_id", id)


def _app_with(resource):
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(create_crud_router(resource, "Recording"), prefix="/things")
    app.dependency_overrides[get_db] = lambda: None
    return app


class TestRouterContract:

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_malformed_id_never_reaches_storage(self, method):
        resource = RecordingResource()
        client = TestClient(_app_with(resource))
        kwargs = {"json": {}} if method == "put" else {}

        response = getattr(client, method)("/things/123", **kwargs)

        assert response.status_code == 400
        assert resource.calls == []

    def test_unexpected_error_is_a_generic_500(self):
        client = TestClient(_app_with(RecordingResource(error=RuntimeError("boom"))), raise_server_exceptions=False)

        response = client.get("/things")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Server Error"}

    def test_storage_error_is_a_400(self):
        client = TestClient(_app_with(RecordingResource(error=ServerSelectionTimeoutError("no servers"))))

        response = client.get("/things")

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "no servers"}


def test_unreachable_database_is_a_400():
    def refuse(uri, **kwargs):
        raise ServerSelectionTimeoutError("connection refused")

    connector = MongoConnector(config.MONGODB_URI, config.MONGODB_DB, client_factory=refuse)
    with TestClient(create_app(connector)) as client:
        response = client.get("/api/categories")

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "connection refused"}


def test_existing_duplicates_do_not_block_requests():
    seeded = mongomock.MongoClient(config.MONGODB_URI)
    seeded.get_default_database().categories.insert_many([{"slug": "dup"}, {"slug": "dup"}])

    connector = MongoConnector(config.MONGODB_URI, config.MONGODB_DB, client_factory=lambda uri, **kw: seeded)
    with TestClient(create_app(connector)) as client:
        first = client.get("/api/courses")
        second = client.get("/api/categories")

    assert first.status_code == 200
    assert second.status_code == 200
    assert len(second.json()["data"]) == 2


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_openapi_document(client):
    response = client.get("/openapi.json")

    assert response.status_code == 200
    paths = response.json()["paths"]
    assert "/api/auth/register" in paths
    assert "/api/user-notes/{id}" in paths


def test_connector_is_shared_with_handlers(connector, client):
    client.post("/api/categories", json={"name": "Design", "slug": "design"})

    assert connector.connected
    assert connector.connect().categories.count_documents({}) == 1
