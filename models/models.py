"""
models/models.py - Document schemas and request bodies.

Each document model validates what a client sends before it is written to
its MongoDB collection. Unknown fields are dropped, references accept a
24-hex string and are stored as ObjectId.
"""

from datetime import datetime, timezone
from typing import Any, Annotated, List, Literal, Optional, Union

from bson import ObjectId
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    WithJsonSchema,
    field_validator,
)

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"


def _parse_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value) and len(value) == 24:
        return ObjectId(value)
    raise ValueError("Invalid ObjectId")


ObjectIdField = Annotated[
    ObjectId,
    PlainValidator(_parse_object_id),
    PlainSerializer(str, return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": OBJECT_ID_PATTERN}),
]


def utcnow() -> datetime:
    """Current UTC time at the millisecond precision BSON stores."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class Document(BaseModel):
    """Base for stored documents and their embedded parts."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EmbeddedDocument(Document):
    """Array item that gets its own `_id`, like lessons in a chapter."""

    id: ObjectIdField = Field(default_factory=ObjectId, alias="_id")


# ── User ─────────────────────────────────────────────────────────────────────

class User(Document):
    name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    createdAt: datetime = Field(default_factory=utcnow)

    @field_validator("name", mode="before")
    @classmethod
    def _trim_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


# ── Category ─────────────────────────────────────────────────────────────────

class Category(Document):
    name: str
    slug: str
    parent: Optional[ObjectIdField] = None  # null for a root category
    description: Optional[str] = None


# ── Content (post or lesson) ────────────────────────────────────────────────

class FlowConfig(Document):
    steps: List[str] = Field(default_factory=list)
    logic: Any = None


class Exercise(EmbeddedDocument):
    title: str
    type: Literal["quiz", "code", "flow"] = "code"
    instructions: Optional[str] = None
    initial_code: Optional[str] = None
    solution_code: Optional[str] = None
    flow_config: Optional[FlowConfig] = None
    default_input: Optional[str] = None


class ProjectApplication(Document):
    title: Optional[str] = None
    steps: List[str] = Field(default_factory=list)
    expected_result: Optional[str] = None


class Content(Document):
    title: str
    slug: str
    thumbnail: Optional[str] = None
    description: Optional[str] = None
    type: Literal["post", "lesson"] = "post"
    categories: List[ObjectIdField] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    objectives: List[str] = Field(default_factory=list)
    body: Optional[str] = None
    project_application: Optional[ProjectApplication] = None
    course_id: Optional[ObjectIdField] = None  # set for lessons only
    exercises: List[Exercise] = Field(default_factory=list)
    views: int = 0
    status: Literal["draft", "published"] = "draft"


# ── Course ───────────────────────────────────────────────────────────────────

class Chapter(EmbeddedDocument):
    title: Optional[str] = None
    lessons: List[ObjectIdField] = Field(default_factory=list)


class Course(Document):
    title: str
    slug: str
    thumbnail: Optional[str] = None
    description: Optional[str] = None
    price: Union[int, float] = 0  # 0 means free
    level: Optional[Literal["beginner", "intermediate", "advanced"]] = None
    categories: List[ObjectIdField] = Field(default_factory=list)
    chapters: List[Chapter] = Field(default_factory=list)
    is_published: bool = False


# ── Asset ────────────────────────────────────────────────────────────────────

class Asset(Document):
    name: Optional[str] = None
    url: str
    type: Optional[Literal["image", "video", "pdf"]] = None
    size: Optional[Union[int, float]] = None
    used_in_contents: List[ObjectIdField] = Field(default_factory=list)
    uploaded_by: Optional[ObjectIdField] = None


# ── UserNote ─────────────────────────────────────────────────────────────────

class HighlightContext(Document):
    selected_text: Optional[str] = None
    position_index: Optional[int] = None


class UserNote(Document):
    user_id: ObjectIdField
    content_id: ObjectIdField
    content: str
    highlight_context: Optional[HighlightContext] = None
    is_public: bool = False


# ── Auth request bodies ──────────────────────────────────────────────────────

class UserRegister(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
