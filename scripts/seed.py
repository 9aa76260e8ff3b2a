"""
scripts/seed.py - Load demo categories, courses, lessons and posts.

Usage:
    python -m scripts.seed

Documents are upserted by slug, so running the script again refreshes the
demo data instead of duplicating it.
"""

from typing import Dict, List, Type

from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.database import Database

import config
from database import MongoConnector
from logger import get_logger
from models.models import Category, Content, Course, utcnow
from resources import users

log = get_logger(__name__)

SEED_USER = {"name": "Alex Learner", "email": "alex@learningweb.dev", "password": "Password123!"}

CATEGORIES = [
    {"name": "Database", "slug": "database", "description": "Database design and modeling."},
    {"name": "Frontend", "slug": "frontend", "description": "UI and styling tutorials."},
    {"name": "AI & ML", "slug": "ai-ml", "description": "AI fundamentals and tooling."},
    {"name": "Productivity", "slug": "productivity", "description": "Learning and study workflows."},
    {"name": "Development", "slug": "development", "description": "Modern software engineering practices."},
    {"name": "Data Science", "slug": "data-science", "description": "Python, analytics, and data tooling."},
    {"name": "Design", "slug": "design", "description": "Product and UX design fundamentals."},
]

COURSES = [
    {
        "title": "LLM Fundamentals",
        "slug": "llm-fundamentals",
        "description": "Core concepts and patterns for working with LLMs.",
        "level": "beginner",
        "categories": ["ai-ml"],
        "is_published": True,
    },
    {
        "title": "RAG Systems",
        "slug": "rag-systems",
        "description": "Retrieval, embeddings, and vector databases.",
        "level": "intermediate",
        "categories": ["ai-ml"],
        "is_published": True,
    },
]

POSTS = [
    {
        "title": "Mastering Python Decorators",
        "slug": "mastering-python-decorators",
        "description": "Understand how to write and apply decorators for reusable Python patterns.",
        "categories": ["data-science"],
        "tags": ["#Python", "#Coding"],
        "objectives": ["Understand decorator syntax", "Build reusable wrappers", "Avoid common pitfalls"],
        "body": (
            "Decorators let you wrap a function with extra behavior without changing its body. "
            "Use functools.wraps to preserve the original function name and docstring."
        ),
        "exercises": [
            {
                "title": "Decorator intuition",
                "type": "quiz",
                "instructions": "Identify where a decorator makes sense.",
                "default_input": "1) Logging every API call\n2) Calculating report totals\n3) Caching slow functions",
            },
            {
                "title": "Write a timing decorator",
                "type": "code",
                "instructions": "Add timing output to any function.",
                "initial_code": "def my_func():\n    pass",
            },
        ],
        "status": "published",
    },
    {
        "title": "Principles of User Interface Design",
        "slug": "principles-of-user-interface-design",
        "description": "A practical checklist for building interfaces that feel clear, helpful, and trustworthy.",
        "categories": ["design"],
        "tags": ["#UIUX", "#Design"],
        "objectives": ["Build clear visual hierarchy", "Design predictable interactions"],
        "body": "Great interfaces guide attention with hierarchy, spacing, and contrast.",
        "status": "published",
    },
]

LESSONS = [
    {
        "title": "Prompt Engineering Basics",
        "slug": "lesson-prompt-engineering-basics",
        "description": "Build clear and repeatable prompts for LLM tasks.",
        "course": "llm-fundamentals",
        "categories": ["ai-ml"],
        "tags": ["#llm", "#prompting"],
        "objectives": ["Write concise instructions", "Provide context and examples", "Evaluate outputs"],
        "body": "Good prompts are structured. Start with the task, then the context, then the output format.",
        "project_application": {
            "title": "Apply to a project",
            "steps": [
                "Write a prompt to summarize a customer ticket.",
                "Add a JSON output format with three fields.",
                "Test with five sample tickets.",
            ],
            "expected_result": "A prompt template that produces consistent summaries.",
        },
        "exercises": [
            {
                "title": "Prompt rewrite",
                "type": "code",
                "instructions": "Rewrite the prompt to be clear and structured.",
                "initial_code": "Summarize this.",
            },
        ],
        "status": "published",
    },
    {
        "title": "Structured Output with JSON",
        "slug": "lesson-structured-output-json",
        "description": "Ask LLMs to return valid JSON for downstream systems.",
        "course": "llm-fundamentals",
        "categories": ["ai-ml"],
        "objectives": ["Define strict schemas", "Validate outputs", "Handle malformed responses"],
        "body": "Structured output removes guesswork. Always validate the response.",
        "status": "published",
    },
    {
        "title": "Vector Databases for RAG",
        "slug": "lesson-vector-databases-rag",
        "description": "Store and query embeddings for retrieval.",
        "course": "rag-systems",
        "categories": ["ai-ml"],
        "body": "Chunk documents, embed the chunks, and query by similarity.",
        "exercises": [
            {
                "title": "RAG flow",
                "type": "flow",
                "instructions": "Order the retrieval steps.",
                "flow_config": {"steps": ["Chunk", "Embed", "Retrieve", "Generate"]},
            },
        ],
        "status": "published",
    },
]

# course slug -> chapters of lesson slugs, in reading order
CHAPTERS = {
    "llm-fundamentals": [
        ("01. Foundations", ["lesson-prompt-engineering-basics", "lesson-structured-output-json"]),
    ],
    "rag-systems": [
        ("01. Retrieval Core", ["lesson-vector-databases-rag"]),
    ],
}


def upsert_by_slug(db: Database, collection: str, schema: Type[BaseModel], data: dict) -> dict:
    """Validate `data` and insert or refresh the document with the same slug."""
    fields = schema.model_validate(data).model_dump(by_alias=True)
    now = utcnow()
    return db[collection].find_one_and_update(
        {"slug": fields["slug"]},
        {"$set": {**fields, "updatedAt": now}, "$setOnInsert": {"createdAt": now}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )


def ensure_seed_user(db: Database) -> dict:
    existing = users.find_by_email(db, SEED_USER["email"])
    if existing is not None:
        return existing
    return users.create(db, SEED_USER)


def _ids(slugs: List[str], docs: Dict[str, dict]) -> list:
    return [docs[s]["_id"] for s in slugs if s in docs]


def seed(db: Database) -> Dict[str, int]:
    """Upsert every demo document and return how many of each were written."""
    categories = {c["slug"]: upsert_by_slug(db, "categories", Category, c) for c in CATEGORIES}

    courses = {}
    for course in COURSES:
        data = {**course, "categories": _ids(course["categories"], categories)}
        courses[course["slug"]] = upsert_by_slug(db, "courses", Course, data)

    ensure_seed_user(db)

    for post in POSTS:
        data = {**post, "type": "post", "categories": _ids(post["categories"], categories)}
        upsert_by_slug(db, "contents", Content, data)

    lessons = {}
    for lesson in LESSONS:
        data = {k: v for k, v in lesson.items() if k != "course"}
        data.update(
            type="lesson",
            course_id=courses[lesson["course"]]["_id"],
            categories=_ids(lesson["categories"], categories),
        )
        lessons[lesson["slug"]] = upsert_by_slug(db, "contents", Content, data)

    for course_slug, chapters in CHAPTERS.items():
        course = courses[course_slug]
        course_data = {**course, "chapters": [{"title": t, "lessons": _ids(slugs, lessons)} for t, slugs in chapters]}
        validated = Course.model_validate(course_data).model_dump(by_alias=True)
        db.courses.update_one(
            {"_id": course["_id"]},
            {"$set": {"chapters": validated["chapters"], "updatedAt": utcnow()}},
        )

    return {
        "categories": len(categories),
        "courses": len(courses),
        "posts": len(POSTS),
        "lessons": len(lessons),
    }


def main() -> None:
    connector = MongoConnector(config.MONGODB_URI, config.MONGODB_DB)
    try:
        counts = seed(connector.connect())
    finally:
        connector.close()
    log.info("Seed data upserted", extra={"props": counts})


if __name__ == "__main__":
    main()
