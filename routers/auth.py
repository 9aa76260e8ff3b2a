"""
routers/auth.py - Registration, login and current-user endpoints.

    POST /auth/register  {name, email, password}  -> 201 {token, user}
    POST /auth/login     {email, password}        -> 200 {token, user}
    GET  /auth/me        Authorization: Bearer .. -> 200 user

Emails are compared case-insensitively and stored lower-cased. The stored
password hash never appears in a response.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from pydantic import ValidationError as SchemaValidationError
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from credentials import InvalidTokenError, create_token, verify_password, verify_token
from database import get_db
from errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    describe_schema_error,
)
from logger import get_logger
from models.models import UserLogin, UserRegister
from resources import is_valid_object_id, users
from responses import ok, serialize

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

# ── Validation rules ─────────────────────────────────────────────────────────

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
BEARER_RE = re.compile(r"^Bearer\s+(?P<token>.+)$", re.IGNORECASE)

INVALID_CREDENTIALS = "Invalid credentials"


def _validate_registration(payload: UserRegister) -> tuple[str, str, str]:
    """Check a registration body, first failing rule wins.

    Returns the trimmed name, normalized email and the password.
    """
    name = (payload.name or "").strip()
    if not name:
        raise BadRequestError("Name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise BadRequestError(f"Name must be at most {NAME_MAX_LENGTH} characters")

    email = (payload.email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise BadRequestError("Invalid email")

    password = payload.password or ""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise BadRequestError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

    return name, email, password


def _bearer_token(authorization: Optional[str]) -> str:
    match = BEARER_RE.match(authorization or "")
    if not match:
        raise AuthenticationError("Missing Bearer token")
    return match.group("token").strip()


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Database = Depends(get_db)):
    """Create an account and return a token for it."""
    name, email, password = _validate_registration(payload)

    try:
        if users.find_by_email(db, email) is not None:
            raise ConflictError("Email already exists")
        user = users.create(db, {"name": name, "email": email, "password": password})
    except DuplicateKeyError:
        # Lost a race with a concurrent registration for the same email
        raise ConflictError("Email already exists")
    except SchemaValidationError as e:
        raise BadRequestError(describe_schema_error(e))
    except PyMongoError as e:
        log.error("Registration failed", extra={"props": {"error": str(e)}})
        raise BadRequestError(str(e))

    token = create_token(str(user["_id"]))
    log.info("User registered", extra={"props": {"user_id": str(user["_id"])}})
    return ok({"token": token, "user": serialize(user)})


@router.post("/login")
def login(payload: UserLogin, db: Database = Depends(get_db)):
    """Exchange email and password for a token.

    Unknown email and wrong password get the same 401 so callers cannot tell
    which accounts exist.
    """
    if not payload.email or not payload.password:
        raise BadRequestError("Missing email/password")

    try:
        user = users.find_by_email(db, payload.email, include_password=True)
    except PyMongoError as e:
        log.error("Login lookup failed", extra={"props": {"error": str(e)}})
        raise BadRequestError(str(e))

    if not user or not user.get("password"):
        log.warning("Rejected login", extra={"props": {"reason": "unknown account"}})
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not verify_password(payload.password, user["password"]):
        log.warning("Rejected login", extra={"props": {"user_id": str(user["_id"])}})
        raise AuthenticationError(INVALID_CREDENTIALS)

    user.pop("password", None)
    token = create_token(str(user["_id"]))
    return ok({"token": token, "user": serialize(user)})


@router.get("/me")
def get_profile(request: Request, authorization: Optional[str] = Header(None)):
    """Return the user the bearer token was issued to.

    The token is checked before storage is touched, so a bad or missing
    token is a 401 even while the database is unreachable.
    """
    token = _bearer_token(authorization)

    try:
        claims = verify_token(token)
    except InvalidTokenError:
        raise AuthenticationError("Invalid token")

    user_id = claims.get("sub")
    if not is_valid_object_id(user_id):
        raise AuthenticationError("Invalid token")

    db = get_db(request)
    try:
        user = users.find_by_id(db, user_id)
    except PyMongoError as e:
        raise BadRequestError(str(e))
    if user is None:
        raise NotFoundError("Not found")
    return ok(serialize(user))
