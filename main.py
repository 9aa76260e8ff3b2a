"""
LearningWeb API - REST backend for the learning-content platform.

Run locally:
    python main.py              (listens on $PORT, default 3000)
    uvicorn main:app --reload

Interactive docs are served at /docs, the OpenAPI document at /openapi.json.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import api_gateway
import config
from database import MongoConnector
from errors import install_error_handlers
from logger import get_logger, log_requests
from responses import ok

log = get_logger(__name__)


def create_app(connector: Optional[MongoConnector] = None) -> FastAPI:
    """Build the application around a MongoDB connector.

    The connector is owned by the app: it is shared by every request through
    `app.state.connector` and closed on shutdown.
    """
    if connector is None:
        connector = MongoConnector(config.MONGODB_URI, config.MONGODB_DB)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("Startup complete")
        yield
        connector.close()

    app = FastAPI(
        title="LearningWeb API",
        description="Users, courses, lessons, categories, assets and notes for the learning platform.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.connector = connector

    # ============================================================
    # Middleware
    # ============================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
    install_error_handlers(app)

    # ============================================================
    # Routes
    # ============================================================

    app.include_router(api_gateway.router, prefix="/api")

    @app.get("/", tags=["Health"])
    def root():
        return ok({"message": "LearningWeb API is running. Check /docs for API documentation."})

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
