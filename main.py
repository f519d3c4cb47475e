import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, get_settings
from core.exceptions import setup_exception_handlers
from core.logging import setup_logging
from database import create_tables
from routers import posts, users

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API application around one settings object."""
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Skein API",
        description="Users, posts, tags and feeds for a small social network.",
        version="1.0.0",
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_exception_handlers(app)

    create_tables()

    app.include_router(users.router)
    app.include_router(posts.router)

    @app.get("/health")
    def health_check():
        return JSONResponse(
            status_code=200,
            content={"status": "ok", "message": "Service is running"}
        )

    logger.info("Application configured")
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=get_settings().PORT)
