from __future__ import annotations  # FastAPI server exposing the AI interview flow

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import install_error_handler, router
from config.settings import settings
from storage.migrate import migrate


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # Ensure the schema before serving
    migrate(settings.DB_PATH)
    logger.info("Database ready at %s", settings.DB_PATH)
    yield


def create_app() -> FastAPI:  # Assemble the application
    app = FastAPI(title="AI Interview API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"]
    )
    install_error_handler(app)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual launch
    import uvicorn

    uvicorn.run("api_server:app", host="0.0.0.0", port=8000)
