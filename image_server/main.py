from contextlib import asynccontextmanager
from pathlib import Path
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

# === Local Imports ===
from image_server import __version__
from image_server.core.config import settings
from image_server.core.errors import (
    ImageServerException,
    image_server_exception_handler,
    http_exception_handler,
    sqlalchemy_exception_handler,
)
from image_server.db.session import engine, init_models
from image_server.routers.files import router as files_router
from image_server.routers.token import router as token_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("image_server")

STATIC_DIR = Path(settings.STATIC_DIR)
STATIC_DIR.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    if settings.AUTO_CREATE_TABLES:
        await init_models()
        logger.info("Database tables ensured")
    yield
    await engine.dispose()


app = FastAPI(
    title="Image Server",
    version=__version__,
    description="Token-gated JPEG/PNG upload and listing service",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_exception_handler(ImageServerException, image_server_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
    max_age=3600,
)

app.include_router(files_router)
app.include_router(token_router)

# Must stay last: "/" swallows every path the routers above don't claim.
app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")


def run():
    print("----------------------------------------------")
    print(f"Running image server on port {settings.API_PORT}...")
    print("----------------------------------------------\n")

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
